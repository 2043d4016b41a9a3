from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db import transaction

from shipping.dataclasses import COMPANY_AGGREGATOR, COMPANY_DIRECT
from shipping.models import ShippingCompany
from shipping.services.rate_table import build_rate_table

COMPANIES = [
    {
        "code": "FEST",
        "name": "Fest Kargo",
        "type": COMPANY_AGGREGATOR,
        "is_active": True,
        "is_default": True,
        # reaches rural addresses through PTT
        "handles_rural_addresses": True,
        "sub_carriers": [
            {
                "code": "ARS",
                "name": "Aras Kargo",
                "branch_code": "ARS01",
                "is_cash_on_door_available": True,
                "is_card_on_door_available": True,
                "fixed_price": 0,
                "return_price": 40,
                "card_commission": 0.025,
                "desi_ranges": [{"maxDesi": 1, "price": 30}, {"maxDesi": 3, "price": 45}, {"maxDesi": 10, "price": 70}],
                "cod_ranges": [{"min": 0, "max": 500, "price": 10}, {"min": 500.01, "max": None, "price": 15}],
            },
            {
                "code": "PTT",
                "name": "PTT Kargo",
                "branch_code": "PTT01",
                "is_cash_on_door_available": True,
                "is_card_on_door_available": False,
                "fixed_price": 0,
                "return_price": 35,
                "card_commission": 0,
                "desi_ranges": [{"maxDesi": 2, "price": 32}, {"maxDesi": 5, "price": 48}],
                "cod_ranges": [{"min": 0, "max": 1000, "price": 12}, {"min": 1000.01, "max": None, "price": 20}],
            },
            {
                "code": "HPS",
                "name": "HepsiJet",
                "branch_code": "HPS01",
                "is_cash_on_door_available": False,
                "is_card_on_door_available": False,
                "fixed_price": 38,
                "return_price": 38,
                "card_commission": 0,
                "desi_ranges": [],
                "cod_ranges": [],
            },
        ],
    },
    {
        "code": "YURTICI",
        "name": "Yurtici Kargo",
        "type": COMPANY_DIRECT,
        "is_active": False,
        "is_default": False,
        "handles_rural_addresses": False,
        "pricing_rules": [
            {
                "carrierCode": "YK",
                "allowedPaymentMethods": ["COD", "WIRE", "ONLINE"],
                "baseCost": 42,
                "serviceFee": 5,
                "codCommission": [{"min": 0, "max": 750, "fee": 12}, {"min": 750.01, "max": None, "fee": 18}],
            },
        ],
        "sub_carriers": [],
    },
]


class Command(BaseCommand):
    help = "Create or update the default shipping companies and their rate tables."

    def add_arguments(self, parser):
        parser.add_argument("--reset-tables", action="store_true",
                            help="Replace existing sub-carrier tables with the defaults")

    @transaction.atomic
    def handle(self, *args, **options):
        for entry in COMPANIES:
            entry = dict(entry)
            sub_carriers = entry.pop("sub_carriers")
            company, created = ShippingCompany.objects.get_or_create(
                code=entry["code"], defaults={k: v for k, v in entry.items() if k != "code"}
            )
            if created or options["reset_tables"]:
                for k, v in entry.items():
                    setattr(company, k, v)
                company.full_clean()
                company.save()
            for position, data in enumerate(sub_carriers):
                table = build_rate_table(data)
                row = company.sub_carriers.filter(code=table.code).first()
                if row is not None and not options["reset_tables"]:
                    continue
                if row is None:
                    row = company.sub_carriers.model(company=company, position=position)
                row.apply_table(table)
                row.save()
            verb = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(
                f"{verb} {company.code} ({company.type}) with {company.sub_carriers.count()} sub-carrier(s)"
            ))
