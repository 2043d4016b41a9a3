from __future__ import annotations

from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand, CommandError

from shipping.dataclasses import PAYMENT_METHODS
from shipping.models import ShippingCompany
from shipping.services.errors import ShippingEngineError
from shipping.services.quote_calculator import simulate_quote


def _decimal(raw: str, name: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise CommandError(f"--{name} must be a number, got {raw!r}")


class Command(BaseCommand):
    help = "Print the quote breakdown a stored sub-carrier table produces for a parcel."

    def add_arguments(self, parser):
        parser.add_argument("--company", type=str, required=True, help="Company code, e.g. FEST")
        parser.add_argument("--sub-carrier", type=str, required=True, help="Sub-carrier code, e.g. ARS")
        parser.add_argument("--desi", type=str, required=True)
        parser.add_argument("--cod-amount", type=str, default="0")
        parser.add_argument("--payment-method", type=str, default="COD", choices=PAYMENT_METHODS)

    def handle(self, *args, **options):
        code = options["company"].strip().upper()
        company = ShippingCompany.objects.prefetch_related("sub_carriers").filter(code=code).first()
        if company is None:
            raise CommandError(f"Unknown company {code!r}")
        try:
            table = company.to_company().find(options["sub_carrier"].strip())
            if table is None:
                raise CommandError(f"{code} has no sub-carrier {options['sub_carrier']!r}")
            result = simulate_quote(
                table,
                _decimal(options["desi"], "desi"),
                _decimal(options["cod_amount"], "cod-amount"),
                options["payment_method"],
            )
        except ShippingEngineError as exc:
            raise CommandError(str(exc))

        for line in result.quote.breakdown:
            self.stdout.write(f"{line.label:<24}{line.amount:>10}")
        self.stdout.write(self.style.SUCCESS(f"{'Total':<24}{result.quote.total_cost:>10}"))
        for note in result.notes:
            self.stdout.write(self.style.WARNING(note))
