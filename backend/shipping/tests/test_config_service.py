from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from ..dataclasses import COMPANY_AGGREGATOR, COMPANY_DIRECT
from ..models import ShippingCompany, SubCarrier
from ..services import config_service
from ..services.errors import ConfigurationError

pytestmark = pytest.mark.django_db

ARS = {
    "code": "ARS",
    "name": "Aras",
    "branch_code": "ARS01",
    "is_cash_on_door_available": True,
    "desi_ranges": [{"maxDesi": 1, "price": 30}, {"maxDesi": 3, "price": 45}],
    "cod_ranges": [{"min": 0, "max": 500, "price": 10}],
}


def _mk_company(code="FEST", **kw):
    kw.setdefault("name", code.title())
    kw.setdefault("type", COMPANY_AGGREGATOR)
    return ShippingCompany.objects.create(code=code, **kw)


def test_add_sub_carrier_appends_in_order():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    config_service.add_sub_carrier(company.id, dict(ARS, code="PTT", name="PTT"))
    assert list(company.sub_carriers.values_list("code", "position")) == [("ARS", 0), ("PTT", 1)]
    table = company.to_company().find("ARS")
    assert table.desi_ranges[1].price == Decimal("45")


def test_add_duplicate_code_rejected():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    with pytest.raises(ConfigurationError):
        config_service.add_sub_carrier(company.id, ARS)
    assert company.sub_carriers.count() == 1


def test_invalid_edit_leaves_stored_table_untouched():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    bad = dict(ARS, desi_ranges=[{"maxDesi": 3, "price": 45}, {"maxDesi": 1, "price": 30}])
    with pytest.raises(ConfigurationError):
        config_service.replace_sub_carrier(company.id, "ARS", bad)
    row = SubCarrier.objects.get(company=company, code="ARS")
    assert row.desi_ranges == ARS["desi_ranges"]


def test_replace_overwrites_whole_row():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    row = config_service.replace_sub_carrier(
        company.id, "ARS", {"code": "ARS", "name": "Aras Kargo", "fixed_price": 50},
    )
    row.refresh_from_db()
    assert row.name == "Aras Kargo"
    assert row.fixed_price == Decimal("50.00")
    assert row.desi_ranges == []
    assert row.is_cash_on_door_available is False


def test_rename_onto_sibling_code_rejected():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    config_service.add_sub_carrier(company.id, dict(ARS, code="PTT"))
    with pytest.raises(ConfigurationError):
        config_service.replace_sub_carrier(company.id, "PTT", dict(ARS, code="ARS"))


def test_replace_missing_sub_carrier():
    company = _mk_company()
    with pytest.raises(SubCarrier.DoesNotExist):
        config_service.replace_sub_carrier(company.id, "NOPE", ARS)


def test_remove_sub_carrier():
    company = _mk_company()
    config_service.add_sub_carrier(company.id, ARS)
    config_service.remove_sub_carrier(company.id, "ARS")
    assert not company.sub_carriers.exists()
    with pytest.raises(SubCarrier.DoesNotExist):
        config_service.remove_sub_carrier(company.id, "ARS")


class TestShippingCompanyModel:
    def test_single_default_company(self):
        a = _mk_company("A", is_default=True)
        b = _mk_company("B", is_default=True)
        a.refresh_from_db()
        assert not a.is_default
        assert ShippingCompany.objects.get(pk=b.pk).is_default

    def test_pricing_rules_only_for_direct(self):
        company = ShippingCompany(
            code="FEST", name="Fest", type=COMPANY_AGGREGATOR,
            pricing_rules=[{"carrierCode": "YK", "baseCost": 1}],
        )
        with pytest.raises(ValidationError):
            company.full_clean()

    def test_invalid_pricing_rules_rejected(self):
        company = ShippingCompany(
            code="YURTICI", name="Yurtici", type=COMPANY_DIRECT,
            pricing_rules=[{"carrierCode": "YK", "baseCost": -5}],
        )
        with pytest.raises(ValidationError):
            company.full_clean()

    def test_direct_company_exposes_legacy_tables(self):
        company = _mk_company(
            "YURTICI", type=COMPANY_DIRECT,
            pricing_rules=[{"carrierCode": "YK", "baseCost": 42}],
        )
        assert [t.code for t in company.to_company().rate_tables] == ["YK"]

    def test_sub_carrier_clean_rejects_bad_ranges(self):
        company = _mk_company()
        row = SubCarrier(company=company, code="X", name="X",
                         cod_ranges=[{"min": 10, "max": 5, "price": 1}])
        with pytest.raises(ValidationError):
            row.full_clean()
