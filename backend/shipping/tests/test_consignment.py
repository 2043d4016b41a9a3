from decimal import Decimal

import pytest

from ..dataclasses import (
    PAYMENT_CC_ON_DOOR,
    PAYMENT_COD,
    PAYMENT_ONLINE,
    PAYMENT_WIRE,
    OrderInput,
    RateTable,
)
from ..services.consignment import (
    AMOUNT_TYPE_CARD_ON_DOOR,
    AMOUNT_TYPE_CASH_ON_DOOR,
    AMOUNT_TYPE_SENDER_PAYS,
    CONSIGNMENT_TYPE_STANDARD,
    map_consignment,
)
from ..services.errors import IneligibleCarrierError, InvalidQuoteInputError

ARS = RateTable(code="ARS", name="Aras", branch_code="ARS01",
                is_cash_on_door_available=True, is_card_on_door_available=True)
HPS = RateTable(code="HPS", name="HepsiJet", branch_code="HPS01")


def _order(**kw):
    data = dict(
        order_number="ORD-1001",
        payment_method=PAYMENT_COD,
        total_amount=Decimal("349.9"),
        customer_name="Ayse Yilmaz",
        phone="05551112233",
        city="Istanbul",
        district="Kadikoy",
        address="Moda Cd. 12",
        product_name="Ceramic Mug",
        variant_selection="Blue",
    )
    data.update(kw)
    return OrderInput(**data)


def test_cod_order_payload():
    payload = map_consignment(_order(), ARS)
    assert payload.amount_type_id == AMOUNT_TYPE_CASH_ON_DOOR
    assert payload.amount == "349.90"
    assert payload.branch_code == "ARS01"
    assert payload.consignment_type_id == CONSIGNMENT_TYPE_STANDARD
    assert payload.quantity == 1
    assert payload.county_name == payload.district == "Kadikoy"
    assert payload.summary == "Ceramic Mug (Blue)"


def test_wire_format_field_order():
    keys = list(map_consignment(_order(), ARS).to_dict())
    assert keys == [
        "customer", "province_name", "county_name", "district", "address", "telephone",
        "branch_code", "consignment_type_id", "amount_type_id", "amount", "order_number",
        "quantity", "summary",
    ]


@pytest.mark.parametrize("method,expected", [
    (PAYMENT_CC_ON_DOOR, AMOUNT_TYPE_CARD_ON_DOOR),
    (PAYMENT_WIRE, AMOUNT_TYPE_SENDER_PAYS),
    (PAYMENT_ONLINE, AMOUNT_TYPE_SENDER_PAYS),
])
def test_amount_type_follows_payment_method(method, expected):
    assert map_consignment(_order(payment_method=method), ARS).amount_type_id == expected


def test_missing_variant_and_name_defaults():
    payload = map_consignment(_order(variant_selection="", customer_name="  "), ARS)
    assert payload.summary == "Ceramic Mug (Standard)"
    assert payload.customer == "Unknown"


def test_amount_and_branch_overrides():
    payload = map_consignment(_order(), ARS, cod_amount="100.005", branch_code="IST02")
    assert payload.amount == "100.01"
    assert payload.branch_code == "IST02"


def test_negative_amount_rejected():
    with pytest.raises(InvalidQuoteInputError):
        map_consignment(_order(), ARS, cod_amount=-1)


def test_incapable_sub_carrier_needs_acknowledgement():
    with pytest.raises(IneligibleCarrierError):
        map_consignment(_order(), HPS)
    payload = map_consignment(_order(), HPS, allow_override=True)
    assert payload.amount_type_id == AMOUNT_TYPE_CASH_ON_DOOR


def test_prepaid_order_through_non_cod_sub_carrier():
    payload = map_consignment(_order(payment_method=PAYMENT_ONLINE), HPS)
    assert payload.branch_code == "HPS01"
    assert payload.amount == "349.90"
