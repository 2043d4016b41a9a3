from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from orders.models import Customer, Order

from ..dataclasses import COMPANY_AGGREGATOR, PAYMENT_CC_ON_DOOR, PAYMENT_COD, PAYMENT_ONLINE
from ..models import ShippingCompany
from ..services import config_service

pytestmark = pytest.mark.django_db


def _mk_client(is_staff=False, username="operator"):
    user = get_user_model().objects.create_user(username=username, password="pass", is_staff=is_staff)
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _mk_fest():
    company = ShippingCompany.objects.create(
        code="FEST", name="Fest Kargo", type=COMPANY_AGGREGATOR,
        is_default=True, handles_rural_addresses=True,
    )
    config_service.add_sub_carrier(company.id, {
        "code": "ARS", "name": "Aras", "branch_code": "ARS01",
        "is_cash_on_door_available": True,
        "desi_ranges": [{"maxDesi": 1, "price": 30}, {"maxDesi": 3, "price": 45}],
        "cod_ranges": [{"min": 0, "max": 500, "price": 10}, {"min": 500.01, "max": None, "price": 15}],
    })
    config_service.add_sub_carrier(company.id, {
        "code": "HPS", "name": "HepsiJet", "fixed_price": 38,
    })
    return company


def _mk_order(payment_method=PAYMENT_COD, total="300.00", **kw):
    customer = Customer.objects.create(name="Ayse", phone="0555", city="Istanbul", district="Kadikoy", address="Moda")
    return Order.objects.create(
        order_number=kw.pop("order_number", "ORD-1"), customer=customer,
        payment_method=payment_method, total_amount=Decimal(total),
        product_name="Mug", **kw,
    )


def test_anonymous_requests_rejected():
    r = APIClient().get("/api/shipping/companies/")
    assert r.status_code in (401, 403)


def test_list_companies_with_sub_carriers():
    _mk_fest()
    r = _mk_client().get("/api/shipping/companies/")
    assert r.status_code == 200
    assert [sc["code"] for sc in r.data[0]["sub_carriers"]] == ["ARS", "HPS"]


def test_quote_for_order():
    company = _mk_fest()
    order = _mk_order()
    r = _mk_client().post("/api/shipping/quote/", {
        "order_id": order.id, "company_id": company.id, "sub_carrier_code": "ARS", "desi": "2",
    }, format="json")
    assert r.status_code == 200, r.data
    assert r.data["total_cost"] == "55.00"
    assert [ln["code"] for ln in r.data["breakdown"]] == ["TRANSPORT", "COD_COMMISSION"]


def test_quote_for_prepaid_order_has_no_commission():
    company = _mk_fest()
    order = _mk_order(payment_method=PAYMENT_ONLINE)
    r = _mk_client().post("/api/shipping/quote/", {
        "order_id": order.id, "company_id": company.id, "sub_carrier_code": "ARS", "desi": "2",
    }, format="json")
    assert r.data["total_cost"] == "45.00"


def test_quote_without_matching_tier_is_422():
    company = _mk_fest()
    r = _mk_client().post("/api/shipping/quote/", {
        "payment_method": PAYMENT_ONLINE, "company_id": company.id, "sub_carrier_code": "ARS", "desi": "9",
    }, format="json")
    assert r.status_code == 422
    assert r.data["tier"] == "desi"


def test_quote_unknown_sub_carrier_is_404():
    company = _mk_fest()
    r = _mk_client().post("/api/shipping/quote/", {
        "payment_method": PAYMENT_COD, "company_id": company.id, "sub_carrier_code": "NOPE", "desi": "1",
    }, format="json")
    assert r.status_code == 404


def test_quote_requires_order_or_payment_method():
    company = _mk_fest()
    r = _mk_client().post("/api/shipping/quote/", {
        "company_id": company.id, "sub_carrier_code": "ARS", "desi": "1",
    }, format="json")
    assert r.status_code == 400


def test_eligible_carriers_for_cod_order():
    _mk_fest()
    order = _mk_order()
    r = _mk_client().post("/api/shipping/eligible-carriers/", {"order_id": order.id, "desi": "2"}, format="json")
    assert r.status_code == 200
    assert [c["sub_carrier_code"] for c in r.data["carriers"]] == ["ARS"]
    assert r.data["carriers"][0]["quote"]["total_cost"] == "55.00"


def test_eligible_carriers_reports_quote_errors_per_pair():
    _mk_fest()
    r = _mk_client().post("/api/shipping/eligible-carriers/",
                          {"payment_method": PAYMENT_ONLINE, "desi": "9"}, format="json")
    rows = {c["sub_carrier_code"]: c for c in r.data["carriers"]}
    assert rows["ARS"]["quote"] is None and "desi" in rows["ARS"]["quote_error"]
    assert rows["HPS"]["quote"]["total_cost"] == "38.00"


def test_card_on_door_order_has_no_eligible_carrier():
    _mk_fest()
    r = _mk_client().post("/api/shipping/eligible-carriers/",
                          {"payment_method": PAYMENT_CC_ON_DOOR}, format="json")
    assert r.data["carriers"] == []


def test_operational_cost_is_admin_only():
    company = _mk_fest()
    body = {"payment_method": PAYMENT_COD, "company_id": company.id, "sub_carrier_code": "ARS",
            "desi": "2", "cod_amount": "300", "revenue": "20"}
    assert _mk_client().post("/api/shipping/operational-cost/", body, format="json").status_code == 403
    r = _mk_client(is_staff=True, username="admin").post("/api/shipping/operational-cost/", body, format="json")
    assert r.status_code == 200
    assert r.data["profit"] == "-35.00"
    assert r.data["is_loss"] is True


def test_sub_carrier_edit_rejected_for_invalid_table():
    company = _mk_fest()
    admin = _mk_client(is_staff=True, username="admin")
    r = admin.put(f"/api/shipping/companies/{company.id}/sub-carriers/ARS/", {
        "code": "ARS", "name": "Aras",
        "cod_ranges": [{"min": 0, "max": 500, "price": 10}, {"min": 100, "max": 900, "price": 15}],
    }, format="json")
    assert r.status_code == 400
    assert r.data["errors"]
    assert company.sub_carriers.get(code="ARS").cod_ranges[1]["min"] == 500.01


def test_sub_carrier_create_and_delete():
    company = _mk_fest()
    admin = _mk_client(is_staff=True, username="admin")
    r = admin.post(f"/api/shipping/companies/{company.id}/sub-carriers/",
                   {"code": "PTT", "name": "PTT", "fixed_price": 30}, format="json")
    assert r.status_code == 201
    assert r.data["position"] == 2
    r = admin.delete(f"/api/shipping/companies/{company.id}/sub-carriers/PTT/")
    assert r.status_code == 204
    r = admin.delete(f"/api/shipping/companies/{company.id}/sub-carriers/PTT/")
    assert r.status_code == 404


def test_simulate_quote_returns_notes():
    r = _mk_client(is_staff=True, username="admin").post("/api/shipping/simulate/", {
        "sub_carrier": {"code": "T", "name": "T", "desi_ranges": [{"maxDesi": 1, "price": 30}]},
        "desi": "5",
    }, format="json")
    assert r.status_code == 200
    assert r.data["quote"]["breakdown"] == []
    assert len(r.data["notes"]) == 1


def test_classify_status():
    last = timezone.now() - timedelta(days=4)
    r = _mk_client().post("/api/shipping/classify-status/",
                          {"code": "20", "last_movement_date": last.isoformat()}, format="json")
    assert r.status_code == 200
    assert r.data["lifecycle"] == "RETURNED"
    assert r.data["is_problematic"] is True
    assert r.data["is_stuck"] is True
