from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from orders.models import Customer, Order
from shipping.dataclasses import STATUS_RETURNED, STATUS_SHIPPED, TrackingUpdate
from shipping.models import ShippingCompany
from fulfillment.models import Shipment
from shipping_engine.carriers.fest import FestCarrier


class SeedCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_shipping_companies", stdout=StringIO())
        call_command("seed_shipping_companies", stdout=StringIO())
        fest = ShippingCompany.objects.get(code="FEST")
        self.assertTrue(fest.is_default)
        self.assertEqual(list(fest.sub_carriers.values_list("code", flat=True)), ["ARS", "PTT", "HPS"])
        self.assertEqual(ShippingCompany.objects.count(), 2)

    def test_reset_tables_restores_defaults(self):
        call_command("seed_shipping_companies", stdout=StringIO())
        ShippingCompany.objects.get(code="FEST").sub_carriers.filter(code="ARS").update(fixed_price=Decimal("99"))
        call_command("seed_shipping_companies", "--reset-tables", stdout=StringIO())
        ars = ShippingCompany.objects.get(code="FEST").sub_carriers.get(code="ARS")
        self.assertEqual(ars.fixed_price, Decimal("0"))


class SimulateQuoteCommandTests(TestCase):
    def setUp(self):
        call_command("seed_shipping_companies", stdout=StringIO())

    def test_prints_breakdown(self):
        out = StringIO()
        call_command("simulate_quote", "--company", "fest", "--sub-carrier", "ARS",
                     "--desi", "2", "--cod-amount", "300", stdout=out)
        text = out.getvalue()
        self.assertIn("Transport", text)
        self.assertIn("55.00", text)

    def test_missing_tier_is_a_note(self):
        out = StringIO()
        call_command("simulate_quote", "--company", "FEST", "--sub-carrier", "ARS",
                     "--desi", "50", stdout=out)
        self.assertIn("desi", out.getvalue())

    def test_unknown_sub_carrier(self):
        with self.assertRaises(CommandError):
            call_command("simulate_quote", "--company", "FEST", "--sub-carrier", "NOPE",
                         "--desi", "1", stdout=StringIO())

    def test_bad_number(self):
        with self.assertRaises(CommandError):
            call_command("simulate_quote", "--company", "FEST", "--sub-carrier", "ARS",
                         "--desi", "big", stdout=StringIO())


class RefreshStatusesCommandTests(TestCase):
    def setUp(self):
        call_command("seed_shipping_companies", stdout=StringIO())
        customer = Customer.objects.create(name="Ayse", city="Istanbul", address="Moda")
        order = Order.objects.create(order_number="ORD-1", customer=customer, payment_method="COD",
                                     total_amount=Decimal("100"), product_name="Mug")
        self.shipment = Shipment.objects.create(
            order=order, company=ShippingCompany.objects.get(code="FEST"), sub_carrier_code="ARS",
            tracking_code="FST1", status=STATUS_SHIPPED, amount_type_id=3,
        )

    @patch.object(FestCarrier, "track")
    def test_applies_tracked_codes(self, track):
        track.return_value = [TrackingUpdate("FST1", "21")]
        out = StringIO()
        with self.settings(FEST_API_URL="https://fest.example"):
            call_command("refresh_shipment_statuses", stdout=out)
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, STATUS_RETURNED)
        self.assertIn("PROBLEM", out.getvalue())
        self.assertIn("Updated 1 shipment(s)", out.getvalue())

    def test_missing_api_url_is_reported(self):
        err = StringIO()
        with self.settings(FEST_API_URL=""):
            with self.assertRaises(CommandError):
                call_command("refresh_shipment_statuses", stdout=StringIO(), stderr=err)
        self.assertIn("FEST: tracking failed", err.getvalue())
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, STATUS_SHIPPED)
