from datetime import timedelta

from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from ..dataclasses import (
    STATUS_DELIVERED,
    STATUS_PREPARING,
    STATUS_RETURNED,
    STATUS_SHIPPED,
)
from ..services.status_classifier import (
    FEST_STATUS_TABLE,
    RISK_LONG_DISTRIBUTION,
    RISK_NO_MOVEMENT,
    RISK_STUCK_PACKAGING,
    RISK_WAITING_BRANCH,
    classify,
    is_long_distribution,
    is_problematic,
    is_stuck,
    is_stuck_in_packaging,
    is_waiting_at_branch,
    lifecycle_for,
    needs_action,
    risk_flags,
)


class ClassifyTests(SimpleTestCase):
    def test_return_started_is_returned_and_problematic(self):
        c = classify("20")
        self.assertEqual(c.lifecycle, STATUS_RETURNED)
        self.assertTrue(c.is_problematic)
        self.assertTrue(c.is_known)

    def test_returned_to_sender_is_problematic(self):
        c = classify("21")
        self.assertEqual(c.lifecycle, STATUS_RETURNED)
        self.assertTrue(c.is_problematic)

    def test_delivered(self):
        c = classify("10")
        self.assertEqual(c.lifecycle, STATUS_DELIVERED)
        self.assertFalse(c.is_problematic)

    def test_failed_delivery_stays_in_transit(self):
        for code in ("30", "50", "60"):
            self.assertEqual(lifecycle_for(code), STATUS_SHIPPED)
            self.assertTrue(is_problematic(code))

    def test_in_transit_codes(self):
        for code in ("40", "41", "42"):
            c = classify(code)
            self.assertEqual(c.lifecycle, STATUS_SHIPPED)
            self.assertFalse(c.is_problematic)

    def test_whitespace_is_ignored(self):
        self.assertEqual(classify(" 21 ").lifecycle, STATUS_RETURNED)

    def test_unknown_code_is_preparing_and_logged(self):
        with self.assertLogs("shipping.services.status_classifier", level="WARNING"):
            c = classify("99")
        self.assertEqual(c.lifecycle, STATUS_PREPARING)
        self.assertFalse(c.is_problematic)
        self.assertFalse(c.is_known)

    def test_none_is_handled(self):
        with self.assertLogs("shipping.services.status_classifier", level="WARNING"):
            self.assertEqual(classify(None).lifecycle, STATUS_PREPARING)

    def test_every_problematic_code_has_a_lifecycle(self):
        self.assertTrue(FEST_STATUS_TABLE.problematic <= set(FEST_STATUS_TABLE.lifecycle))

    def test_unknown_carrier_uses_aggregator_table(self):
        self.assertEqual(lifecycle_for("10", carrier="SOMETHING"), STATUS_DELIVERED)


class StuckTests(SimpleTestCase):
    def setUp(self):
        self.now = timezone.now()

    def test_exactly_threshold_is_not_stuck(self):
        self.assertFalse(is_stuck(self.now - timedelta(days=3), now=self.now, threshold_days=3))

    def test_beyond_threshold_is_stuck(self):
        last = self.now - timedelta(days=3, seconds=1)
        self.assertTrue(is_stuck(last, now=self.now, status=STATUS_SHIPPED, threshold_days=3))

    def test_four_days_without_movement(self):
        self.assertTrue(is_stuck(self.now - timedelta(days=4), now=self.now, status=STATUS_SHIPPED))

    def test_delivered_is_never_stuck(self):
        last = self.now - timedelta(days=30)
        self.assertFalse(is_stuck(last, now=self.now, status=STATUS_DELIVERED))

    def test_no_movement_date(self):
        self.assertFalse(is_stuck(None, now=self.now))

    @override_settings(SHIPMENT_STUCK_THRESHOLD_DAYS=10)
    def test_threshold_from_settings(self):
        self.assertFalse(is_stuck(self.now - timedelta(days=5), now=self.now))

    def test_out_for_delivery_five_days_is_stuck_not_problematic(self):
        last = self.now - timedelta(days=5)
        self.assertFalse(is_problematic("42"))
        self.assertTrue(is_stuck(last, now=self.now, status=lifecycle_for("42")))


class RiskTests(SimpleTestCase):
    def setUp(self):
        self.now = timezone.now()

    def ago(self, **kw):
        return self.now - timedelta(**kw)

    def test_packaging(self):
        self.assertTrue(is_stuck_in_packaging(STATUS_PREPARING, self.ago(days=2, hours=1), self.now))
        self.assertFalse(is_stuck_in_packaging(STATUS_PREPARING, self.ago(days=2), self.now))
        self.assertFalse(is_stuck_in_packaging(STATUS_SHIPPED, self.ago(days=5), self.now))

    def test_long_distribution(self):
        self.assertTrue(is_long_distribution(STATUS_SHIPPED, self.ago(days=8), self.now))
        self.assertFalse(is_long_distribution(STATUS_SHIPPED, self.ago(days=7), self.now))
        self.assertFalse(is_long_distribution(STATUS_RETURNED, self.ago(days=30), self.now))

    def test_waiting_at_branch(self):
        self.assertTrue(is_waiting_at_branch("41", self.ago(days=1, minutes=1), self.now))
        self.assertFalse(is_waiting_at_branch("41", self.ago(hours=20), self.now))
        self.assertFalse(is_waiting_at_branch("42", self.ago(days=3), self.now))
        self.assertFalse(is_waiting_at_branch(None, self.ago(days=3), self.now))

    def test_no_movement_date_has_no_risks(self):
        self.assertEqual(risk_flags("41", STATUS_SHIPPED, None, self.now), frozenset())

    def test_flags_combine(self):
        flags = risk_flags("40", STATUS_SHIPPED, self.ago(days=8), self.now)
        self.assertEqual(flags, {RISK_NO_MOVEMENT, RISK_LONG_DISTRIBUTION})

        flags = risk_flags("01", STATUS_PREPARING, self.ago(days=2, hours=12), self.now)
        self.assertEqual(flags, {RISK_STUCK_PACKAGING})

    def test_delivered_has_no_risks(self):
        self.assertEqual(risk_flags("10", STATUS_DELIVERED, self.ago(days=30), self.now), frozenset())

    def test_action_needed(self):
        # at the branch for two days: not yet stuck, but the customer needs a call
        self.assertTrue(needs_action("41", STATUS_SHIPPED, self.ago(days=2), self.now))
        self.assertIn(RISK_WAITING_BRANCH, risk_flags("41", STATUS_SHIPPED, self.ago(days=2), self.now))
        self.assertTrue(needs_action("40", STATUS_SHIPPED, self.ago(days=4), self.now))
        self.assertFalse(needs_action("01", STATUS_PREPARING, self.ago(days=2, hours=12), self.now))
