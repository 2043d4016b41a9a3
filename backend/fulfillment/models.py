from decimal import Decimal

from django.db import models
from django.utils import timezone

from shipping.dataclasses import (
    STATUS_CANCELLED,
    STATUS_DELIVERED,
    STATUS_PREPARING,
    STATUS_RETURNED,
    STATUS_SHIPPED,
    TERMINAL_STATUSES,
)
from shipping.services.status_classifier import is_problematic, is_stuck, needs_action, risk_flags


class Shipment(models.Model):
    STATUS_CHOICES = [
        (STATUS_PREPARING, 'Preparing'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_RETURNED, 'Returned'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.PROTECT, related_name='shipments')
    company = models.ForeignKey('shipping.ShippingCompany', on_delete=models.PROTECT, related_name='shipments')
    sub_carrier_code = models.CharField(max_length=32)
    tracking_code = models.CharField(max_length=64)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PREPARING)
    # raw carrier code, kept even when it does not move a terminal shipment
    fest_status_code = models.CharField(max_length=8, blank=True, null=True)
    amount_type_id = models.PositiveSmallIntegerField()
    cod_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    last_movement_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipments'
        unique_together = (('company', 'tracking_code'),)
        indexes = [
            models.Index(fields=['status', 'last_movement_date'], name='shipments_status_idx'),
        ]

    def __str__(self):
        return f"{self.tracking_code} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_problematic(self) -> bool:
        if not self.fest_status_code:
            return False
        return is_problematic(self.fest_status_code, self.company.code)

    def stuck(self, now=None, threshold_days=None) -> bool:
        last = self.last_movement_date or self.created_at
        return is_stuck(last, now or timezone.now(), self.status, threshold_days)

    def risks(self, now=None):
        last = self.last_movement_date or self.created_at
        return risk_flags(self.fest_status_code, self.status, last, now or timezone.now(), self.company.code)

    def needs_action(self, now=None) -> bool:
        last = self.last_movement_date or self.created_at
        return needs_action(self.fest_status_code, self.status, last, now or timezone.now(), self.company.code)


class ConsignmentAttempt(models.Model):
    STATE_PENDING = 'PENDING'
    STATE_ACCEPTED = 'ACCEPTED'
    STATE_FAILED = 'FAILED'
    STATE_CANCEL_REQUESTED = 'CANCEL_REQUESTED'
    STATE_CANCELLED = 'CANCELLED'
    STATE_CHOICES = [
        (STATE_PENDING, 'Pending'),
        (STATE_ACCEPTED, 'Accepted'),
        (STATE_FAILED, 'Failed'),
        (STATE_CANCEL_REQUESTED, 'Cancel requested'),
        (STATE_CANCELLED, 'Cancelled'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.PROTECT, related_name='consignment_attempts')
    company = models.ForeignKey('shipping.ShippingCompany', on_delete=models.PROTECT, related_name='+')
    sub_carrier_code = models.CharField(max_length=32)
    state = models.CharField(max_length=20, choices=STATE_CHOICES, default=STATE_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)
    tracking_code = models.CharField(max_length=64, blank=True)
    payload = models.JSONField(default=dict)
    # client-chosen key for cancelling an in-flight submission and safe resubmits
    submission_key = models.CharField(max_length=64, null=True, blank=True, unique=True)
    shipment = models.OneToOneField(Shipment, on_delete=models.SET_NULL, null=True, blank=True, related_name='attempt')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'consignment_attempts'
        indexes = [
            models.Index(fields=['order', '-created_at'], name='attempts_order_idx'),
        ]

    def __str__(self):
        return f"{self.order_id}/{self.sub_carrier_code} {self.state}"
