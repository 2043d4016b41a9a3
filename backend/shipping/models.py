from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models, transaction

from .dataclasses import COMPANY_AGGREGATOR, COMPANY_DIRECT, CarrierCompany, RateTable
from .services.errors import ConfigurationError
from .services.rate_table import build_legacy_tables, build_rate_table


class ShippingCompany(models.Model):
    TYPE_CHOICES = [(COMPANY_DIRECT, 'Direct'), (COMPANY_AGGREGATOR, 'Aggregator')]

    name = models.CharField(max_length=120)
    code = models.CharField(max_length=32, unique=True)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    is_active = models.BooleanField(default=True)
    is_default = models.BooleanField(default=False)
    handles_rural_addresses = models.BooleanField(
        default=False,
        help_text="Can deliver to addresses flagged as rural",
    )
    # Legacy DIRECT pricing: [{carrierCode, allowedPaymentMethods, baseCost, serviceFee, codCommission}]
    pricing_rules = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipping_companies'
        ordering = ['id']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        if self.pricing_rules and self.type != COMPANY_DIRECT:
            raise ValidationError({'pricing_rules': "Only DIRECT companies carry pricing rules"})
        try:
            build_legacy_tables(self.pricing_rules)
        except ConfigurationError as exc:
            raise ValidationError({'pricing_rules': exc.errors})

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.is_default:
                ShippingCompany.objects.filter(is_default=True).exclude(pk=self.pk).update(is_default=False)
            super().save(*args, **kwargs)

    def to_company(self) -> CarrierCompany:
        return CarrierCompany(
            id=self.pk,
            name=self.name,
            code=self.code,
            type=self.type,
            is_active=self.is_active,
            is_default=self.is_default,
            handles_rural_addresses=self.handles_rural_addresses,
            sub_carriers=tuple(sc.to_rate_table() for sc in self.sub_carriers.all()),
            legacy_tables=build_legacy_tables(self.pricing_rules) if self.type == COMPANY_DIRECT else (),
        )


class SubCarrier(models.Model):
    company = models.ForeignKey(ShippingCompany, on_delete=models.CASCADE, related_name='sub_carriers')
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=120)
    branch_code = models.CharField(max_length=32, blank=True)
    is_active = models.BooleanField(default=True)
    is_cash_on_door_available = models.BooleanField(default=False)
    is_card_on_door_available = models.BooleanField(default=False)
    fixed_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    return_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    # fraction of the collected amount, 0-1
    card_commission = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal('0'))
    # [{maxDesi, price}] ascending by maxDesi
    desi_ranges = models.JSONField(default=list, blank=True)
    # [{min, max, price}], max null = unbounded
    cod_ranges = models.JSONField(default=list, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'shipping_sub_carriers'
        ordering = ['position', 'id']
        unique_together = (('company', 'code'),)

    def __str__(self):
        return f"{self.company.code}/{self.code}"

    def as_config(self) -> dict:
        return {
            'code': self.code,
            'name': self.name,
            'branch_code': self.branch_code,
            'is_active': self.is_active,
            'is_cash_on_door_available': self.is_cash_on_door_available,
            'is_card_on_door_available': self.is_card_on_door_available,
            'fixed_price': self.fixed_price,
            'return_price': self.return_price,
            'card_commission': self.card_commission,
            'desi_ranges': self.desi_ranges,
            'cod_ranges': self.cod_ranges,
        }

    def clean(self):
        try:
            build_rate_table(self.as_config())
        except ConfigurationError as exc:
            raise ValidationError(exc.errors)

    def to_rate_table(self) -> RateTable:
        return build_rate_table(self.as_config())

    def apply_table(self, table: RateTable) -> None:
        """Overwrite every configurable field from ``table``."""
        data = table.to_dict()
        for field, value in data.items():
            if field in ('fixed_price', 'return_price', 'card_commission'):
                value = getattr(table, field)
            setattr(self, field, value)
