from __future__ import annotations

from rest_framework import serializers

from .dataclasses import PAYMENT_METHODS
from .models import ShippingCompany, SubCarrier


# ---------- CONFIGURATION (read) ----------
class SubCarrierSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubCarrier
        fields = [
            "id", "code", "name", "branch_code", "is_active",
            "is_cash_on_door_available", "is_card_on_door_available",
            "fixed_price", "return_price", "card_commission",
            "desi_ranges", "cod_ranges", "position",
        ]
        read_only_fields = fields


class ShippingCompanySerializer(serializers.ModelSerializer):
    sub_carriers = SubCarrierSerializer(many=True, read_only=True)

    class Meta:
        model = ShippingCompany
        fields = [
            "id", "name", "code", "type", "is_active", "is_default",
            "handles_rural_addresses", "pricing_rules", "sub_carriers",
        ]
        read_only_fields = fields


# ---------- ENGINE INPUTS ----------
class OrderContextMixin(serializers.Serializer):
    order_id = serializers.IntegerField(required=False)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False)

    def validate(self, attrs):
        if not attrs.get("order_id") and not attrs.get("payment_method"):
            raise serializers.ValidationError("Provide order_id or payment_method")
        return attrs


class EligibleCarriersInputSerializer(OrderContextMixin):
    is_rural = serializers.BooleanField(required=False, default=False)
    # when given, every eligible pair is quoted as well
    desi = serializers.DecimalField(max_digits=10, decimal_places=3, required=False)
    cod_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class QuoteInputSerializer(OrderContextMixin):
    company_id = serializers.IntegerField()
    sub_carrier_code = serializers.CharField(max_length=32)
    desi = serializers.DecimalField(max_digits=10, decimal_places=3)
    cod_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class OperationalCostInputSerializer(QuoteInputSerializer):
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs.get("revenue") is None and not attrs.get("order_id"):
            raise serializers.ValidationError("Provide order_id or revenue")
        return attrs


class SimulateQuoteInputSerializer(serializers.Serializer):
    sub_carrier = serializers.DictField()
    desi = serializers.DecimalField(max_digits=10, decimal_places=3)
    cod_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False, default="")


class ClassifyStatusInputSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True, trim_whitespace=True)
    carrier = serializers.CharField(required=False, default="FEST")
    last_movement_date = serializers.DateTimeField(required=False)
    status = serializers.CharField(required=False)
