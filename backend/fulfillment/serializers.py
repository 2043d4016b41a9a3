from __future__ import annotations

from rest_framework import serializers

from .models import ConsignmentAttempt, Shipment


class ShipmentSerializer(serializers.ModelSerializer):
    company_code = serializers.CharField(source="company.code", read_only=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    # derived on every read, never stored
    is_problematic = serializers.SerializerMethodField()
    is_stuck = serializers.SerializerMethodField()
    risks = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = [
            "id", "order", "order_number", "company", "company_code",
            "sub_carrier_code", "tracking_code", "status", "fest_status_code",
            "amount_type_id", "cod_amount", "last_movement_date",
            "created_at", "updated_at", "is_problematic", "is_stuck", "risks",
        ]
        read_only_fields = fields

    def get_is_problematic(self, obj):
        return obj.is_problematic

    def get_is_stuck(self, obj):
        return obj.stuck(now=self.context.get("now"))

    def get_risks(self, obj):
        return sorted(obj.risks(now=self.context.get("now")))


class ConsignmentAttemptSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConsignmentAttempt
        fields = [
            "id", "order", "company", "sub_carrier_code", "state", "attempts",
            "last_error", "tracking_code", "submission_key", "shipment",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class ShipmentCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    company_id = serializers.IntegerField()
    sub_carrier_code = serializers.CharField(max_length=32)
    cod_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    branch_code = serializers.CharField(max_length=32, required=False, allow_blank=True)
    tracking_code = serializers.CharField(max_length=64, required=False, allow_blank=True)
    acknowledge_warning = serializers.BooleanField(required=False, default=False)
    submission_key = serializers.CharField(max_length=64, required=False, allow_blank=True)


class StatusUpdateSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)
    movement_at = serializers.DateTimeField(required=False)
