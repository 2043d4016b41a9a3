# fulfillment/views.py
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from shipping.models import ShippingCompany
from shipping.services.errors import ShippingEngineError
from shipping.services.status_classifier import RISKS
from shipping.views import engine_error_response

from .models import ConsignmentAttempt, Shipment
from .serializers import (
    ConsignmentAttemptSerializer,
    ShipmentCreateSerializer,
    ShipmentSerializer,
    StatusUpdateSerializer,
)
from .services import (
    apply_status_code,
    cancel_shipment,
    create_shipment,
    request_cancellation,
    summarize_shipments,
)


def _flag(request, name):
    raw = request.query_params.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


def _shipments(request):
    """Shipments narrowed by the ``status`` and ``sub_carrier`` query parameters."""
    qs = (Shipment.objects
          .select_related('company', 'order')
          .order_by('-created_at'))
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'].strip().upper())
    if request.query_params.get('sub_carrier'):
        qs = qs.filter(sub_carrier_code__iexact=request.query_params['sub_carrier'].strip())
    return qs


# ---- Shipments: list with derived flags, create by submitting to the carrier ----
class ShipmentListCreateView(APIView):
    def get(self, request):
        risk = (request.query_params.get('risk') or '').strip().upper() or None
        if risk is not None and risk not in RISKS:
            raise ValidationError({'risk': f"Unknown risk {risk!r}; expected one of {', '.join(RISKS)}"})
        now = timezone.now()
        stuck = _flag(request, 'stuck')
        problematic = _flag(request, 'problematic')
        rows = [
            s for s in _shipments(request)
            if (stuck is None or s.stuck(now=now) == stuck)
            and (problematic is None or s.is_problematic == problematic)
            and (risk is None or risk in s.risks(now=now))
        ]
        return Response(ShipmentSerializer(rows, many=True, context={'now': now}).data)

    def post(self, request):
        ser = ShipmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        order = get_object_or_404(Order.objects.select_related('customer'), pk=data['order_id'])
        company = get_object_or_404(ShippingCompany.objects.prefetch_related('sub_carriers'), pk=data['company_id'])
        submission_key = data.get('submission_key') or request.headers.get('Submission-Key') or None

        try:
            shipment = create_shipment(
                order,
                company,
                data['sub_carrier_code'],
                cod_amount=data.get('cod_amount'),
                branch_code=data.get('branch_code') or None,
                tracking_code=data.get('tracking_code') or None,
                acknowledge_warning=data['acknowledge_warning'],
                submission_key=submission_key,
            )
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        return Response(ShipmentSerializer(shipment).data, status=status.HTTP_201_CREATED)


class ShipmentStatsView(APIView):
    """Dashboard counts over the same shipments the list shows."""

    def get(self, request):
        return Response(summarize_shipments(_shipments(request), now=timezone.now()))


class ShipmentStatusView(APIView):
    def post(self, request, id):
        shipment = get_object_or_404(Shipment.objects.select_related('company', 'order'), pk=id)
        ser = StatusUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        classification = apply_status_code(shipment, ser.validated_data['code'], ser.validated_data.get('movement_at'))
        body = ShipmentSerializer(shipment).data
        body['classification'] = {
            'code': classification.code,
            'lifecycle': classification.lifecycle,
            'is_problematic': classification.is_problematic,
            'is_known': classification.is_known,
            'label': classification.label,
        }
        return Response(body)


class ShipmentCancelView(APIView):
    def post(self, request, id):
        shipment = get_object_or_404(Shipment.objects.select_related('company', 'order'), pk=id)
        try:
            cancel_shipment(shipment)
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        return Response(ShipmentSerializer(shipment).data)


class AttemptCancelView(APIView):
    """Cancel an in-flight submission, e.g. when the operator closes the dialog."""

    def post(self, request, key):
        try:
            attempt = request_cancellation(key)
        except ConsignmentAttempt.DoesNotExist:
            raise NotFound(f"No submission {key!r}")
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        return Response(ConsignmentAttemptSerializer(attempt).data, status=status.HTTP_202_ACCEPTED)
