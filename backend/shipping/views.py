from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order

from .dataclasses import PAYMENT_CC_ON_DOOR, PAYMENT_COD
from .models import ShippingCompany, SubCarrier
from .serializers import (
    ClassifyStatusInputSerializer,
    EligibleCarriersInputSerializer,
    OperationalCostInputSerializer,
    QuoteInputSerializer,
    ShippingCompanySerializer,
    SimulateQuoteInputSerializer,
    SubCarrierSerializer,
)
from .services import config_service
from .services.eligibility import eligible_carriers
from .services.errors import (
    CarrierSubmissionError,
    ConfigurationError,
    IneligibleCarrierError,
    InvalidQuoteInputError,
    NoApplicableTierError,
    ShipmentStateError,
    ShippingEngineError,
    SubmissionCancelledError,
)
from .services.operational_cost import estimate_operational_cost
from .services.quote_calculator import calculate_quote, simulate_quote
from .services.rate_table import build_rate_table
from .services.status_classifier import classify, is_stuck
from .services.utils import ZERO

logger = logging.getLogger(__name__)


def engine_error_response(exc: ShippingEngineError) -> Response:
    """Translate an engine error into the operator-facing HTTP answer."""
    if isinstance(exc, ConfigurationError):
        return Response({"error": "Invalid configuration", "errors": exc.errors}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, NoApplicableTierError):
        return Response(
            {"error": f"Cannot quote; configure a {exc.tier} tier", "tier": exc.tier, "value": str(exc.value)},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if isinstance(exc, IneligibleCarrierError):
        # the operator may resubmit with acknowledge_warning=true
        return Response({"error": exc.reason, "warning": exc.reason, "can_override": True}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, InvalidQuoteInputError):
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, CarrierSubmissionError):
        return Response(
            {"error": str(exc), "retryable": exc.retryable, "attempts": exc.attempts},
            status=status.HTTP_502_BAD_GATEWAY if exc.retryable else status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, (SubmissionCancelledError, ShipmentStateError)):
        return Response({"error": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _companies():
    return ShippingCompany.objects.prefetch_related('sub_carriers').order_by('id')


def _order_context(data):
    """(payment_method, cod_amount, is_rural, order) from explicit input or the order."""
    order = None
    if data.get("order_id"):
        order = get_object_or_404(Order, pk=data["order_id"])
    payment_method = data.get("payment_method") or order.payment_method
    cod_amount = data.get("cod_amount")
    if cod_amount is None:
        collected = order is not None and payment_method in (PAYMENT_COD, PAYMENT_CC_ON_DOOR)
        cod_amount = order.total_amount if collected else ZERO
    is_rural = data.get("is_rural") or (order.is_rural if order is not None else False)
    return payment_method, cod_amount, is_rural, order


def _rate_table(company_id: int, code: str):
    company = get_object_or_404(_companies(), pk=company_id)
    table = company.to_company().find(code)
    if table is None:
        raise NotFound(f"{company.code} has no sub-carrier {code!r}")
    return table


class ShippingCompanyListView(APIView):
    def get(self, request):
        return Response(ShippingCompanySerializer(_companies(), many=True).data)


class SubCarrierCreateView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, company_id):
        get_object_or_404(ShippingCompany, pk=company_id)
        try:
            row = config_service.add_sub_carrier(company_id, request.data)
        except ConfigurationError as exc:
            return engine_error_response(exc)
        return Response(SubCarrierSerializer(row).data, status=status.HTTP_201_CREATED)


class SubCarrierDetailView(APIView):
    permission_classes = [IsAdminUser]

    def put(self, request, company_id, code):
        get_object_or_404(ShippingCompany, pk=company_id)
        try:
            row = config_service.replace_sub_carrier(company_id, code, request.data)
        except SubCarrier.DoesNotExist:
            raise NotFound(f"No sub-carrier {code!r}")
        except ConfigurationError as exc:
            return engine_error_response(exc)
        return Response(SubCarrierSerializer(row).data)

    def delete(self, request, company_id, code):
        get_object_or_404(ShippingCompany, pk=company_id)
        try:
            config_service.remove_sub_carrier(company_id, code)
        except SubCarrier.DoesNotExist:
            raise NotFound(f"No sub-carrier {code!r}")
        return Response(status=status.HTTP_204_NO_CONTENT)


class EligibleCarriersView(APIView):
    def post(self, request):
        ser = EligibleCarriersInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        payment_method, cod_amount, is_rural, _ = _order_context(data)
        try:
            companies = [c.to_company() for c in _companies()]
        except ConfigurationError as exc:
            return engine_error_response(exc)

        out = []
        for pair in eligible_carriers(companies, payment_method, is_rural):
            row = {
                "company_id": pair.company.id,
                "company_code": pair.company.code,
                "company_name": pair.company.name,
                "company_type": pair.company.type,
                "is_default": pair.company.is_default,
                "sub_carrier_code": pair.rate_table.code,
                "sub_carrier_name": pair.rate_table.name,
                "branch_code": pair.rate_table.branch_code,
            }
            if data.get("desi") is not None:
                try:
                    row["quote"] = calculate_quote(pair.rate_table, data["desi"], cod_amount, payment_method).to_dict()
                except ShippingEngineError as exc:
                    row["quote"] = None
                    row["quote_error"] = str(exc)
            out.append(row)
        return Response({"payment_method": payment_method, "is_rural": is_rural, "carriers": out})


class QuoteView(APIView):
    """Customer-facing shipping quote; carries no margin information."""

    def post(self, request):
        ser = QuoteInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        payment_method, cod_amount, _, _ = _order_context(data)
        try:
            table = _rate_table(data["company_id"], data["sub_carrier_code"])
            quote = calculate_quote(table, data["desi"], cod_amount, payment_method)
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        return Response(quote.to_dict())


class OperationalCostView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        ser = OperationalCostInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        payment_method, cod_amount, _, order = _order_context(data)
        revenue = data.get("revenue")
        if revenue is None:
            revenue = order.total_amount
        try:
            table = _rate_table(data["company_id"], data["sub_carrier_code"])
            quote = calculate_quote(table, data["desi"], cod_amount, payment_method)
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        cost = estimate_operational_cost(quote, revenue)
        return Response({
            "quote": quote.to_dict(),
            "revenue": str(cost.revenue),
            "profit": str(cost.profit),
            "is_loss": cost.is_loss,
        })


class SimulateQuoteView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        ser = SimulateQuoteInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            table = build_rate_table(data["sub_carrier"])
            result = simulate_quote(table, data["desi"], data["cod_amount"], data["payment_method"])
        except ShippingEngineError as exc:
            return engine_error_response(exc)
        return Response({"quote": result.quote.to_dict(), "notes": list(result.notes)})


class ClassifyStatusView(APIView):
    def post(self, request):
        ser = ClassifyStatusInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        c = classify(data["code"], data["carrier"])
        body = {
            "code": c.code,
            "lifecycle": c.lifecycle,
            "is_problematic": c.is_problematic,
            "is_known": c.is_known,
            "label": c.label,
        }
        if data.get("last_movement_date") is not None:
            body["is_stuck"] = is_stuck(data["last_movement_date"], status=data.get("status") or c.lifecycle)
        return Response(body)
