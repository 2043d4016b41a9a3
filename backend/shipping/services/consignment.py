"""
Maps an order and the chosen sub-carrier onto the aggregator's consignment
wire format. No network I/O happens here.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..dataclasses import (
    ConsignmentPayload,
    OrderInput,
    PAYMENT_CC_ON_DOOR,
    PAYMENT_COD,
    RateTable,
)
from .eligibility import supports_payment
from .errors import IneligibleCarrierError
from .utils import non_negative, q2

logger = logging.getLogger(__name__)

# amount_type_id values understood by the carrier
AMOUNT_TYPE_SENDER_PAYS = 1
AMOUNT_TYPE_FEE_TO_RECIPIENT = 2
AMOUNT_TYPE_CASH_ON_DOOR = 3
AMOUNT_TYPE_CREDIT_CARD = 5
AMOUNT_TYPE_CARD_ON_DOOR = 6

CONSIGNMENT_TYPE_STANDARD = 103
DEFAULT_CUSTOMER_NAME = "Unknown"


def amount_type_for(payment_method: str) -> int:
    if payment_method == PAYMENT_COD:
        return AMOUNT_TYPE_CASH_ON_DOOR
    if payment_method == PAYMENT_CC_ON_DOOR:
        return AMOUNT_TYPE_CARD_ON_DOOR
    return AMOUNT_TYPE_SENDER_PAYS


def build_summary(order: OrderInput) -> str:
    variant = (order.variant_selection or "").strip() or "Standard"
    return f"{order.product_name} ({variant})"


def map_consignment(
    order: OrderInput,
    table: RateTable,
    *,
    branch_code: Optional[str] = None,
    cod_amount=None,
    allow_override: bool = False,
) -> ConsignmentPayload:
    """
    Build the consignment request for ``order`` through sub-carrier ``table``.

    Args:
        order: the order being shipped
        table: chosen sub-carrier
        branch_code: overrides the sub-carrier's configured branch
        cod_amount: overrides the collected amount (defaults to the order total)
        allow_override: the operator acknowledged a payment-method mismatch

    Raises:
        IneligibleCarrierError: the sub-carrier cannot collect this payment
            method or is inactive, and no override was acknowledged
        InvalidQuoteInputError: negative amount override
    """
    if not table.is_active or not supports_payment(table, order.payment_method):
        reason = (
            f"{table.name or table.code} is inactive" if not table.is_active
            else f"{table.name or table.code} does not support {order.payment_method} payments"
        )
        if not allow_override:
            raise IneligibleCarrierError(reason)
        logger.warning("Order %s: operator override, %s", order.order_number, reason)

    amount = order.total_amount if cod_amount is None else cod_amount
    amount = q2(non_negative(amount, "cod_amount"))

    return ConsignmentPayload(
        customer=(order.customer_name or "").strip() or DEFAULT_CUSTOMER_NAME,
        province_name=order.city,
        county_name=order.district,
        district=order.district,
        address=order.address,
        telephone=order.phone,
        branch_code=branch_code if branch_code else table.branch_code,
        consignment_type_id=CONSIGNMENT_TYPE_STANDARD,
        amount_type_id=amount_type_for(order.payment_method),
        amount=f"{amount:.2f}",
        order_number=order.order_number,
        quantity=1,
        summary=build_summary(order),
    )
