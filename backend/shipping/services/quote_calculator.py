"""
Shipping quote calculation over a single sub-carrier rate table.

Breakdown order is fixed: transport, service fee (legacy rules only), COD
commission, card commission. Every line is quantized to two places and the
total is the exact sum of the lines.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from ..dataclasses import (
    PAYMENT_CC_ON_DOOR,
    Quote,
    QuoteLine,
    RateTable,
    SimulationResult,
)
from .errors import NoApplicableTierError
from .utils import ZERO, non_negative, q2

logger = logging.getLogger(__name__)

LINE_TRANSPORT = "TRANSPORT"
LINE_SERVICE_FEE = "SERVICE_FEE"
LINE_COD_COMMISSION = "COD_COMMISSION"
LINE_CARD_COMMISSION = "CARD_COMMISSION"

LABELS = {
    LINE_TRANSPORT: "Transport",
    LINE_SERVICE_FEE: "Service fee",
    LINE_COD_COMMISSION: "Collection commission",
    LINE_CARD_COMMISSION: "Card commission",
}


def transport_cost(table: RateTable, desi) -> Decimal:
    """
    Price of the first desi range with maxDesi >= desi. Tables without desi
    ranges price transport at ``fixed_price``.
    """
    desi = non_negative(desi, "desi")
    if not table.desi_ranges:
        return table.fixed_price
    for r in table.desi_ranges:
        if r.max_desi >= desi:
            return r.price
    raise NoApplicableTierError("desi", desi, table.code)


def cod_commission(table: RateTable, cod_amount) -> Decimal | None:
    """Collection commission for ``cod_amount``; None when nothing is collected."""
    cod_amount = non_negative(cod_amount, "cod_amount")
    if cod_amount == ZERO:
        return None
    if not table.cod_ranges:
        if table.is_cash_on_door_available or table.is_card_on_door_available:
            logger.warning(
                "%s collects on delivery but has no COD commission ranges; %s quoted without commission",
                table.code, cod_amount,
            )
        return None
    for r in table.cod_ranges:
        if r.covers(cod_amount):
            return r.price
    raise NoApplicableTierError("cod", cod_amount, table.code)


def card_commission(table: RateTable, cod_amount, payment_method: str) -> Decimal | None:
    cod_amount = non_negative(cod_amount, "cod_amount")
    if payment_method != PAYMENT_CC_ON_DOOR or cod_amount == ZERO or table.card_commission == ZERO:
        return None
    return q2(cod_amount * table.card_commission)


def _quote(lines: List[QuoteLine]) -> Quote:
    total = sum((ln.amount for ln in lines), ZERO)
    return Quote(total_cost=total, breakdown=tuple(lines))


def _line(code: str, amount) -> QuoteLine:
    return QuoteLine(code=code, label=LABELS[code], amount=q2(amount))


def calculate_quote(table: RateTable, desi, cod_amount=0, payment_method: str = "") -> Quote:
    """
    Compute the shipping cost of one parcel through ``table``.

    Args:
        table: the chosen sub-carrier's rate table
        desi: parcel size in desi
        cod_amount: amount collected at the door (0 for prepaid orders)
        payment_method: the order's payment method

    Returns:
        Quote: total and ordered breakdown

    Raises:
        InvalidQuoteInputError: negative or non-numeric desi/cod_amount
        NoApplicableTierError: no desi or COD range covers the input
    """
    desi = non_negative(desi, "desi")
    cod_amount = non_negative(cod_amount, "cod_amount")

    lines = [_line(LINE_TRANSPORT, transport_cost(table, desi))]
    if table.service_fee > ZERO:
        lines.append(_line(LINE_SERVICE_FEE, table.service_fee))
    commission = cod_commission(table, cod_amount)
    if commission is not None:
        lines.append(_line(LINE_COD_COMMISSION, commission))
    card_fee = card_commission(table, cod_amount, payment_method)
    if card_fee is not None:
        lines.append(_line(LINE_CARD_COMMISSION, card_fee))
    return _quote(lines)


def simulate_quote(table: RateTable, desi, cod_amount=0, payment_method: str = "") -> SimulationResult:
    """
    Same computation as ``calculate_quote`` for operators editing a table:
    missing tiers become notes instead of errors so the rest of the
    breakdown is still shown.
    """
    desi = non_negative(desi, "desi")
    cod_amount = non_negative(cod_amount, "cod_amount")
    notes: List[str] = []
    lines: List[QuoteLine] = []

    try:
        lines.append(_line(LINE_TRANSPORT, transport_cost(table, desi)))
    except NoApplicableTierError as exc:
        notes.append(str(exc))
    if table.service_fee > ZERO:
        lines.append(_line(LINE_SERVICE_FEE, table.service_fee))
    try:
        commission = cod_commission(table, cod_amount)
    except NoApplicableTierError as exc:
        notes.append(str(exc))
        commission = None
    if commission is not None:
        lines.append(_line(LINE_COD_COMMISSION, commission))
    card_fee = card_commission(table, cod_amount, payment_method)
    if card_fee is not None:
        lines.append(_line(LINE_CARD_COMMISSION, card_fee))
    return SimulationResult(quote=_quote(lines), notes=tuple(notes))


def return_cost(table: RateTable) -> Decimal:
    """Flat cost the carrier charges for sending a parcel back."""
    return q2(table.return_price)
