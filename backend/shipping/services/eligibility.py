from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..dataclasses import (
    CarrierCompany,
    EligibleCarrier,
    PAYMENT_CC_ON_DOOR,
    PAYMENT_COD,
    RateTable,
)
from .errors import IneligibleCarrierError

logger = logging.getLogger(__name__)


def supports_payment(table: RateTable, payment_method: str) -> bool:
    """Capability check for the order's payment method; prepaid methods ship anywhere."""
    if payment_method == PAYMENT_COD:
        return table.is_cash_on_door_available
    if payment_method == PAYMENT_CC_ON_DOOR:
        return table.is_card_on_door_available
    return True


def ineligibility_reason(
    company: CarrierCompany,
    table: RateTable,
    payment_method: str,
    is_rural: bool = False,
) -> Optional[str]:
    """Why ``table`` of ``company`` would be filtered out for this order, or None."""
    if not company.is_active:
        return f"{company.name} is inactive"
    if not table.is_active:
        return f"{company.name} / {table.name or table.code} is inactive"
    if not supports_payment(table, payment_method):
        return (
            f"{company.name} / {table.name or table.code} does not support "
            f"{payment_method} payments"
        )
    if is_rural and not company.handles_rural_addresses:
        return f"{company.name} does not deliver to rural addresses"
    return None


def eligible_carriers(
    companies: Iterable[CarrierCompany],
    payment_method: str,
    is_rural: bool = False,
) -> List[EligibleCarrier]:
    """
    Narrow the configured companies to the (company, sub-carrier) pairs usable
    for an order.

    Companies without any usable pair are dropped, including AGGREGATOR
    companies with no sub-carriers. The default company comes first; the rest
    keep their configured order.

    Args:
        companies: configured companies in insertion order
        payment_method: the order's payment method
        is_rural: whether the delivery address is rural

    Returns:
        List[EligibleCarrier]: usable pairs grouped by company
    """
    groups: List[List[EligibleCarrier]] = []
    defaults: List[List[EligibleCarrier]] = []
    for company in companies:
        if not company.is_active:
            continue
        if is_rural and not company.handles_rural_addresses:
            continue
        pairs = [
            EligibleCarrier(company=company, rate_table=table)
            for table in company.rate_tables
            if table.is_active and supports_payment(table, payment_method)
        ]
        if not pairs:
            continue
        (defaults if company.is_default else groups).append(pairs)
    ordered = defaults + groups
    return [pair for group in ordered for pair in group]


def require_eligible(
    company: CarrierCompany,
    sub_carrier_code: str,
    payment_method: str,
    is_rural: bool = False,
) -> RateTable:
    """
    Return the rate table for ``sub_carrier_code`` if it may serve the order.

    Raises:
        IneligibleCarrierError: if the code is unknown or the pair would be filtered out
    """
    table = company.find(sub_carrier_code)
    if table is None:
        raise IneligibleCarrierError(f"{company.name} has no sub-carrier {sub_carrier_code!r}")
    reason = ineligibility_reason(company, table, payment_method, is_rural)
    if reason:
        raise IneligibleCarrierError(reason)
    return table
