from __future__ import annotations

from ..dataclasses import OperationalCost, Quote
from .utils import d, q2


def estimate_operational_cost(quote: Quote, revenue) -> OperationalCost:
    """
    Carrier margin on an order: ``profit = revenue - quote.total_cost``.

    A negative profit is a valid result. Admin-only; never part of a
    customer-facing response.
    """
    revenue = q2(d(revenue))
    return OperationalCost(quote=quote, revenue=revenue, profit=revenue - quote.total_cost)
