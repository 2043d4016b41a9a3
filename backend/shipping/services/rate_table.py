"""
Rate table construction and validation.

Sub-carrier configuration is stored as plain JSON in the shape the admin form
edits (``desi_ranges`` as ``[{maxDesi, price}]`` and ``cod_ranges`` as
``[{min, max, price}]``). Every path that produces a ``RateTable`` goes through
``build_rate_table`` so an invalid table cannot be saved or quoted from.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..dataclasses import (
    CodRange,
    DesiRange,
    PAYMENT_CC_ON_DOOR,
    PAYMENT_COD,
    PAYMENT_METHODS,
    RateTable,
)
from .errors import ConfigurationError
from .utils import ZERO, parse_decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")


def _parse_desi_ranges(raw: Any, errors: List[str]) -> Tuple[DesiRange, ...]:
    if raw in (None, ""):
        return ()
    if not isinstance(raw, (list, tuple)):
        errors.append("desi_ranges: expected a list")
        return ()
    out: List[DesiRange] = []
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            errors.append(f"desi_ranges[{i}]: expected an object with maxDesi and price")
            continue
        max_desi = parse_decimal(item.get("maxDesi"), f"desi_ranges[{i}].maxDesi", errors)
        price = parse_decimal(item.get("price"), f"desi_ranges[{i}].price", errors)
        if max_desi is None or price is None:
            continue
        out.append(DesiRange(max_desi=max_desi, price=price))
    return tuple(out)


def _parse_cod_ranges(raw: Any, errors: List[str]) -> Tuple[CodRange, ...]:
    if raw in (None, ""):
        return ()
    if not isinstance(raw, (list, tuple)):
        errors.append("cod_ranges: expected a list")
        return ()
    out: List[CodRange] = []
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            errors.append(f"cod_ranges[{i}]: expected an object with min, max and price")
            continue
        lo = parse_decimal(item.get("min", 0), f"cod_ranges[{i}].min", errors)
        hi_raw = item.get("max")
        hi = None if hi_raw in (None, "") else parse_decimal(hi_raw, f"cod_ranges[{i}].max", errors)
        price = parse_decimal(item.get("price"), f"cod_ranges[{i}].price", errors)
        if lo is None or price is None or (hi_raw not in (None, "") and hi is None):
            continue
        out.append(CodRange(min=lo, max=hi, price=price))
    return tuple(out)


def validate_desi_ranges(ranges: Sequence[DesiRange]) -> List[str]:
    """Desi ranges must be strictly ascending in maxDesi, non-negative."""
    errors: List[str] = []
    prev: Optional[Decimal] = None
    for i, r in enumerate(ranges):
        if r.max_desi < ZERO:
            errors.append(f"desi_ranges[{i}]: maxDesi must not be negative")
        if r.price < ZERO:
            errors.append(f"desi_ranges[{i}]: price must not be negative")
        if prev is not None and r.max_desi <= prev:
            errors.append(
                f"desi_ranges[{i}]: maxDesi {r.max_desi} must be greater than previous {prev}"
            )
        prev = r.max_desi
    return errors


def validate_cod_ranges(ranges: Sequence[CodRange]) -> List[str]:
    """
    COD ranges must have min <= max and must not overlap once sorted by min.
    An unbounded range (max = None) can only be the last one.
    """
    errors: List[str] = []
    for i, r in enumerate(ranges):
        if r.min < ZERO:
            errors.append(f"cod_ranges[{i}]: min must not be negative")
        if r.price < ZERO:
            errors.append(f"cod_ranges[{i}]: price must not be negative")
        if r.max is not None and r.min > r.max:
            errors.append(f"cod_ranges[{i}]: min {r.min} is greater than max {r.max}")

    ordered = sorted(ranges, key=lambda r: r.min)
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.max is None:
            errors.append(f"cod_ranges: unbounded range from {prev.min} overlaps range from {cur.min}")
        elif cur.min <= prev.max:
            errors.append(
                f"cod_ranges: range {cur.min}-{cur.max if cur.max is not None else 'inf'} "
                f"overlaps range {prev.min}-{prev.max}"
            )
    return errors


def validate_rate_table(table: RateTable) -> List[str]:
    """Return every validation problem in ``table`` (empty if valid)."""
    errors: List[str] = []
    if not (table.code or "").strip():
        errors.append("code: value is required")
    if table.fixed_price < ZERO:
        errors.append("fixed_price: must not be negative")
    if table.return_price < ZERO:
        errors.append("return_price: must not be negative")
    if table.service_fee < ZERO:
        errors.append("service_fee: must not be negative")
    if not (ZERO <= table.card_commission <= ONE):
        errors.append("card_commission: must be a fraction between 0 and 1")
    errors.extend(validate_desi_ranges(table.desi_ranges))
    errors.extend(validate_cod_ranges(table.cod_ranges))
    return errors


def build_rate_table(data: Mapping[str, Any]) -> RateTable:
    """
    Build a validated RateTable from its persisted/form shape.

    Args:
        data: mapping with code, name, branch_code, capability flags, money
            fields and the desi/COD range lists

    Returns:
        RateTable: immutable, validated table

    Raises:
        ConfigurationError: listing every problem found
    """
    errors: List[str] = []
    fixed_price = parse_decimal(data.get("fixed_price", 0), "fixed_price", errors)
    return_price = parse_decimal(data.get("return_price", 0), "return_price", errors)
    card_commission = parse_decimal(data.get("card_commission", 0), "card_commission", errors)
    desi_ranges = _parse_desi_ranges(data.get("desi_ranges"), errors)
    cod_ranges = _parse_cod_ranges(data.get("cod_ranges"), errors)
    if errors:
        raise ConfigurationError(errors)

    table = RateTable(
        code=str(data.get("code") or "").strip(),
        name=str(data.get("name") or "").strip(),
        branch_code=str(data.get("branch_code") or "").strip(),
        is_active=bool(data.get("is_active", True)),
        is_cash_on_door_available=bool(data.get("is_cash_on_door_available", False)),
        is_card_on_door_available=bool(data.get("is_card_on_door_available", False)),
        fixed_price=fixed_price,
        return_price=return_price,
        card_commission=card_commission,
        desi_ranges=desi_ranges,
        cod_ranges=cod_ranges,
    )
    errors = validate_rate_table(table)
    if errors:
        raise ConfigurationError(errors)
    return table


def table_from_legacy_rule(rule: Mapping[str, Any]) -> RateTable:
    """
    Read a legacy DIRECT pricing rule as an implicit sub-carrier table.

    ``{carrierCode, allowedPaymentMethods?, baseCost, serviceFee?, codCommission: [{min, max, fee}]}``
    """
    errors: List[str] = []
    code = str(rule.get("carrierCode") or "").strip()
    base_cost = parse_decimal(rule.get("baseCost", 0), f"{code or 'rule'}.baseCost", errors)
    service_fee = parse_decimal(rule.get("serviceFee", 0), f"{code or 'rule'}.serviceFee", errors)
    commission = rule.get("codCommission") or []
    if not isinstance(commission, (list, tuple)):
        errors.append(f"{code or 'rule'}.codCommission: expected a list")
        commission = []
    cod_ranges = _parse_cod_ranges(
        [
            {"min": c.get("min", 0), "max": c.get("max"), "price": c.get("fee")}
            if isinstance(c, Mapping) else c
            for c in commission
        ],
        errors,
    )

    allowed = rule.get("allowedPaymentMethods")
    if allowed is None:
        allowed = list(PAYMENT_METHODS)
    elif not isinstance(allowed, (list, tuple)):
        errors.append(f"{code or 'rule'}.allowedPaymentMethods: expected a list")
        allowed = []
    else:
        unknown = [m for m in allowed if m not in PAYMENT_METHODS]
        if unknown:
            errors.append(f"{code or 'rule'}.allowedPaymentMethods: unknown methods {unknown}")
    if errors:
        raise ConfigurationError(errors)

    table = RateTable(
        code=code,
        name=code,
        is_active=True,
        is_cash_on_door_available=PAYMENT_COD in allowed,
        is_card_on_door_available=PAYMENT_CC_ON_DOOR in allowed,
        fixed_price=base_cost,
        cod_ranges=cod_ranges,
        service_fee=service_fee,
    )
    errors = validate_rate_table(table)
    if errors:
        raise ConfigurationError([f"{code or 'rule'}: {e}" for e in errors])
    return table


def validate_unique_codes(tables: Iterable[RateTable]) -> List[str]:
    seen = set()
    errors: List[str] = []
    for t in tables:
        if t.code in seen:
            errors.append(f"duplicate sub-carrier code {t.code!r}")
        seen.add(t.code)
    return errors


def build_legacy_tables(rules: Any) -> Tuple[RateTable, ...]:
    """Build and validate every legacy pricing rule of a DIRECT company."""
    if rules in (None, ""):
        return ()
    if not isinstance(rules, (list, tuple)):
        raise ConfigurationError("pricing_rules: expected a list")
    errors: List[str] = []
    tables: List[RateTable] = []
    for i, rule in enumerate(rules):
        if not isinstance(rule, Mapping):
            errors.append(f"pricing_rules[{i}]: expected an object")
            continue
        try:
            tables.append(table_from_legacy_rule(rule))
        except ConfigurationError as exc:
            errors.extend(exc.errors)
    errors.extend(validate_unique_codes(tables))
    if errors:
        raise ConfigurationError(errors)
    return tuple(tables)
