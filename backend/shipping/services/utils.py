from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidQuoteInputError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def q2(val) -> Decimal:
    """Quantize a money amount to two places, half-up."""
    return d(val).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_decimal(val, field: str, errors: list) -> Decimal | None:
    """
    Parse a configuration number, appending a readable message to ``errors``
    instead of raising so callers can report every problem at once.
    """
    if val is None or val == "":
        errors.append(f"{field}: value is required")
        return None
    if isinstance(val, bool):
        errors.append(f"{field}: expected a number, got {val!r}")
        return None
    try:
        out = d(val)
    except (InvalidOperation, ValueError):
        errors.append(f"{field}: expected a number, got {val!r}")
        return None
    if not out.is_finite():
        errors.append(f"{field}: expected a finite number, got {val!r}")
        return None
    return out


def json_number(val: Decimal):
    """Render a Decimal for JSON storage: int when integral, else float."""
    val = d(val)
    if val == val.to_integral_value():
        return int(val)
    return float(val)


def non_negative(val, field: str) -> Decimal:
    """Parse a quote input, rejecting non-numeric and negative values."""
    try:
        out = d(val if val is not None else 0)
    except (InvalidOperation, ValueError):
        raise InvalidQuoteInputError(f"{field} must be a number, got {val!r}")
    if not out.is_finite():
        raise InvalidQuoteInputError(f"{field} must be finite")
    if out < ZERO:
        raise InvalidQuoteInputError(f"{field} must not be negative")
    return out
