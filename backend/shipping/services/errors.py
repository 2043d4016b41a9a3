"""
Exception hierarchy for the shipping engine.

Configuration and tiering errors are raised to reject an operation outright;
submission errors carry enough context for an operator to decide between
retrying and overriding.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional


class ShippingEngineError(Exception):
    """Base exception for shipping engine errors"""
    pass


class ConfigurationError(ShippingEngineError):
    """Raised when a rate table or pricing rule fails validation"""

    def __init__(self, errors: Iterable[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class NoApplicableTierError(ShippingEngineError):
    """Raised when no configured desi or COD range covers the requested value"""

    def __init__(self, tier: str, value: Decimal, carrier_code: str = ""):
        self.tier = tier
        self.value = value
        self.carrier_code = carrier_code
        where = f" for {carrier_code}" if carrier_code else ""
        super().__init__(f"No applicable {tier} tier{where} covers {value}; configure a tier")


class IneligibleCarrierError(ShippingEngineError):
    """Raised when a carrier cannot serve the order's payment method or address"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidQuoteInputError(ShippingEngineError, ValueError):
    """Raised for negative or malformed quote inputs"""
    pass


class CarrierSubmissionError(ShippingEngineError):
    """Raised when the carrier rejects a request or cannot be reached"""

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        status_code: Optional[int] = None,
        attempts: int = 1,
    ):
        self.retryable = retryable
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message)


class SubmissionCancelledError(ShippingEngineError):
    """Raised when an operator cancelled a submission before it completed"""
    pass


class ShipmentStateError(ShippingEngineError):
    """Raised when an operation is not allowed from the current shipment state"""
    pass
