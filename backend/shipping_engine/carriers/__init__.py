from __future__ import annotations

from shipping.dataclasses import COMPANY_AGGREGATOR, COMPANY_DIRECT
from shipping.services.errors import ConfigurationError

# aggregator company codes served by the Fest (Ajan.NET) API
FEST_CODES = {"fest", "fest_kargo", "festkargo"}


def load(company):
    """
    Pick the carrier integration for a company (model or CarrierCompany).
    - AGGREGATOR with a Fest code -> FestCarrier configured from settings
    - DIRECT -> DirectCarrier (operator-entered tracking codes)
    """
    key = (company.code or "").strip().lower()
    if company.type == COMPANY_AGGREGATOR and key in FEST_CODES:
        from .fest import FestCarrier  # local import to avoid circulars
        return FestCarrier.from_settings(company_code=company.code)
    if company.type == COMPANY_DIRECT:
        from .direct import DirectCarrier
        return DirectCarrier(company.code)
    raise ConfigurationError(f"No carrier integration for {company.type} company {company.code!r}")
