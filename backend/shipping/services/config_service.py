"""
Atomic edits to sub-carrier rate tables.

Every edit replaces the whole sub-carrier row from a validated RateTable while
holding a row lock on the parent company, so concurrent edits to one company
are serialized and a rejected edit leaves the stored table untouched.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db import transaction
from django.db.models import Max

from ..models import ShippingCompany, SubCarrier
from .errors import ConfigurationError
from .rate_table import build_rate_table

logger = logging.getLogger(__name__)


def _lock_company(company_id: int) -> ShippingCompany:
    return ShippingCompany.objects.select_for_update().get(pk=company_id)


def add_sub_carrier(company_id: int, data: Mapping[str, Any]) -> SubCarrier:
    """
    Raises:
        ConfigurationError: invalid table or duplicate code
        ShippingCompany.DoesNotExist
    """
    table = build_rate_table(data)
    with transaction.atomic():
        company = _lock_company(company_id)
        if company.sub_carriers.filter(code=table.code).exists():
            raise ConfigurationError(f"duplicate sub-carrier code {table.code!r}")
        last = company.sub_carriers.aggregate(m=Max('position'))['m']
        row = SubCarrier(company=company, position=0 if last is None else last + 1)
        row.apply_table(table)
        row.save()
    logger.info("Added sub-carrier %s to %s", table.code, company.code)
    return row


def replace_sub_carrier(company_id: int, code: str, data: Mapping[str, Any]) -> SubCarrier:
    """
    Replace the sub-carrier ``code`` of a company with ``data`` as a whole.

    Args:
        company_id: owning company
        code: current code of the sub-carrier (``data`` may rename it)
        data: full sub-carrier configuration; missing fields fall back to
            their defaults rather than the stored values

    Returns:
        SubCarrier: the saved row

    Raises:
        ConfigurationError: invalid table or the new code clashes with a sibling
        SubCarrier.DoesNotExist: no sub-carrier ``code`` on the company
    """
    table = build_rate_table(data)
    with transaction.atomic():
        company = _lock_company(company_id)
        row = company.sub_carriers.get(code=code)
        if table.code != code and company.sub_carriers.filter(code=table.code).exists():
            raise ConfigurationError(f"duplicate sub-carrier code {table.code!r}")
        row.apply_table(table)
        row.save()
    logger.info("Replaced sub-carrier %s/%s", company.code, table.code)
    return row


def remove_sub_carrier(company_id: int, code: str) -> None:
    with transaction.atomic():
        company = _lock_company(company_id)
        deleted, _ = company.sub_carriers.filter(code=code).delete()
        if not deleted:
            raise SubCarrier.DoesNotExist(f"{company.code} has no sub-carrier {code!r}")
    logger.info("Removed sub-carrier %s/%s", company.code, code)
