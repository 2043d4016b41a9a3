"""
Carrier status code classification.

Each integrated carrier gets an explicit table: raw code -> internal lifecycle,
plus a separate set of codes that need an operator's attention. The two are
independent, so a shipment can be SHIPPED and problematic at the same time
(delivery failed, redelivery planned).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional

from django.conf import settings
from django.utils import timezone

from ..dataclasses import (
    STATUS_DELIVERED,
    STATUS_PREPARING,
    STATUS_RETURNED,
    STATUS_SHIPPED,
    StatusClassification,
)

logger = logging.getLogger(__name__)

DEFAULT_STUCK_THRESHOLD_DAYS = 3

# risk views on the shipment list
RISK_NO_MOVEMENT = "NO_MOVEMENT"
RISK_STUCK_PACKAGING = "STUCK_PACKAGING"
RISK_LONG_DISTRIBUTION = "LONG_DISTRIBUTION"
RISK_WAITING_BRANCH = "WAITING_BRANCH"
RISKS = (RISK_NO_MOVEMENT, RISK_STUCK_PACKAGING, RISK_LONG_DISTRIBUTION, RISK_WAITING_BRANCH)

PACKAGING_THRESHOLD_DAYS = 2
DISTRIBUTION_THRESHOLD_DAYS = 7
BRANCH_WAIT_THRESHOLD_DAYS = 1


@dataclass(frozen=True)
class CarrierStatusTable:
    carrier: str
    lifecycle: Dict[str, str]
    problematic: FrozenSet[str]
    labels: Dict[str, str]
    # parcel waiting at the delivery branch for pickup or a courier
    at_branch: FrozenSet[str] = frozenset()


FEST_STATUS_TABLE = CarrierStatusTable(
    carrier="FEST",
    lifecycle={
        "00": STATUS_PREPARING,
        "01": STATUS_PREPARING,
        "10": STATUS_DELIVERED,
        "20": STATUS_RETURNED,
        "21": STATUS_RETURNED,
        "22": STATUS_RETURNED,
        "23": STATUS_RETURNED,
        "24": STATUS_RETURNED,
        "30": STATUS_SHIPPED,
        "40": STATUS_SHIPPED,
        "41": STATUS_SHIPPED,
        "42": STATUS_SHIPPED,
        "50": STATUS_SHIPPED,
        "60": STATUS_SHIPPED,
    },
    # returns in progress and failed delivery attempts
    problematic=frozenset({"20", "21", "22", "23", "24", "30", "50", "60"}),
    at_branch=frozenset({"41"}),
    labels={
        "00": "Awaiting acceptance",
        "01": "Accepted",
        "10": "Delivered",
        "20": "Return started",
        "21": "Returned to sender",
        "22": "Courier started return",
        "23": "Return reached exit branch",
        "24": "Return started from branch",
        "30": "Not delivered, redelivery planned",
        "40": "In transfer",
        "41": "At delivery branch",
        "42": "Out for delivery",
        "50": "Not delivered",
        "60": "Not delivered, at delivery branch",
    },
)

STATUS_TABLES: Dict[str, CarrierStatusTable] = {
    FEST_STATUS_TABLE.carrier: FEST_STATUS_TABLE,
}


def status_table_for(carrier: Optional[str]) -> CarrierStatusTable:
    """Status table for ``carrier`` code; the aggregator's table when unknown."""
    return STATUS_TABLES.get((carrier or "").strip().upper(), FEST_STATUS_TABLE)


def lifecycle_for(code, carrier: Optional[str] = None) -> str:
    return status_table_for(carrier).lifecycle.get(str(code or "").strip(), STATUS_PREPARING)


def is_problematic(code, carrier: Optional[str] = None) -> bool:
    return str(code or "").strip() in status_table_for(carrier).problematic


def classify(code, carrier: Optional[str] = None) -> StatusClassification:
    """
    Classify a raw carrier status code. Total over every input: unknown codes
    are PREPARING and not problematic, and are logged so the table can be
    extended.
    """
    table = status_table_for(carrier)
    raw = str(code if code is not None else "").strip()
    known = raw in table.lifecycle
    if not known:
        logger.warning("Unknown %s status code %r; treating as %s", table.carrier, raw, STATUS_PREPARING)
    return StatusClassification(
        code=raw,
        lifecycle=table.lifecycle.get(raw, STATUS_PREPARING),
        is_problematic=raw in table.problematic,
        is_known=known,
        label=table.labels.get(raw, ""),
    )


def stuck_threshold_days() -> int:
    return int(getattr(settings, "SHIPMENT_STUCK_THRESHOLD_DAYS", DEFAULT_STUCK_THRESHOLD_DAYS))


def is_stuck(
    last_movement_date: Optional[datetime],
    now: Optional[datetime] = None,
    status: Optional[str] = None,
    threshold_days: Optional[int] = None,
) -> bool:
    """
    True when more than ``threshold_days`` passed since the last movement and
    the shipment is not delivered. Exactly the threshold is not stuck.
    Evaluate on every read; never store the result.
    """
    if last_movement_date is None or status == STATUS_DELIVERED:
        return False
    if threshold_days is None:
        threshold_days = stuck_threshold_days()
    now = now or timezone.now()
    return now - last_movement_date > timedelta(days=threshold_days)


def _idle_longer_than(last_movement_date: Optional[datetime], now: datetime, days: int) -> bool:
    if last_movement_date is None:
        return False
    return now - last_movement_date > timedelta(days=days)


def is_stuck_in_packaging(
    status: Optional[str], last_movement_date: Optional[datetime], now: Optional[datetime] = None
) -> bool:
    """Still PREPARING with no movement for more than two days."""
    return status == STATUS_PREPARING and _idle_longer_than(
        last_movement_date, now or timezone.now(), PACKAGING_THRESHOLD_DAYS
    )


def is_long_distribution(
    status: Optional[str], last_movement_date: Optional[datetime], now: Optional[datetime] = None
) -> bool:
    """In transit with no movement for more than a week."""
    return status == STATUS_SHIPPED and _idle_longer_than(
        last_movement_date, now or timezone.now(), DISTRIBUTION_THRESHOLD_DAYS
    )


def is_waiting_at_branch(
    code,
    last_movement_date: Optional[datetime],
    now: Optional[datetime] = None,
    carrier: Optional[str] = None,
) -> bool:
    """At the delivery branch for more than a day; the customer usually needs a call."""
    if str(code or "").strip() not in status_table_for(carrier).at_branch:
        return False
    return _idle_longer_than(last_movement_date, now or timezone.now(), BRANCH_WAIT_THRESHOLD_DAYS)


def risk_flags(
    code,
    status: Optional[str],
    last_movement_date: Optional[datetime],
    now: Optional[datetime] = None,
    carrier: Optional[str] = None,
) -> FrozenSet[str]:
    """
    Every risk view a shipment falls into. Like ``is_stuck`` this depends on
    ``now`` and is evaluated on read.
    """
    now = now or timezone.now()
    flags = set()
    if is_stuck(last_movement_date, now, status):
        flags.add(RISK_NO_MOVEMENT)
    if is_stuck_in_packaging(status, last_movement_date, now):
        flags.add(RISK_STUCK_PACKAGING)
    if is_long_distribution(status, last_movement_date, now):
        flags.add(RISK_LONG_DISTRIBUTION)
    if is_waiting_at_branch(code, last_movement_date, now, carrier):
        flags.add(RISK_WAITING_BRANCH)
    return frozenset(flags)


def needs_action(
    code,
    status: Optional[str],
    last_movement_date: Optional[datetime],
    now: Optional[datetime] = None,
    carrier: Optional[str] = None,
) -> bool:
    """Stuck, or waiting at the delivery branch."""
    flags = risk_flags(code, status, last_movement_date, now, carrier)
    return RISK_NO_MOVEMENT in flags or RISK_WAITING_BRANCH in flags
