"""
Shipment lifecycle: submission to the carrier, status updates and cancellation.

Every submission is recorded as a ConsignmentAttempt before the carrier is
called, so a failed or operator-cancelled request always leaves a trace.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from shipping.dataclasses import (
    STATUS_CANCELLED,
    STATUS_DELIVERED,
    STATUS_PREPARING,
    StatusClassification,
    TERMINAL_STATUSES,
)
from shipping.services.consignment import (
    AMOUNT_TYPE_CARD_ON_DOOR,
    AMOUNT_TYPE_CASH_ON_DOOR,
    map_consignment,
)
from shipping.services.eligibility import ineligibility_reason
from shipping.services.errors import (
    CarrierSubmissionError,
    IneligibleCarrierError,
    ShipmentStateError,
    ShippingEngineError,
    SubmissionCancelledError,
)
from shipping.services.status_classifier import classify
from shipping.services.utils import ZERO, d
from shipping_engine.carriers import load as load_carrier

from .models import ConsignmentAttempt, Shipment

logger = logging.getLogger(__name__)


def _open_attempt(order, company, sub_carrier_code: str, payload: dict, submission_key: Optional[str]):
    """
    Record a PENDING attempt. A reused ``submission_key`` returns the shipment
    it already produced, or restarts a failed/cancelled attempt.

    Returns:
        (attempt, existing_shipment)
    """
    fields = dict(order=order, company=company, sub_carrier_code=sub_carrier_code, payload=payload)
    if not submission_key:
        return ConsignmentAttempt.objects.create(**fields), None
    with transaction.atomic():
        attempt = (ConsignmentAttempt.objects
                   .select_for_update()
                   .filter(submission_key=submission_key)
                   .first())
        if attempt is None:
            try:
                with transaction.atomic():
                    return ConsignmentAttempt.objects.create(submission_key=submission_key, **fields), None
            except IntegrityError:
                raise ShipmentStateError(f"Submission {submission_key} is already in progress")
        if attempt.order_id != order.pk:
            raise ShipmentStateError(f"Submission key {submission_key} belongs to another order")
        if attempt.state == ConsignmentAttempt.STATE_ACCEPTED and attempt.shipment_id:
            return attempt, attempt.shipment
        if attempt.state in (ConsignmentAttempt.STATE_PENDING, ConsignmentAttempt.STATE_CANCEL_REQUESTED):
            raise ShipmentStateError(f"Submission {submission_key} is already in progress")
        for k, v in fields.items():
            setattr(attempt, k, v)
        attempt.state = ConsignmentAttempt.STATE_PENDING
        attempt.last_error = ""
        attempt.tracking_code = ""
        attempt.attempts = 0
        attempt.save()
        return attempt, None


def create_shipment(
    order,
    company,
    sub_carrier_code: str,
    *,
    cod_amount=None,
    branch_code: Optional[str] = None,
    tracking_code: Optional[str] = None,
    acknowledge_warning: bool = False,
    submission_key: Optional[str] = None,
    carrier=None,
) -> Shipment:
    """
    Submit ``order`` through ``company``/``sub_carrier_code`` and record the
    resulting PREPARING shipment.

    Args:
        order: orders.Order being shipped
        company: shipping.ShippingCompany chosen by the operator
        sub_carrier_code: sub-carrier (or legacy rule) code within the company
        cod_amount: collected amount override
        branch_code: branch override
        tracking_code: operator-entered code for carriers without an API
        acknowledge_warning: the operator confirmed an ineligible pairing
        submission_key: client-chosen key; lets the client cancel this
            submission while it runs and makes resubmission idempotent
        carrier: integration to use instead of the company's configured one

    Raises:
        IneligibleCarrierError: pairing filtered out and not acknowledged
        CarrierSubmissionError: carrier unreachable or request rejected
        SubmissionCancelledError: operator cancelled the attempt
        ShipmentStateError: ``submission_key`` is already in progress
    """
    engine_company = company.to_company()
    order_input = order.to_input()
    table = engine_company.find(sub_carrier_code)
    if table is None:
        raise IneligibleCarrierError(f"{company.name} has no sub-carrier {sub_carrier_code!r}")

    reason = ineligibility_reason(engine_company, table, order_input.payment_method, order_input.is_rural)
    if reason:
        if not acknowledge_warning:
            raise IneligibleCarrierError(reason)
        logger.warning("Order %s shipped despite warning: %s", order.order_number, reason)

    payload = map_consignment(
        order_input,
        table,
        branch_code=branch_code,
        cod_amount=cod_amount,
        allow_override=acknowledge_warning,
    )
    attempt, existing = _open_attempt(order, company, table.code, payload.to_dict(), submission_key)
    if existing is not None:
        return existing
    carrier = carrier or load_carrier(company)

    def is_cancelled() -> bool:
        return ConsignmentAttempt.objects.filter(
            pk=attempt.pk, state=ConsignmentAttempt.STATE_CANCEL_REQUESTED
        ).exists()

    try:
        result = carrier.submit(payload, tracking_code=tracking_code, is_cancelled=is_cancelled)
    except SubmissionCancelledError as exc:
        _finish_attempt(attempt, ConsignmentAttempt.STATE_CANCELLED, error=str(exc))
        logger.info("Submission of %s cancelled before the carrier accepted it", order.order_number)
        raise
    except CarrierSubmissionError as exc:
        _finish_attempt(attempt, ConsignmentAttempt.STATE_FAILED, error=str(exc), attempts=exc.attempts)
        logger.warning("Submission of %s failed: %s", order.order_number, exc)
        raise

    with transaction.atomic():
        locked = ConsignmentAttempt.objects.select_for_update().get(pk=attempt.pk)
        locked.attempts = result.attempts
        locked.tracking_code = result.tracking_code
        if locked.state == ConsignmentAttempt.STATE_CANCEL_REQUESTED:
            locked.state = ConsignmentAttempt.STATE_CANCELLED
            locked.save()
            shipment = None
        else:
            collected = d(payload.amount) if payload.amount_type_id in (
                AMOUNT_TYPE_CASH_ON_DOOR, AMOUNT_TYPE_CARD_ON_DOOR
            ) else ZERO
            shipment = Shipment.objects.create(
                order=order,
                company=company,
                sub_carrier_code=table.code,
                tracking_code=result.tracking_code,
                status=STATUS_PREPARING,
                amount_type_id=payload.amount_type_id,
                cod_amount=collected,
            )
            locked.state = ConsignmentAttempt.STATE_ACCEPTED
            locked.shipment = shipment
            locked.save()

    if shipment is None:
        # accepted by the carrier after the operator gave up: withdraw it
        carrier.cancel(result.tracking_code)
        logger.info("Withdrew %s (%s) after late cancellation", result.tracking_code, order.order_number)
        raise SubmissionCancelledError(
            f"Submission of {order.order_number} was cancelled; consignment {result.tracking_code} withdrawn"
        )
    logger.info("Shipment %s created for order %s", shipment.tracking_code, order.order_number)
    return shipment


def _finish_attempt(attempt: ConsignmentAttempt, state: str, *, error: str = "", attempts: Optional[int] = None):
    attempt.state = state
    attempt.last_error = error[:2000]
    if attempts is not None:
        attempt.attempts = attempts
    attempt.save(update_fields=['state', 'last_error', 'attempts', 'updated_at'])


def request_cancellation(submission_key: str) -> ConsignmentAttempt:
    """
    Ask an in-flight submission to stop. The submitter checks between
    attempts; if the carrier accepts anyway, the consignment is withdrawn.

    Raises:
        ConsignmentAttempt.DoesNotExist: unknown key
        ShipmentStateError: the attempt was already accepted
    """
    with transaction.atomic():
        attempt = ConsignmentAttempt.objects.select_for_update().get(submission_key=submission_key)
        if attempt.state == ConsignmentAttempt.STATE_PENDING:
            attempt.state = ConsignmentAttempt.STATE_CANCEL_REQUESTED
            attempt.save(update_fields=['state', 'updated_at'])
            logger.info("Cancellation requested for submission %s", submission_key)
        elif attempt.state == ConsignmentAttempt.STATE_ACCEPTED:
            raise ShipmentStateError("Submission already accepted; cancel the shipment instead")
    return attempt


def apply_status_code(shipment: Shipment, code: str, movement_at=None, now=None) -> StatusClassification:
    """
    Record a carrier status code on ``shipment``.

    The raw code is always stored. The lifecycle only moves while the shipment
    is not terminal and the carrier table knows the code, so an unknown code
    never moves a shipment back to PREPARING. The last movement time is the
    carrier's movement time, or ``now`` when the code changed without one.
    """
    classification = classify(code, shipment.company.code)
    now = now or timezone.now()
    raw = classification.code[:8]
    changed = raw != (shipment.fest_status_code or "")
    shipment.fest_status_code = raw
    if movement_at is not None:
        shipment.last_movement_date = movement_at
    elif changed:
        shipment.last_movement_date = now
    if shipment.status in TERMINAL_STATUSES:
        if classification.lifecycle != shipment.status:
            logger.info(
                "Shipment %s is %s; ignoring lifecycle %s from code %s",
                shipment.tracking_code, shipment.status, classification.lifecycle, classification.code,
            )
    elif not classification.is_known:
        logger.info("Shipment %s keeps %s on unknown code %r", shipment.tracking_code, shipment.status, classification.code)
    else:
        shipment.status = classification.lifecycle
    shipment.save()
    return classification


def cancel_shipment(shipment: Shipment, carrier=None) -> Shipment:
    """
    Withdraw a shipment that has not moved yet.

    Raises:
        ShipmentStateError: shipment already left PREPARING
        CarrierSubmissionError: carrier refused or was unreachable
    """
    if shipment.status != STATUS_PREPARING:
        raise ShipmentStateError(f"Shipment {shipment.tracking_code} is {shipment.status}; only PREPARING can be cancelled")
    carrier = carrier or load_carrier(shipment.company)
    carrier.cancel(shipment.tracking_code)
    shipment.status = STATUS_CANCELLED
    shipment.save(update_fields=['status', 'updated_at'])
    logger.info("Shipment %s cancelled", shipment.tracking_code)
    return shipment


@dataclass
class RefreshReport:
    """Outcome of one polling round: applied codes and companies that could not be tracked."""
    applied: List[Tuple[Shipment, StatusClassification]] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


def refresh_statuses(
    shipments: Optional[Iterable[Shipment]] = None,
    carrier_for=load_carrier,
    now=None,
) -> RefreshReport:
    """
    Poll carriers for every non-terminal shipment and apply the returned codes.
    One bulk tracking call is made per company. A company whose integration is
    misconfigured or unreachable is logged and reported in ``failed``; the
    other companies are still refreshed.
    """
    if shipments is None:
        shipments = (Shipment.objects
                     .exclude(status__in=TERMINAL_STATUSES)
                     .select_related('company'))
    by_company = defaultdict(list)
    for s in shipments:
        if s.status in TERMINAL_STATUSES or not s.tracking_code:
            continue
        by_company[s.company_id].append(s)

    report = RefreshReport()
    for group in by_company.values():
        company = group[0].company
        try:
            carrier = carrier_for(company)
            tracked = carrier.track([s.tracking_code for s in group])
        except ShippingEngineError as exc:
            logger.warning("Tracking %d shipment(s) of %s failed: %s", len(group), company.code, exc)
            report.failed[company.code] = str(exc)
            continue
        updates = {u.tracking_code: u for u in tracked}
        for s in group:
            update = updates.get(s.tracking_code)
            if update is None or not update.status_code:
                continue
            report.applied.append((s, apply_status_code(s, update.status_code, update.last_movement_at, now=now)))
    return report


def summarize_shipments(shipments: Iterable[Shipment], now=None) -> Dict[str, int]:
    """Counts for the shipment dashboard header."""
    now = now or timezone.now()
    summary = {"total": 0, "delivered": 0, "problematic": 0, "action_needed": 0}
    for s in shipments:
        summary["total"] += 1
        if s.status == STATUS_DELIVERED:
            summary["delivered"] += 1
        if s.is_problematic:
            summary["problematic"] += 1
        if s.needs_action(now=now):
            summary["action_needed"] += 1
    return summary
