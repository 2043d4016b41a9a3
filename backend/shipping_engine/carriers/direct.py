from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from shipping.dataclasses import COMPANY_DIRECT, ConsignmentPayload, SubmissionResult, TrackingUpdate
from shipping.services.errors import CarrierSubmissionError, SubmissionCancelledError

from .base import CancelCheck, CarrierIntegration

logger = logging.getLogger(__name__)


class DirectCarrier(CarrierIntegration):
    """
    A carrier the business ships with directly and has no API for. The
    operator books the parcel at the counter and enters the printed tracking
    code; status updates are applied by hand.
    """

    kind = COMPANY_DIRECT

    def submit(
        self,
        payload: ConsignmentPayload,
        *,
        tracking_code: Optional[str] = None,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> SubmissionResult:
        if is_cancelled is not None and is_cancelled():
            raise SubmissionCancelledError(f"Submission of {payload.order_number} was cancelled")
        code = (tracking_code or "").strip()
        if not code:
            raise CarrierSubmissionError(
                f"{self.company_code} has no API; enter the tracking code printed by the carrier",
                retryable=False,
            )
        logger.info("Order %s booked with %s as %s", payload.order_number, self.company_code, code)
        return SubmissionResult(tracking_code=code, attempts=1)

    def track(self, tracking_codes: Sequence[str]) -> List[TrackingUpdate]:
        return []

    def cancel(self, tracking_code: str) -> None:
        logger.info("Cancel %s with %s by hand; no API to call", tracking_code, self.company_code)
