from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from shipping.dataclasses import ConsignmentPayload, SubmissionResult, TrackingUpdate

CancelCheck = Callable[[], bool]


class CarrierIntegration(ABC):
    """Shared capability of every carrier integration, direct or aggregator."""

    kind: str = ""

    def __init__(self, company_code: str) -> None:
        self.company_code = company_code

    @abstractmethod
    def submit(
        self,
        payload: ConsignmentPayload,
        *,
        tracking_code: Optional[str] = None,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> SubmissionResult:
        """
        Hand a consignment to the carrier and return its tracking code.

        ``tracking_code`` is the operator-entered code for carriers without
        an API. ``is_cancelled`` is polled between attempts.
        """

    @abstractmethod
    def track(self, tracking_codes: Sequence[str]) -> List[TrackingUpdate]:
        """Latest status code per tracking code; unknown codes are omitted."""

    @abstractmethod
    def cancel(self, tracking_code: str) -> None:
        """Withdraw an accepted consignment."""
