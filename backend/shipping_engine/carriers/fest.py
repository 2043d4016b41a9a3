"""
Fest Kargo (Ajan.NET REST API) aggregator integration.

Requests are multipart form posts under ``<base>/restapi/client`` carrying the
account key in ``Authorization`` and the account e-mail in ``From``. Network
failures, timeouts and 408/429/5xx answers are retried with capped exponential
backoff; other 4xx answers and ``error: true`` bodies are carrier-side
rejections and are raised at once. The carrier deduplicates consignments on
``order_number`` so a retry after a timeout cannot book the parcel twice.
"""
from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import requests
from django.conf import settings
from django.utils import timezone

from shipping.dataclasses import (
    COMPANY_AGGREGATOR,
    ConsignmentPayload,
    MovementEvent,
    SubmissionResult,
    TrackingUpdate,
)
from shipping.services.errors import (
    CarrierSubmissionError,
    ConfigurationError,
    SubmissionCancelledError,
)

from .base import CancelCheck, CarrierIntegration

logger = logging.getLogger(__name__)

MOVEMENT_TIME_FORMATS = (
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d.%m.%Y",
    "%Y-%m-%d",
)


def parse_movement_time(day: Any, clock: Any = "") -> Optional[datetime]:
    text = f"{day or ''} {clock or ''}".strip()
    if not text:
        return None
    for fmt in MOVEMENT_TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return timezone.make_aware(parsed, timezone.get_current_timezone())
    logger.debug("Unparseable Fest movement time %r", text)
    return None


class FestCarrier(CarrierIntegration):
    kind = COMPANY_AGGREGATOR

    def __init__(
        self,
        base_url: str,
        auth_key: str,
        from_email: str,
        *,
        company_code: str = "FEST",
        timeout_seconds: float = 15,
        max_attempts: int = 3,
        retry_base_delay_ms: int = 200,
        retry_max_delay_ms: int = 2000,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(company_code)
        if not base_url:
            raise ConfigurationError("FEST_API_URL is not configured")
        if max_attempts < 1:
            raise ConfigurationError("CARRIER_MAX_ATTEMPTS must be >= 1")
        if retry_base_delay_ms < 0 or retry_max_delay_ms < 0:
            raise ConfigurationError("carrier retry delays must be >= 0")
        self.base_url = base_url.rstrip("/")
        self.auth_key = auth_key
        self.from_email = from_email
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.retry_base_delay_ms = retry_base_delay_ms
        self.retry_max_delay_ms = retry_max_delay_ms
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, company_code: str = "FEST") -> "FestCarrier":
        return cls(
            settings.FEST_API_URL,
            settings.FEST_API_KEY,
            settings.FEST_FROM_EMAIL,
            company_code=company_code,
            timeout_seconds=settings.CARRIER_TIMEOUT_SECONDS,
            max_attempts=settings.CARRIER_MAX_ATTEMPTS,
            retry_base_delay_ms=settings.CARRIER_RETRY_BASE_DELAY_MS,
            retry_max_delay_ms=settings.CARRIER_RETRY_MAX_DELAY_MS,
        )

    # ---- transport ----

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/restapi/client{endpoint}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.auth_key, "From": self.from_email}

    @staticmethod
    def _form(data: Optional[Mapping[str, Any]]):
        if data is None:
            return None
        return {k: (None, str(v)) for k, v in data.items() if v is not None}

    @staticmethod
    def _body(response: Any) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Mapping[str, Any]] = None,
        *,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> Tuple[Any, int]:
        url = self._url(endpoint)
        last_error: str | None = None
        last_status: Optional[int] = None
        for attempt in range(1, self.max_attempts + 1):
            if is_cancelled is not None and is_cancelled():
                raise SubmissionCancelledError(f"{method} {endpoint} cancelled before attempt {attempt}")
            try:
                response = self._session.request(
                    method,
                    url,
                    headers=self._headers(),
                    files=self._form(data),
                    timeout=self.timeout_seconds,
                )
            except requests.Timeout:
                last_error = "timeout"
                retryable = True
            except requests.RequestException as exc:
                last_error = str(exc)[:256]
                retryable = True
            else:
                if response.status_code < 400:
                    return self._body(response), attempt
                last_status = response.status_code
                retryable = response.status_code in {408, 429} or response.status_code >= 500
                last_error = f"http_{response.status_code}"
                if not retryable:
                    raise CarrierSubmissionError(
                        f"Fest rejected {method} {endpoint}: {response.status_code} {_response_text(response)}",
                        retryable=False,
                        status_code=response.status_code,
                        attempts=attempt,
                    )
            logger.warning(
                "Fest %s %s failed (attempt %d/%d): %s", method, endpoint, attempt, self.max_attempts, last_error
            )
            if attempt >= self.max_attempts:
                break
            self._sleep_backoff(attempt)
        raise CarrierSubmissionError(
            f"Fest {method} {endpoint} failed after {self.max_attempts} attempts: {last_error}",
            retryable=True,
            status_code=last_status,
            attempts=self.max_attempts,
        )

    def _sleep_backoff(self, attempt: int) -> None:
        base = max(0.0, self.retry_base_delay_ms / 1000.0)
        cap = max(base, self.retry_max_delay_ms / 1000.0)
        delay = min(cap, base * (2 ** max(0, attempt - 1)))
        jitter = random.uniform(0.0, delay) if delay > 0 else 0.0
        time.sleep(delay + jitter)

    # ---- capabilities ----

    def submit(
        self,
        payload: ConsignmentPayload,
        *,
        tracking_code: Optional[str] = None,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> SubmissionResult:
        body, attempts = self._request(
            "POST", "/consignment/add", payload.to_dict(), is_cancelled=is_cancelled
        )
        if not isinstance(body, Mapping):
            raise CarrierSubmissionError("Fest returned an unexpected consignment response", attempts=attempts)
        if body.get("error"):
            raise CarrierSubmissionError(
                f"Fest rejected consignment {payload.order_number}: {body.get('result') or 'unknown error'}",
                retryable=False,
                attempts=attempts,
            )
        barcode = body.get("barcode")
        if not barcode:
            raise CarrierSubmissionError(
                f"Fest accepted {payload.order_number} without a barcode", attempts=attempts
            )
        record_id = body.get("record_id")
        logger.info("Fest accepted %s as %s after %d attempt(s)", payload.order_number, barcode, attempts)
        return SubmissionResult(
            tracking_code=str(barcode),
            attempts=attempts,
            record_id=None if record_id is None else str(record_id),
            message=str(body.get("result") or ""),
        )

    def track(self, tracking_codes: Sequence[str]) -> List[TrackingUpdate]:
        codes = [c for c in tracking_codes if c]
        if not codes:
            return []
        body, _ = self._request("POST", "/tracking", {"barkod": ",".join(codes)})
        if not isinstance(body, Mapping) or body.get("error"):
            raise CarrierSubmissionError("Fest tracking request failed", retryable=True)
        wanted = set(codes)
        updates: List[TrackingUpdate] = []
        for item in body.get("data") or []:
            candidates = [str(item.get(k) or "") for k in ("musteribarkod", "gonderino", "barkod")]
            code = next((c for c in candidates if c in wanted), "")
            if not code:
                logger.debug("Fest tracking row for unrequested shipment %s", candidates)
                continue
            movements = [
                MovementEvent(
                    description=str(m.get("yapilan_islem") or ""),
                    occurred_at=parse_movement_time(m.get("tarih"), m.get("saat")),
                )
                for m in (item.get("hareketler") or [])
                if isinstance(m, Mapping)
            ]
            times = [m.occurred_at for m in movements if m.occurred_at is not None]
            updates.append(TrackingUpdate(
                tracking_code=code,
                status_code=_status_code(item.get("statu_no")),
                last_movement_at=max(times) if times else None,
                movements=movements,
            ))
        return updates

    def cancel(self, tracking_code: str) -> None:
        body, _ = self._request("DELETE", f"/consignment/delete/{tracking_code}")
        if isinstance(body, Mapping) and body.get("error"):
            raise CarrierSubmissionError(
                f"Fest refused to delete {tracking_code}: {body.get('result') or 'unknown error'}",
                retryable=False,
            )
        logger.info("Fest consignment %s deleted", tracking_code)


def _status_code(raw: Any) -> str:
    # codes are two-digit strings; some responses send them as numbers
    if raw is None or isinstance(raw, bool):
        return ""
    if isinstance(raw, int):
        return f"{raw:02d}"
    return str(raw).strip()


def _response_text(response: Any) -> str:
    text = str(getattr(response, "text", "") or "").strip()
    return text[:256]
