"""Studio scheduling backend client.

Fetches event instances for a calendar range and persists drag-and-drop
reschedules. Talks JSON over the studio admin API with a bearer token.
"""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from urllib import error as urlerror
from urllib import parse as urlparse
from urllib import request as urlrequest

from .drag import CommitRequest
from .types import DateRange, EventInstance

logger = logging.getLogger(__name__)


CALENDAR_PATH = "/api/admin/calendar"
INSTANCE_PATH = "/api/admin/event-instances/{event_id}"
CUSTOMERS_PATH = "/api/admin/customers"


class ScheduleError(RuntimeError):
    """Raised when the scheduling backend fails or rejects a request."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ScheduleClient:
    """Small REST wrapper over the studio admin calendar endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout_seconds: int = 15,
    ) -> None:
        if not base_url:
            raise ScheduleError("Scheduling backend URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_instances(self, span: DateRange) -> List[EventInstance]:
        """Return every instance whose start falls inside ``span``."""
        return [EventInstance.from_dict(item) for item in self.list_raw(span.start, span.end)]

    def list_raw(self, start: date, end: date) -> List[Dict[str, Any]]:
        """Return the raw feed records for ``[start, end)``."""
        payload = self._request(
            "GET",
            CALENDAR_PATH,
            params={"from": start.isoformat(), "to": end.isoformat()},
        )
        if isinstance(payload, dict):
            payload = payload.get("items") or payload.get("events") or []
        if not isinstance(payload, list):
            raise ScheduleError("Calendar response was not a list of events.")
        return [item for item in payload if isinstance(item, dict)]

    def list_customers(self) -> List[Dict[str, Any]]:
        """Return the studio's customer records (used for new-customer counts)."""
        payload = self._request("GET", CUSTOMERS_PATH)
        if isinstance(payload, dict):
            payload = payload.get("items") or []
        if not isinstance(payload, list):
            raise ScheduleError("Customers response was not a list.")
        return [item for item in payload if isinstance(item, dict)]

    def update_instance(self, request: CommitRequest) -> Dict[str, Any]:
        """Persist a rescheduled instance; returns the backend's response body."""
        path = INSTANCE_PATH.format(event_id=urlparse.quote(str(request.event_id), safe=""))
        result = self._request("PUT", path, body=request.to_payload())
        return result if isinstance(result, dict) else {}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urlparse.urlencode(params)}"

        data: Optional[bytes] = None
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urlrequest.Request(url, data=data, method=method, headers=headers)

        try:
            with urlrequest.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urlerror.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            logger.warning("Schedule API %s %s failed with status %s", method, path, exc.code)
            raise ScheduleError(
                f"Schedule API {method} {path} failed with status {exc.code}: {detail}",
                status=exc.code,
            ) from exc
        except urlerror.URLError as exc:
            logger.warning("Schedule API %s %s unreachable: %s", method, path, exc)
            raise ScheduleError(f"Network error calling schedule API: {exc}") from exc

        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ScheduleError(f"Schedule API {method} {path} returned invalid JSON") from exc


def load_client_from_settings(settings) -> ScheduleClient:
    """Build a client from loaded Settings.

    Raises:
        ScheduleError: if ``STUDIO_API_BASE`` is not set.
    """
    return ScheduleClient(
        settings.api_base or "",
        token=settings.api_token,
        timeout_seconds=settings.api_timeout_seconds,
    )
