"""External calendar gateway: free/busy query and event creation.

``CalendarGateway`` is the seam the consultation service talks to;
``GoogleCalendarGateway`` speaks the Google Calendar v3 REST contract over
``httpx``. Request timeouts belong to the HTTP client, not to callers.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httpx

from labx.config import settings
from labx.errors import AuthError, NetworkError, UnauthenticatedError
from labx.timeutils import isoformat_in

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime


class CalendarGateway(ABC):
    """Contract for an external calendar backend."""

    @abstractmethod
    def query_free_busy(self, time_min: datetime, time_max: datetime, time_zone: str) -> list[BusyInterval]:
        """Return busy intervals in ``[time_min, time_max)``.

        Raises ``NetworkError``/``AuthError``; ``UnauthenticatedError`` when no
        credentials are available.
        """

    @abstractmethod
    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        time_zone: str,
    ) -> bool:
        """Register an event; True on success."""


def _parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GoogleCalendarGateway(CalendarGateway):
    """Google Calendar v3 client authenticated with a user's OAuth access token."""

    def __init__(
        self,
        access_token: Optional[str],
        base_url: Optional[str] = None,
        calendar_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.access_token = access_token
        self.base_url = (base_url or settings.CALENDAR_API_BASE_URL).rstrip("/")
        self.calendar_id = calendar_id or settings.CALENDAR_ID
        self.timeout = timeout if timeout is not None else settings.CALENDAR_HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        if not self.access_token:
            raise UnauthenticatedError("No calendar access token; sign in with the calendar provider first")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}{path}",
                    headers={"Authorization": f"Bearer {self.access_token}"},
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Calendar request to {path} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthError(f"Calendar API rejected credentials ({response.status_code})")
        return response

    def query_free_busy(self, time_min: datetime, time_max: datetime, time_zone: str) -> list[BusyInterval]:
        body = {
            "timeMin": isoformat_in(time_min, time_zone),
            "timeMax": isoformat_in(time_max, time_zone),
            "timeZone": time_zone,
            "items": [{"id": self.calendar_id}],
        }
        response = self._post("/freeBusy", body)
        if not response.is_success:
            raise NetworkError(f"freeBusy query failed ({response.status_code}): {response.text}")

        try:
            busy = response.json()["calendars"][self.calendar_id]["busy"]
            intervals = [BusyInterval(_parse_instant(b["start"]), _parse_instant(b["end"])) for b in busy]
        except (ValueError, KeyError, TypeError) as exc:
            raise NetworkError(f"Malformed freeBusy response: {exc}") from exc

        logger.info("freeBusy %s..%s on %s: %d busy block(s)", body["timeMin"], body["timeMax"], self.calendar_id, len(intervals))
        return intervals

    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        time_zone: str,
    ) -> bool:
        body = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": isoformat_in(start, time_zone), "timeZone": time_zone},
            "end": {"dateTime": isoformat_in(end, time_zone), "timeZone": time_zone},
        }
        response = self._post(f"/calendars/{self.calendar_id}/events", body)
        if not response.is_success:
            logger.warning("Calendar event creation failed (%d): %s", response.status_code, response.text)
            return False

        logger.info("Calendar event '%s' created at %s", summary, body["start"]["dateTime"])
        return True


def build_gateway(access_token: Optional[str]) -> Optional[CalendarGateway]:
    """Gateway for the caller's token, or None when no token was supplied."""
    if not access_token:
        return None
    return GoogleCalendarGateway(access_token)
