from __future__ import annotations

import logging
import time
from typing import Any, Callable
from urllib.parse import quote

import httpx

from bookingdesk.application.ports.calendar import CalendarEvent, CalendarPort
from bookingdesk.core.config import settings


class GoogleCalendar(CalendarPort):
    """Google Calendar v3 over plain HTTP with an OAuth refresh-token grant.

    The target calendar id is a business setting; when it is empty the
    adapter does nothing and ``create_event`` returns None.
    """

    def __init__(
        self,
        calendar_id_provider: Callable[[], str],
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
        timezone_name: str | None = None,
        base_url: str | None = None,
        token_url: str | None = None,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._calendar_id_provider = calendar_id_provider
        self._client_id = client_id or settings.GOOGLE_CLIENT_ID
        self._client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self._refresh_token = refresh_token or settings.GOOGLE_CALENDAR_REFRESH_TOKEN
        self._timezone_name = timezone_name or settings.BUSINESS_TIMEZONE
        self._base_url = (base_url or settings.GOOGLE_CALENDAR_BASE_URL).rstrip("/")
        self._token_url = token_url or settings.GOOGLE_TOKEN_URL
        self._client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self._clock = clock
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._logger = logging.getLogger(__name__)

        if not (self._client_id and self._client_secret and self._refresh_token):
            raise ValueError("Google OAuth client id, secret and refresh token are required for Google Calendar")

    def create_event(self, event: CalendarEvent) -> str | None:
        calendar_id = self._calendar_id()
        if not calendar_id:
            return None
        body = self._event_body(event)
        body["colorId"] = "2"
        response = self._client.post(self._events_url(calendar_id), json=body, headers=self._headers())
        response.raise_for_status()
        event_id = response.json().get("id")
        if not event_id:
            raise ValueError("No event ID returned from Google Calendar")
        self._logger.info("Calendar event created", extra={"event_id": event_id})
        return str(event_id)

    def update_event(self, event_id: str, event: CalendarEvent) -> bool:
        calendar_id = self._calendar_id()
        if not calendar_id or not event_id:
            return False
        try:
            response = self._client.patch(
                f"{self._events_url(calendar_id)}/{quote(event_id, safe='')}",
                json=self._event_body(event),
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.error("Error updating calendar event", extra={"event_id": event_id, "error": str(e)})
            return False
        self._logger.info("Calendar event updated", extra={"event_id": event_id})
        return True

    def delete_event(self, event_id: str) -> bool:
        calendar_id = self._calendar_id()
        if not calendar_id or not event_id:
            return False
        try:
            response = self._client.delete(
                f"{self._events_url(calendar_id)}/{quote(event_id, safe='')}",
                headers=self._headers(),
            )
            # Already gone counts as deleted.
            if response.status_code not in (404, 410):
                response.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.error("Error deleting calendar event", extra={"event_id": event_id, "error": str(e)})
            return False
        self._logger.info("Calendar event deleted", extra={"event_id": event_id})
        return True

    def _calendar_id(self) -> str:
        return (self._calendar_id_provider() or "").strip()

    def _events_url(self, calendar_id: str) -> str:
        return f"{self._base_url}/calendars/{quote(calendar_id, safe='')}/events"

    def _event_body(self, event: CalendarEvent) -> dict[str, Any]:
        return {
            "summary": event.title,
            "description": event.description,
            "location": event.location,
            "start": {"dateTime": event.start.isoformat(), "timeZone": self._timezone_name},
            "end": {"dateTime": event.end.isoformat(), "timeZone": self._timezone_name},
        }

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token()}", "Content-Type": "application/json"}

    def _token(self) -> str:
        if self._access_token and self._clock() < self._token_expires_at:
            return self._access_token
        response = self._client.post(
            self._token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": self._refresh_token,
            },
        )
        response.raise_for_status()
        data = response.json()
        self._access_token = str(data["access_token"])
        # Refresh a minute early.
        self._token_expires_at = self._clock() + max(int(data.get("expires_in", 3600)) - 60, 0)
        return self._access_token
