from __future__ import annotations

import logging

from bookingdesk.application.ports.calendar import CalendarEvent, CalendarPort


class MockCalendar(CalendarPort):
    def __init__(self) -> None:
        self.events: dict[str, CalendarEvent] = {}
        self.created = 0
        self.fail_create = False
        self.fail_update = False
        self._logger = logging.getLogger(__name__)

    def create_event(self, event: CalendarEvent) -> str | None:
        if self.fail_create:
            raise RuntimeError("Mock calendar create failure")
        self.created += 1
        event_id = f"mock_event_{self.created}"
        self.events[event_id] = event
        self._logger.info(
            "Mock calendar event created",
            extra={"event_id": event_id, "start": event.start.isoformat(), "end": event.end.isoformat()},
        )
        return event_id

    def update_event(self, event_id: str, event: CalendarEvent) -> bool:
        if self.fail_update or event_id not in self.events:
            return False
        self.events[event_id] = event
        self._logger.info("Mock calendar event updated", extra={"event_id": event_id})
        return True

    def delete_event(self, event_id: str) -> bool:
        if event_id in self.events:
            del self.events[event_id]
            self._logger.info("Mock calendar event deleted", extra={"event_id": event_id})
            return True
        return False
