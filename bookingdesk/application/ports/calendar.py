from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CalendarEvent:
    start: datetime
    end: datetime
    title: str
    description: str = ""
    location: str = ""


class CalendarPort(ABC):
    @abstractmethod
    def create_event(self, event: CalendarEvent) -> str | None:
        """Create calendar event. Returns event_id, or None when no calendar is configured."""
        raise NotImplementedError

    @abstractmethod
    def update_event(self, event_id: str, event: CalendarEvent) -> bool:
        """Move/update an existing event in place. Returns True if successful."""
        raise NotImplementedError

    @abstractmethod
    def delete_event(self, event_id: str) -> bool:
        """Delete calendar event. Returns True if successful."""
        raise NotImplementedError
