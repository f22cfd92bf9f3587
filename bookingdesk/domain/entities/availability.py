from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class AvailabilityTemplate:
    """Recurring weekly slots plus one-off date overrides.

    ``by_weekday`` is keyed by ``date.weekday()`` (Monday=0). Date overrides
    come from template rows whose first column is a ``YYYY-MM-DD`` date:
    available rows add a slot on that date, unavailable rows block one.
    """

    by_weekday: dict[int, tuple[str, ...]] = field(default_factory=dict)
    extra_by_date: dict[date, tuple[str, ...]] = field(default_factory=dict)
    blocked_by_date: dict[date, frozenset[str]] = field(default_factory=dict)

    def slots_for(self, day: date) -> list[str]:
        slots = list(self.by_weekday.get(day.weekday(), ()))
        for slot in self.extra_by_date.get(day, ()):
            if slot not in slots:
                slots.append(slot)
        blocked = self.blocked_by_date.get(day)
        if blocked:
            slots = [slot for slot in slots if slot not in blocked]
        return slots


@dataclass(frozen=True)
class CivilNow:
    date: date
    minutes: int  # minutes since local midnight
