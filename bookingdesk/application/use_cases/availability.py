from __future__ import annotations

import calendar
import logging
from datetime import date, datetime
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from bookingdesk.application.exceptions import BookingValidationError
from bookingdesk.application.ports.booking_store import BookingStorePort
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.utils.civil_time import (
    civil_now,
    normalize_time_range,
    parse_month_key,
    parse_time_range,
)
from bookingdesk.domain.entities.availability import AvailabilityTemplate, CivilNow


def month_availability(
    year: int,
    month: int,
    template: AvailabilityTemplate,
    booked: Iterable[tuple[date, str]],
    now: CivilNow,
) -> dict[str, list[str]]:
    """Bookable slots per date for one month.

    Past dates are skipped, slots held by an active booking are removed by
    exact range match, and on ``now.date`` only slots starting after
    ``now.minutes`` survive. Unparseable ranges are dropped. Dates with no
    remaining slots are omitted.
    """
    taken: dict[date, set[str]] = {}
    for day, slot in booked:
        taken.setdefault(day, set()).add(normalize_time_range(slot) or slot.strip())

    result: dict[str, list[str]] = {}
    days_in_month = calendar.monthrange(year, month)[1]
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        if day < now.date:
            continue

        parsed: list[tuple[int, str]] = []
        for raw_slot in template.slots_for(day):
            bounds = parse_time_range(raw_slot)
            if bounds is None:
                continue
            slot = normalize_time_range(raw_slot)
            if slot in taken.get(day, ()):
                continue
            if day == now.date and bounds[0] <= now.minutes:
                continue
            parsed.append((bounds[0], slot))

        if parsed:
            parsed.sort()
            result[day.isoformat()] = [slot for _, slot in parsed]
    return result


class AvailabilityUseCase:
    def __init__(
        self,
        reference: ReferenceData,
        bookings: BookingStorePort,
        timezone: ZoneInfo,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._reference = reference
        self._bookings = bookings
        self._timezone = timezone
        self._now = now
        self._logger = logging.getLogger(__name__)

    def current_civil_time(self) -> CivilNow:
        return civil_now(self._timezone, self._now() if self._now else None)

    def for_month(self, month_key: str | None = None) -> dict[str, list[str]]:
        now = self.current_civil_time()
        if month_key:
            parsed = parse_month_key(month_key)
            if parsed is None:
                raise BookingValidationError("month must look like YYYY-MM")
            year, month = parsed
        else:
            year, month = now.date.year, now.date.month

        key = f"{year:04d}-{month:02d}"
        template = self._reference.availability_template()
        booked = [
            (booking.date, booking.time_slot)
            for booking in self._bookings.list_by_month(key)
            if booking.is_active and booking.time_slot
        ]
        self._logger.debug(
            "Computing availability",
            extra={"month": key, "today": now.date.isoformat(), "minutes": now.minutes},
        )
        return month_availability(year, month, template, booked, now)

    def is_slot_available(self, day: date, time_slot: str) -> bool:
        slot = normalize_time_range(time_slot)
        if slot is None:
            return False
        slots = self.for_month(day.strftime("%Y-%m")).get(day.isoformat(), [])
        return slot in slots
