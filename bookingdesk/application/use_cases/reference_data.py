from __future__ import annotations

import logging
import time
from datetime import date
from typing import Callable

from bookingdesk.application.exceptions import StoreUnavailableError
from bookingdesk.application.ports.table_store import (
    AVAILABILITY_TABLE,
    SERVICES_TABLE,
    SETTINGS_TABLE,
    Row,
    TableStorePort,
)
from bookingdesk.application.utils.civil_time import normalize_time_range, parse_iso_date
from bookingdesk.application.utils.money import ZERO, parse_money
from bookingdesk.application.utils.ttl_cache import TTLCache
from bookingdesk.domain.entities.availability import AvailabilityTemplate
from bookingdesk.domain.entities.business_settings import BusinessSettings
from bookingdesk.domain.entities.service_catalog import Service

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_TRUTHY = {"true", "yes", "1", "y"}


class ReferenceData:
    """Process-local, time-bounded caches over the read-mostly tables.

    TTLs follow how often a person edits each table: settings rarely,
    the catalog occasionally, the weekly template most often.
    """

    def __init__(
        self,
        store: TableStorePort,
        settings_ttl: float = 600.0,
        catalog_ttl: float = 480.0,
        availability_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)
        self._settings = TTLCache("settings", self._load_settings, settings_ttl, clock)
        self._services = TTLCache("services", self._load_services, catalog_ttl, clock)
        self._template = TTLCache("availability", self._load_template, availability_ttl, clock)

    def business_settings(self) -> BusinessSettings:
        return self._settings.get()

    def services(self) -> list[Service]:
        return list(self._services.get())

    def services_by_id(self) -> dict[str, Service]:
        return {service.id: service for service in self._services.get()}

    def availability_template(self) -> AvailabilityTemplate:
        return self._template.get()

    def admin_password(self) -> str:
        """Admin password read straight from the store, bypassing the settings cache."""
        return self._load_settings().admin_password

    def invalidate(self) -> None:
        self._settings.invalidate()
        self._services.invalidate()
        self._template.invalidate()
        self._logger.info("Reference caches invalidated")

    def invalidate_availability(self) -> None:
        self._template.invalidate()

    def _rows(self, table: str) -> list[Row]:
        try:
            return self._store.get_rows(table)
        except StoreUnavailableError:
            raise
        except Exception as e:
            self._logger.exception("Store read failed", extra={"table": table, "error": str(e)})
            raise StoreUnavailableError(f"{table} could not be loaded") from e

    def _load_settings(self) -> BusinessSettings:
        raw: dict[str, str] = {}
        for row in self._rows(SETTINGS_TABLE):
            key = (row.get("Setting Key") or "").strip()
            if key:
                raw[key] = (row.get("Value") or "").strip()
        return BusinessSettings.from_mapping(raw)

    def _load_services(self) -> tuple[Service, ...]:
        services = []
        for row in self._rows(SERVICES_TABLE):
            if (row.get("Active") or "").strip().lower() not in _TRUTHY:
                continue
            service_id = (row.get("ID") or "").strip()
            if not service_id:
                continue
            services.append(
                Service(
                    id=service_id,
                    name=(row.get("Name") or "").strip(),
                    description=(row.get("Description") or "").strip(),
                    price=max(parse_money(row.get("Price")), ZERO),
                    duration_minutes=max(_int(row.get("Duration (min)")), 0),
                    category=(row.get("Category") or "").strip(),
                )
            )
        return tuple(services)

    def _load_template(self) -> AvailabilityTemplate:
        by_weekday: dict[int, list[str]] = {}
        extra_by_date: dict[date, list[str]] = {}
        blocked_by_date: dict[date, set[str]] = {}
        for row in self._rows(AVAILABILITY_TABLE):
            day_key = (row.get("Weekday/Date") or "").strip()
            slot = normalize_time_range(row.get("Time Slot") or "")
            if not day_key or not slot:
                continue
            available = (row.get("Available (YES/NO)") or "").strip().upper() == "YES"
            weekday = WEEKDAYS.get(day_key.lower())
            if weekday is not None:
                if available:
                    by_weekday.setdefault(weekday, []).append(slot)
                continue
            day = parse_iso_date(day_key)
            if day is None:
                continue
            if available:
                extra_by_date.setdefault(day, []).append(slot)
            else:
                blocked_by_date.setdefault(day, set()).add(slot)
        return AvailabilityTemplate(
            by_weekday={weekday: tuple(slots) for weekday, slots in by_weekday.items()},
            extra_by_date={day: tuple(slots) for day, slots in extra_by_date.items()},
            blocked_by_date={day: frozenset(slots) for day, slots in blocked_by_date.items()},
        )


def _int(value: str | None) -> int:
    try:
        return int(float(value or 0))
    except ValueError:
        return 0
