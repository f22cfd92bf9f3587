from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from bookingdesk.application.exceptions import DistanceLookupError
from bookingdesk.application.ports.distance import DistancePort, Route
from bookingdesk.application.ports.table_store import (
    AVAILABILITY_TABLE,
    SERVICES_TABLE,
    SETTINGS_TABLE,
)
from bookingdesk.application.use_cases.availability import AvailabilityUseCase
from bookingdesk.application.use_cases.booking_lifecycle import BookingStateMachine
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.utils.money import compute_amounts
from bookingdesk.domain.entities.booking import Booking
from bookingdesk.infrastructure.calendar.mock_calendar import MockCalendar
from bookingdesk.infrastructure.notifications.logging_notifier import LoggingNotifier
from bookingdesk.infrastructure.payments.mock_gateway import MockPaymentGateway
from bookingdesk.infrastructure.store.booking_repository import BookingRepository
from bookingdesk.infrastructure.store.memory_store import MemoryTableStore

TZ = ZoneInfo("Africa/Johannesburg")

SETTINGS_ROWS = {
    "business_name": "Test Studio",
    "admin_password": "s3cret-pass",
    "admin_email": "owner@example.com",
    "email_from": "bookings@example.com",
    "deposit_percent": "50",
    "min_payable_amount": "2.00",
    "app_base_url": "https://book.example.com",
}

SERVICE_ROWS = [
    {"ID": "SVC-01", "Name": "Gel Pedicure", "Price": "450", "Duration (min)": "60", "Category": "Nails", "Active": "TRUE"},
    {"ID": "SVC-02", "Name": "Full Glam", "Price": "R550.00", "Duration (min)": "90", "Category": "Makeup", "Active": "yes"},
    {"ID": "SVC-03", "Name": "Retired Service", "Price": "100", "Duration (min)": "30", "Category": "Old", "Active": "FALSE"},
]

AVAILABILITY_ROWS = [
    {"Weekday/Date": "Monday", "Time Slot": "09:00-10:00", "Available (YES/NO)": "YES"},
    {"Weekday/Date": "Monday", "Time Slot": "13:00-14:00", "Available (YES/NO)": "YES"},
    {"Weekday/Date": "Tuesday", "Time Slot": "10:00-11:00", "Available (YES/NO)": "NO"},
    {"Weekday/Date": "Wednesday", "Time Slot": "15:00-16:00", "Available (YES/NO)": "YES"},
]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDistance(DistancePort):
    def __init__(self, km: float | None = 12.34) -> None:
        self.km = km
        self.calls: list[tuple[str, str, str]] = []

    def driving_route(self, origin: str, destination: str, api_key: str) -> Route:
        self.calls.append((origin, destination, api_key))
        if self.km is None:
            raise DistanceLookupError("No route found")
        return Route(distance_km=self.km, duration_text="18 mins")


def settings_rows(**overrides: str) -> list[dict[str, str]]:
    values = {**SETTINGS_ROWS, **overrides}
    return [{"Setting Key": key, "Value": value} for key, value in values.items()]


def make_store(**setting_overrides: str) -> MemoryTableStore:
    return MemoryTableStore(
        {
            SETTINGS_TABLE: settings_rows(**setting_overrides),
            SERVICES_TABLE: SERVICE_ROWS,
            AVAILABILITY_TABLE: AVAILABILITY_ROWS,
        }
    )


def make_booking(
    booking_id: str = "BK-TEST00000001",
    day: date = date(2026, 3, 9),
    time_slot: str = "09:00-10:00",
    services_total: str = "1000",
    **changes,
) -> Booking:
    fields = dict(
        booking_id=booking_id,
        date=day,
        time_slot=time_slot,
        customer_name="Thandi Mokoena",
        customer_email="thandi@example.com",
        customer_phone="0821234567",
        customer_address="12 Long Street, Cape Town",
        amounts=compute_amounts(Decimal(services_total), Decimal("0"), Decimal("50")),
        service_ids=("SVC-01", "SVC-02"),
        service_names=("Gel Pedicure", "Full Glam"),
        duration_minutes=150,
        created_at=datetime(2026, 3, 1, 8, 0, tzinfo=TZ),
    )
    fields.update(changes)
    return Booking(**fields)


@pytest.fixture
def store() -> MemoryTableStore:
    return make_store()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reference(store, clock) -> ReferenceData:
    return ReferenceData(store, clock=clock)


@pytest.fixture
def repository(store) -> BookingRepository:
    return BookingRepository(store)


@pytest.fixture
def calendar() -> MockCalendar:
    return MockCalendar()


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def machine(repository, reference, calendar, gateway, notifier) -> BookingStateMachine:
    return BookingStateMachine(
        repository,
        reference,
        calendar=calendar,
        gateway=gateway,
        notifier=notifier,
        timezone=TZ,
    )


@pytest.fixture
def availability(reference, repository) -> AvailabilityUseCase:
    return AvailabilityUseCase(reference, repository, TZ, now=lambda: datetime(2026, 3, 1, 8, 0, tzinfo=TZ))
