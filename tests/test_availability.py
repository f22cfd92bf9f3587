"""
Tests for monthly availability: weekly template, bookings and the business clock.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from bookingdesk.application.exceptions import BookingValidationError
from bookingdesk.application.ports.table_store import AVAILABILITY_TABLE
from bookingdesk.application.use_cases.availability import AvailabilityUseCase, month_availability
from bookingdesk.application.utils.civil_time import civil_now, normalize_time_range, parse_month_key, parse_time_range
from bookingdesk.domain.entities.availability import AvailabilityTemplate, CivilNow
from bookingdesk.domain.entities.booking import DepositStatus
from conftest import TZ, make_booking

MONDAYS = AvailabilityTemplate(by_weekday={0: ("09:00-10:00", "13:00-14:00")})


def test_booked_slot_removed_only_on_its_date():
    now = CivilNow(date=date(2026, 3, 1), minutes=8 * 60)
    result = month_availability(2026, 3, MONDAYS, [(date(2026, 3, 9), "09:00-10:00")], now)

    assert result["2026-03-09"] == ["13:00-14:00"]
    for monday in ("2026-03-02", "2026-03-16", "2026-03-23", "2026-03-30"):
        assert result[monday] == ["09:00-10:00", "13:00-14:00"]
    assert set(result) == {"2026-03-02", "2026-03-09", "2026-03-16", "2026-03-23", "2026-03-30"}


def test_past_dates_never_returned():
    now = CivilNow(date=date(2026, 3, 17), minutes=0)
    result = month_availability(2026, 3, MONDAYS, [], now)

    assert all(day >= "2026-03-17" for day in result)
    assert "2026-03-16" not in result
    assert "2026-03-23" in result


def test_today_only_keeps_slots_starting_after_now():
    template = AvailabilityTemplate(by_weekday={0: ("08:00-09:00", "09:00-10:00", "13:00-14:00")})
    now = CivilNow(date=date(2026, 3, 9), minutes=9 * 60)

    result = month_availability(2026, 3, template, [], now)

    # A slot starting exactly now has elapsed.
    assert result["2026-03-09"] == ["13:00-14:00"]


def test_fully_booked_day_omitted():
    now = CivilNow(date=date(2026, 3, 1), minutes=0)
    booked = [(date(2026, 3, 2), "09:00-10:00"), (date(2026, 3, 2), "13:00-14:00")]

    result = month_availability(2026, 3, MONDAYS, booked, now)

    assert "2026-03-02" not in result


def test_malformed_slots_dropped_and_sorted_by_start():
    template = AvailabilityTemplate(by_weekday={0: ("14:00-15:00", "bogus", "11:00-10:00", "9:00-10:00")})
    now = CivilNow(date=date(2026, 3, 1), minutes=0)

    result = month_availability(2026, 3, template, [], now)

    assert result["2026-03-02"] == ["09:00-10:00", "14:00-15:00"]


def test_date_overrides_add_and_block_slots():
    template = AvailabilityTemplate(
        by_weekday={0: ("09:00-10:00",)},
        extra_by_date={date(2026, 3, 7): ("10:00-11:00",)},
        blocked_by_date={date(2026, 3, 16): frozenset({"09:00-10:00"})},
    )
    now = CivilNow(date=date(2026, 3, 1), minutes=0)

    result = month_availability(2026, 3, template, [], now)

    assert result["2026-03-07"] == ["10:00-11:00"]
    assert "2026-03-16" not in result


def test_time_range_parsing():
    assert parse_time_range("09:00-10:30") == (540, 630)
    assert parse_time_range("9:00 - 10:00") == (540, 600)
    assert parse_time_range("10:00-09:00") is None
    assert parse_time_range("25:00-26:00") is None
    assert normalize_time_range("9:00-10:00") == "09:00-10:00"


def test_civil_now_uses_business_timezone():
    utc_evening = datetime.fromisoformat("2026-03-09T22:30:00+00:00")

    now = civil_now(TZ, utc_evening)

    assert now.date == date(2026, 3, 10)
    assert now.minutes == 30


def test_use_case_ignores_cancelled_bookings(availability, repository):
    repository.create(make_booking("BK-A", date(2026, 3, 9), "09:00-10:00"))
    repository.create(make_booking("BK-B", date(2026, 3, 16), "09:00-10:00", deposit_status=DepositStatus.CANCELLED))

    result = availability.for_month("2026-03")

    assert result["2026-03-09"] == ["13:00-14:00"]
    assert result["2026-03-16"] == ["09:00-10:00", "13:00-14:00"]
    assert availability.is_slot_available(date(2026, 3, 16), "09:00-10:00")
    assert not availability.is_slot_available(date(2026, 3, 9), "09:00-10:00")


def test_use_case_defaults_to_current_month(availability):
    result = availability.for_month(None)

    assert all(day.startswith("2026-03") for day in result)


def test_use_case_rejects_bad_month(availability):
    with pytest.raises(BookingValidationError):
        availability.for_month("2026-13")


def test_template_cache_refreshes_after_invalidate(reference, repository, store):
    uc = AvailabilityUseCase(reference, repository, TZ, now=lambda: datetime(2026, 3, 1, 8, 0, tzinfo=TZ))
    assert "2026-03-04" in uc.for_month("2026-03")

    store.replace_table(AVAILABILITY_TABLE, [])
    assert "2026-03-04" in uc.for_month("2026-03")

    reference.invalidate_availability()
    assert uc.for_month("2026-03") == {}


def test_month_key_parsing():
    assert parse_month_key("2026-03") == (2026, 3)
    assert parse_month_key("2026-3") == (2026, 3)
    assert parse_month_key("0000-01") is None
    assert parse_month_key("2026-13") is None


def test_use_case_rejects_year_zero(availability):
    with pytest.raises(BookingValidationError):
        availability.for_month("0000-01")
