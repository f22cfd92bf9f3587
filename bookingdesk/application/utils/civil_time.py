from __future__ import annotations

import re
from datetime import date, datetime
from zoneinfo import ZoneInfo

from bookingdesk.domain.entities.availability import CivilNow

_TIME_RANGE_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")
_STRICT_TIME_RANGE_RE = re.compile(r"^\d{2}:\d{2}-\d{2}:\d{2}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def civil_now(tz: ZoneInfo, now: datetime | None = None) -> CivilNow:
    """Current date and minute-of-day in ``tz``, whatever the server timezone is."""
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return CivilNow(date=current.date(), minutes=current.hour * 60 + current.minute)


def parse_time_range(value: str) -> tuple[int, int] | None:
    """'9:00-10:30' -> (540, 630). None when malformed or not increasing."""
    match = _TIME_RANGE_RE.match(value or "")
    if not match:
        return None
    sh, sm, eh, em = (int(part) for part in match.groups())
    if sh > 23 or eh > 24 or sm > 59 or em > 59 or (eh == 24 and em):
        return None
    start, end = sh * 60 + sm, eh * 60 + em
    if end <= start:
        return None
    return start, end


def normalize_time_range(value: str) -> str | None:
    parsed = parse_time_range(value)
    if parsed is None:
        return None
    start, end = parsed
    return f"{start // 60:02d}:{start % 60:02d}-{end // 60:02d}:{end % 60:02d}"


def is_strict_time_range(value: str) -> bool:
    return bool(_STRICT_TIME_RANGE_RE.match(value or "")) and parse_time_range(value) is not None


def parse_iso_date(value: str) -> date | None:
    if not _DATE_RE.match(value or ""):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_month_key(value: str) -> tuple[int, int] | None:
    match = _MONTH_RE.match((value or "").strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        return None
    return year, month


def slot_datetimes(day: date, time_slot: str, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Aware start/end datetimes for a slot; falls back to a one-hour slot at midnight."""
    start, end = parse_time_range(time_slot) or (0, 60)
    start_dt = datetime(day.year, day.month, day.day, start // 60, start % 60, tzinfo=tz)
    end_hour, end_minute = divmod(end, 60)
    if end_hour == 24:
        end_dt = datetime(day.year, day.month, day.day, 23, 59, tzinfo=tz)
    else:
        end_dt = datetime(day.year, day.month, day.day, end_hour, end_minute, tzinfo=tz)
    return start_dt, end_dt
