from __future__ import annotations

import logging
import secrets
from datetime import date, datetime

from bookingdesk.application.exceptions import BookingNotFoundError, RowConflictError, SlotUnavailableError
from bookingdesk.application.ports.booking_store import BookingMutation, BookingStorePort, UpdateResult
from bookingdesk.application.ports.table_store import BOOKINGS_TABLE, Row, TableStorePort
from bookingdesk.application.utils.civil_time import normalize_time_range
from bookingdesk.application.utils.money import parse_money
from bookingdesk.domain.entities.booking import (
    ACTIVE_DEPOSIT_STATUSES,
    Amounts,
    BalanceStatus,
    Booking,
    DepositStatus,
)

ID_COLUMN = "Booking ID"
DATE_COLUMN = "Date"
TIME_COLUMN = "Time"
DEPOSIT_STATUS_COLUMN = "Deposit Status"

_ACTIVE_STATUS_VALUES = frozenset(status.value for status in ACTIVE_DEPOSIT_STATUSES)


class BookingRepository(BookingStorePort):
    """The only component that reads or writes rows in the Bookings table."""

    def __init__(self, store: TableStorePort, id_prefix: str = "BK-") -> None:
        self._store = store
        self._id_prefix = id_prefix
        self._logger = logging.getLogger(__name__)

    def new_booking_id(self) -> str:
        # 48 random bits; collisions are not checked.
        return self._id_prefix + secrets.token_hex(6).upper()

    def create(self, booking: Booking) -> str:
        slot = normalize_time_range(booking.time_slot) or booking.time_slot
        day = booking.date.isoformat()

        def holds_slot(row: Row) -> bool:
            return _holds_slot(row, day, slot)

        row = _to_row(booking)
        if not self._store.append_row(BOOKINGS_TABLE, row, conflict=holds_slot):
            self._logger.info(
                "Slot already taken",
                extra={"booking_id": booking.booking_id, "date": day, "time": slot},
            )
            raise SlotUnavailableError(f"{day} {slot} is no longer available")
        self._logger.info("Booking saved", extra={"booking_id": booking.booking_id})
        return booking.booking_id

    def find_by_id(self, booking_id: str) -> Booking:
        wanted = (booking_id or "").strip()
        if wanted:
            for row in self._store.get_rows(BOOKINGS_TABLE):
                if (row.get(ID_COLUMN) or "").strip() == wanted:
                    booking = _from_row(row)
                    if booking is not None:
                        return booking
                    self._logger.warning("Unreadable booking row", extra={"booking_id": wanted})
                    break
        raise BookingNotFoundError(wanted)

    def update(self, booking_id: str, mutation: BookingMutation) -> UpdateResult:
        outcome: dict[str, object] = {"changed": False}

        def mutate(row: Row) -> Row | None:
            current = _from_row(row)
            if current is None:
                return None
            updated = mutation(current)
            if updated is None or updated == current:
                return None
            new_row = _to_row(updated)
            changes = {column: value for column, value in new_row.items() if row.get(column) != value}
            outcome["changed"] = bool(changes)
            outcome["moved"] = DATE_COLUMN in changes or TIME_COLUMN in changes
            return changes

        def takes_held_slot(updated: Row, other: Row) -> bool:
            if not outcome.get("moved") or not _is_active(updated):
                return False
            day = (updated.get(DATE_COLUMN) or "").strip()
            slot = normalize_time_range(updated.get(TIME_COLUMN) or "") or (updated.get(TIME_COLUMN) or "").strip()
            return _holds_slot(other, day, slot)

        try:
            stored = self._store.update_row(BOOKINGS_TABLE, ID_COLUMN, booking_id, mutate, conflict=takes_held_slot)
        except RowConflictError as e:
            self._logger.info("Slot already taken", extra={"booking_id": booking_id})
            raise SlotUnavailableError("That date and time is already booked") from e
        booking = _from_row(stored) if stored is not None else None
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return UpdateResult(booking=booking, changed=bool(outcome["changed"]))

    def list_by_month(self, month_key: str) -> list[Booking]:
        return [
            booking
            for booking in self.list_all()
            if booking.month_key == month_key
        ]

    def list_all(self) -> list[Booking]:
        bookings = []
        for row in self._store.get_rows(BOOKINGS_TABLE):
            booking = _from_row(row)
            if booking is not None:
                bookings.append(booking)
        return bookings


def _is_active(row: Row) -> bool:
    return (row.get(DEPOSIT_STATUS_COLUMN) or "").strip() in _ACTIVE_STATUS_VALUES


def _holds_slot(row: Row, day: str, slot: str) -> bool:
    """True when ``row`` is an active booking on ``day`` at ``slot``."""
    if not _is_active(row) or (row.get(DATE_COLUMN) or "").strip() != day:
        return False
    return (normalize_time_range(row.get(TIME_COLUMN) or "") or "") == slot


def _to_row(booking: Booking) -> Row:
    amounts = booking.amounts
    return {
        ID_COLUMN: booking.booking_id,
        DATE_COLUMN: booking.date.isoformat(),
        TIME_COLUMN: booking.time_slot,
        "Client Name": booking.customer_name,
        "Client Phone": booking.customer_phone,
        "Client Email": booking.customer_email,
        "Client Address": booking.customer_address,
        "Service IDs": ", ".join(booking.service_ids),
        "Service Names": ", ".join(booking.service_names),
        "Service Duration (min)": str(booking.duration_minutes or ""),
        "One Way Km": _km(booking.one_way_km),
        "Round Trip Km": _km(booking.round_trip_km),
        "Call Out Fee": f"{amounts.call_out_fee:.2f}",
        "Service Price": f"{amounts.services_total:.2f}",
        "Total Amount": f"{amounts.total:.2f}",
        "Deposit Amount": f"{amounts.deposit:.2f}",
        "Balance Due": f"{amounts.balance:.2f}",
        DEPOSIT_STATUS_COLUMN: booking.deposit_status.value,
        "Balance Status": booking.balance_status.value,
        "Payment Link": booking.payment_link,
        "Calendar Event ID": booking.calendar_event_id,
        "Created At": booking.created_at.isoformat() if booking.created_at else "",
        "Checkout ID": booking.checkout_id,
        "Balance Payment Ref": booking.balance_payment_ref,
        "Notes": booking.notes,
    }


def _from_row(row: Row) -> Booking | None:
    booking_id = (row.get(ID_COLUMN) or "").strip()
    if not booking_id:
        return None
    try:
        day = date.fromisoformat((row.get(DATE_COLUMN) or "").strip())
    except ValueError:
        return None
    return Booking(
        booking_id=booking_id,
        date=day,
        time_slot=(row.get(TIME_COLUMN) or "").strip(),
        customer_name=row.get("Client Name") or "",
        customer_email=row.get("Client Email") or "",
        customer_phone=row.get("Client Phone") or "",
        customer_address=row.get("Client Address") or "",
        amounts=Amounts(
            services_total=parse_money(row.get("Service Price")),
            call_out_fee=parse_money(row.get("Call Out Fee")),
            total=parse_money(row.get("Total Amount")),
            deposit=parse_money(row.get("Deposit Amount")),
            balance=parse_money(row.get("Balance Due")),
        ),
        service_ids=_split(row.get("Service IDs")),
        service_names=_split(row.get("Service Names")),
        duration_minutes=_int(row.get("Service Duration (min)")),
        one_way_km=_float(row.get("One Way Km")),
        round_trip_km=_float(row.get("Round Trip Km")),
        deposit_status=_enum(DepositStatus, row.get(DEPOSIT_STATUS_COLUMN), DepositStatus.PENDING_PAYMENT),
        balance_status=_enum(BalanceStatus, row.get("Balance Status"), BalanceStatus.PENDING),
        checkout_id=(row.get("Checkout ID") or "").strip(),
        balance_payment_ref=(row.get("Balance Payment Ref") or "").strip(),
        payment_link=(row.get("Payment Link") or "").strip(),
        calendar_event_id=(row.get("Calendar Event ID") or "").strip(),
        created_at=_datetime(row.get("Created At")),
        notes=row.get("Notes") or "",
    )


def _split(value: str | None) -> tuple[str, ...]:
    return tuple(part.strip() for part in (value or "").split(",") if part.strip())


def _int(value: str | None) -> int:
    try:
        return int(float(value or 0))
    except ValueError:
        return 0


def _float(value: str | None) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


def _km(value: float | None) -> str:
    return "" if value is None else f"{value:g}"


def _enum(enum_cls, value: str | None, default):
    try:
        return enum_cls((value or "").strip())
    except ValueError:
        return default


def _datetime(value: str | None) -> datetime | None:
    try:
        return datetime.fromisoformat(value) if value else None
    except ValueError:
        return None
