from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class DepositStatus(str, Enum):
    PENDING_PAYMENT = "Pending Payment"
    CONFIRMED = "Confirmed"
    SERVICE_COMPLETE = "Service Complete"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"

    @property
    def is_terminal(self) -> bool:
        return self in (DepositStatus.CANCELLED, DepositStatus.REFUNDED)

    @property
    def rank(self) -> int:
        # Side exits rank above everything so nothing can follow them.
        return _DEPOSIT_RANK[self]

    def can_move_to(self, target: "DepositStatus") -> bool:
        # A cancelled booking may still have its deposit returned.
        if self == DepositStatus.CANCELLED and target == DepositStatus.REFUNDED:
            return True
        if self.is_terminal:
            return False
        if target.is_terminal:
            return True
        return target.rank > self.rank


_DEPOSIT_RANK = {
    DepositStatus.PENDING_PAYMENT: 0,
    DepositStatus.CONFIRMED: 1,
    DepositStatus.SERVICE_COMPLETE: 2,
    DepositStatus.CANCELLED: 3,
    DepositStatus.REFUNDED: 3,
}


class BalanceStatus(str, Enum):
    PENDING = "Pending"
    REQUESTED = "Requested"
    PAID = "Paid"


ACTIVE_DEPOSIT_STATUSES = frozenset(
    {
        DepositStatus.PENDING_PAYMENT,
        DepositStatus.CONFIRMED,
        DepositStatus.SERVICE_COMPLETE,
    }
)


@dataclass(frozen=True)
class Amounts:
    services_total: Decimal
    call_out_fee: Decimal
    total: Decimal
    deposit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class Booking:
    booking_id: str
    date: date
    time_slot: str  # "HH:MM-HH:MM"
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    amounts: Amounts
    service_ids: tuple[str, ...] = ()
    service_names: tuple[str, ...] = ()
    duration_minutes: int = 0
    one_way_km: float | None = None
    round_trip_km: float | None = None
    deposit_status: DepositStatus = DepositStatus.PENDING_PAYMENT
    balance_status: BalanceStatus = BalanceStatus.PENDING
    checkout_id: str = ""
    balance_payment_ref: str = ""
    payment_link: str = ""
    calendar_event_id: str = ""
    created_at: datetime | None = None
    notes: str = ""

    @property
    def is_active(self) -> bool:
        return self.deposit_status in ACTIVE_DEPOSIT_STATUSES

    @property
    def month_key(self) -> str:
        return self.date.strftime("%Y-%m")

    @property
    def services_label(self) -> str:
        return ", ".join(self.service_names)

    @property
    def first_name(self) -> str:
        parts = self.customer_name.split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        return " ".join(self.customer_name.split()[1:])
