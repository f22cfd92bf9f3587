from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from bookingdesk.domain.entities.booking import Booking

BookingMutation = Callable[[Booking], "Booking | None"]


@dataclass(frozen=True)
class UpdateResult:
    booking: Booking
    changed: bool


class BookingStorePort(ABC):
    @abstractmethod
    def new_booking_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def create(self, booking: Booking) -> str:
        """Persist a new booking. Raises SlotUnavailableError if an active booking holds the slot."""
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, booking_id: str) -> Booking:
        """Raises BookingNotFoundError when absent."""
        raise NotImplementedError

    @abstractmethod
    def update(self, booking_id: str, mutation: BookingMutation) -> UpdateResult:
        """Apply ``mutation`` atomically against the stored booking.

        ``mutation`` returns the new booking, or None to leave it untouched.
        Raises BookingNotFoundError when absent, and SlotUnavailableError when
        the change would move an active booking onto a slot another active
        booking holds.
        """
        raise NotImplementedError

    @abstractmethod
    def list_by_month(self, month_key: str) -> list[Booking]:
        """Bookings whose date falls in ``YYYY-MM``, any status."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Booking]:
        raise NotImplementedError
