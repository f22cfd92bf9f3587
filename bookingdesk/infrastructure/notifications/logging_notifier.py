from __future__ import annotations

import logging
from dataclasses import dataclass

from bookingdesk.application.ports.notifier import NotifierPort
from bookingdesk.domain.entities.booking import Booking


@dataclass(frozen=True)
class SentNotification:
    kind: str
    booking_id: str
    recipient: str
    payment_url: str | None = None


class LoggingNotifier(NotifierPort):
    """Records notifications instead of sending them. Used in dev and tests."""

    def __init__(self, admin_email: str = "admin@localhost") -> None:
        self.sent: list[SentNotification] = []
        self._admin_email = admin_email
        self._logger = logging.getLogger(__name__)

    def kinds(self) -> list[str]:
        return [notification.kind for notification in self.sent]

    def notify_admin_deposit_paid(self, booking: Booking) -> None:
        self._record("admin_deposit_paid", booking, self._admin_email)

    def notify_customer_confirmed(self, booking: Booking) -> None:
        self._record("customer_confirmed", booking, booking.customer_email)

    def notify_customer_balance_requested(self, booking: Booking, payment_url: str) -> None:
        self._record("customer_balance_requested", booking, booking.customer_email, payment_url)

    def notify_customer_rebook(self, booking: Booking) -> None:
        self._record("customer_rebook", booking, booking.customer_email)

    def notify_admin_balance_paid(self, booking: Booking) -> None:
        self._record("admin_balance_paid", booking, self._admin_email)

    def _record(self, kind: str, booking: Booking, recipient: str, payment_url: str | None = None) -> None:
        self.sent.append(
            SentNotification(kind=kind, booking_id=booking.booking_id, recipient=recipient, payment_url=payment_url)
        )
        self._logger.info("Notification recorded", extra={"kind": kind, "booking_id": booking.booking_id})
