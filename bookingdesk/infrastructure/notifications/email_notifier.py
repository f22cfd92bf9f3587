from __future__ import annotations

import logging
from datetime import date
from typing import Callable

import resend

from bookingdesk.application.ports.notifier import NotifierPort
from bookingdesk.core.config import settings
from bookingdesk.domain.entities.booking import Booking
from bookingdesk.domain.entities.business_settings import BusinessSettings


def format_day(day: date) -> str:
    return f"{day:%A}, {day.day} {day:%B %Y}"


class EmailNotifier(NotifierPort):
    """Plain-text booking emails sent through Resend.

    Sender and admin addresses are business settings. A message with no
    API key, sender or recipient is skipped with a log line.
    """

    def __init__(self, settings_provider: Callable[[], BusinessSettings], api_key: str | None = None) -> None:
        self._settings_provider = settings_provider
        self._api_key = api_key or settings.RESEND_API_KEY
        self._logger = logging.getLogger(__name__)

    def notify_admin_deposit_paid(self, booking: Booking) -> None:
        business = self._settings_provider()
        self._send(
            business,
            business.admin_email,
            f"Deposit paid - {booking.customer_name} - {format_day(booking.date)}",
            self._booking_summary(booking),
            booking,
        )

    def notify_customer_confirmed(self, booking: Booking) -> None:
        business = self._settings_provider()
        body = "\n".join(
            [
                f"Hi {booking.first_name},",
                "",
                f"Your deposit is received and your booking with {business.business_name} is confirmed.",
                "",
                f"Date: {format_day(booking.date)}",
                f"Time: {booking.time_slot}",
                f"Services: {booking.services_label}",
                f"Address: {booking.customer_address}",
                f"Deposit paid: {booking.amounts.deposit:.2f}",
                f"Balance due after the service: {booking.amounts.balance:.2f}",
                "",
                f"Reference: {booking.booking_id}",
            ]
        )
        self._send(
            business,
            booking.customer_email,
            f"You're booked, {booking.first_name}! - {format_day(booking.date)}",
            body,
            booking,
        )

    def notify_customer_balance_requested(self, booking: Booking, payment_url: str) -> None:
        business = self._settings_provider()
        body = "\n".join(
            [
                f"Hi {booking.first_name},",
                "",
                f"Thank you for choosing {business.business_name}.",
                f"The balance of {business.currency} {booking.amounts.balance:.2f} for {booking.services_label} is now due.",
                "",
                f"Pay securely here: {payment_url}",
                "",
                f"Reference: {booking.booking_id}",
            ]
        )
        self._send(
            business,
            booking.customer_email,
            f"Your balance payment - {business.currency} {booking.amounts.balance:.2f}",
            body,
            booking,
        )

    def notify_customer_rebook(self, booking: Booking) -> None:
        business = self._settings_provider()
        body = "\n".join(
            [
                f"Hi {booking.first_name},",
                "",
                "Your payment is complete. Thank you!",
                f"Whenever you're ready for your next appointment, book again at {business.app_base_url}",
                "",
                f"Reference: {booking.booking_id}",
            ]
        )
        self._send(
            business,
            booking.customer_email,
            f"Thank you {booking.first_name}, see you next time!",
            body,
            booking,
        )

    def notify_admin_balance_paid(self, booking: Booking) -> None:
        business = self._settings_provider()
        self._send(
            business,
            business.admin_email,
            f"Balance paid - {booking.customer_name} - {format_day(booking.date)}",
            self._booking_summary(booking),
            booking,
        )

    def _booking_summary(self, booking: Booking) -> str:
        amounts = booking.amounts
        return "\n".join(
            [
                f"Reference: {booking.booking_id}",
                f"Client: {booking.customer_name}",
                f"Phone: {booking.customer_phone}",
                f"Email: {booking.customer_email}",
                f"Address: {booking.customer_address}",
                "",
                f"Date: {format_day(booking.date)}",
                f"Time: {booking.time_slot}",
                f"Services: {booking.services_label}",
                f"Total: {amounts.total:.2f}",
                f"Deposit: {amounts.deposit:.2f} ({booking.deposit_status.value})",
                f"Balance: {amounts.balance:.2f} ({booking.balance_status.value})",
            ]
        )

    def _send(self, business: BusinessSettings, to: str, subject: str, text: str, booking: Booking) -> None:
        if not (self._api_key and business.email_from and to):
            self._logger.info("Email not configured, skipping", extra={"booking_id": booking.booking_id})
            return
        resend.api_key = self._api_key
        response = resend.Emails.send(
            {
                "from": f"{business.business_name} <{business.email_from}>",
                "to": [to],
                "subject": subject,
                "text": text,
            }
        )
        self._logger.info(
            "Email sent",
            extra={"booking_id": booking.booking_id, "event_id": (response or {}).get("id")},
        )
