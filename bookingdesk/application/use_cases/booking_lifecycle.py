from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from zoneinfo import ZoneInfo

from bookingdesk.application.exceptions import (
    BookingValidationError,
    InvalidTransitionError,
    PaymentGatewayError,
    RefundFailedError,
)
from bookingdesk.application.ports.booking_store import BookingStorePort
from bookingdesk.application.ports.calendar import CalendarEvent, CalendarPort
from bookingdesk.application.ports.notifier import NotifierPort
from bookingdesk.application.ports.payment_gateway import CheckoutRequest, CheckoutSession, PaymentGatewayPort
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.use_cases.side_effects import SideEffectQueue
from bookingdesk.application.utils.civil_time import (
    is_strict_time_range,
    parse_iso_date,
    slot_datetimes,
)
from bookingdesk.application.utils.money import minor_units
from bookingdesk.domain.entities.booking import BalanceStatus, Booking, DepositStatus
from bookingdesk.domain.entities.business_settings import BusinessSettings


@dataclass(frozen=True)
class TransitionResult:
    booking: Booking
    changed: bool
    effects: SideEffectQueue = field(default_factory=SideEffectQueue)
    payment_url: str | None = None
    note: str | None = None


class BookingStateMachine:
    """Every legal booking transition and the side effects it owes.

    State is committed through compare-and-swap updates on the store, so a
    replayed or concurrent call observes the new state and becomes a no-op.
    Side effects are only queued on a real transition edge; callers run the
    returned queue after responding.
    """

    def __init__(
        self,
        bookings: BookingStorePort,
        reference: ReferenceData,
        calendar: CalendarPort,
        gateway: PaymentGatewayPort,
        notifier: NotifierPort,
        timezone: ZoneInfo,
    ) -> None:
        self._bookings = bookings
        self._reference = reference
        self._calendar = calendar
        self._gateway = gateway
        self._notifier = notifier
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    # -- deposit -----------------------------------------------------------

    def confirm_deposit(self, booking_id: str, payment_ref: str | None = None) -> TransitionResult:
        def to_confirmed(booking: Booking) -> Booking | None:
            if booking.deposit_status != DepositStatus.PENDING_PAYMENT:
                return None
            return replace(
                booking,
                deposit_status=DepositStatus.CONFIRMED,
                checkout_id=payment_ref or booking.checkout_id,
            )

        result = self._bookings.update(booking_id, to_confirmed)
        booking = result.booking
        if not result.changed:
            if booking.deposit_status.is_terminal:
                self._logger.warning(
                    "Deposit confirmation for closed booking needs manual follow-up",
                    extra={"booking_id": booking_id, "status": booking.deposit_status.value},
                )
            else:
                self._logger.info(
                    "Deposit already confirmed, skipping",
                    extra={"booking_id": booking_id, "status": booking.deposit_status.value},
                )
            return TransitionResult(booking=booking, changed=False)

        self._logger.info("Deposit confirmed", extra={"booking_id": booking_id})
        effects = SideEffectQueue()
        effects.add("calendar_create", self._create_calendar_entry, booking, booking_id=booking_id)
        effects.add("notify_admin_deposit", self._notifier.notify_admin_deposit_paid, booking, booking_id=booking_id)
        effects.add("notify_customer_confirmed", self._notifier.notify_customer_confirmed, booking, booking_id=booking_id)
        return TransitionResult(booking=booking, changed=True, effects=effects)

    # -- service completion and balance ------------------------------------

    def complete_service(self, booking_id: str) -> TransitionResult:
        def to_complete(booking: Booking) -> Booking | None:
            if booking.deposit_status == DepositStatus.SERVICE_COMPLETE:
                return None
            if not booking.deposit_status.can_move_to(DepositStatus.SERVICE_COMPLETE):
                raise InvalidTransitionError(
                    f"Cannot complete a booking that is {booking.deposit_status.value}"
                )
            return replace(booking, deposit_status=DepositStatus.SERVICE_COMPLETE)

        result = self._bookings.update(booking_id, to_complete)
        booking = result.booking
        if result.changed:
            self._logger.info("Service complete", extra={"booking_id": booking_id})

        if booking.balance_status in (BalanceStatus.PAID, BalanceStatus.REQUESTED):
            return TransitionResult(booking=booking, changed=result.changed)

        settings = self._reference.business_settings()
        if booking.amounts.balance < settings.min_payable_amount:
            self._logger.info(
                "Balance below payable minimum, left for manual handling",
                extra={"booking_id": booking_id, "balance": str(booking.amounts.balance)},
            )
            return TransitionResult(booking=booking, changed=result.changed, note="balance below minimum")

        try:
            session = self._create_balance_checkout(booking, settings)
        except PaymentGatewayError as e:
            self._logger.warning(
                "Balance request could not be created",
                extra={"booking_id": booking_id, "error": str(e)},
            )
            return TransitionResult(booking=booking, changed=result.changed, note=str(e))

        requested = self._mark_balance_requested(booking_id, session.redirect_url, complete=False)
        effects = SideEffectQueue()
        if requested.changed:
            effects.add(
                "notify_balance_requested",
                self._notifier.notify_customer_balance_requested,
                requested.booking,
                session.redirect_url,
                booking_id=booking_id,
            )
        return TransitionResult(
            booking=requested.booking,
            changed=result.changed or requested.changed,
            effects=effects,
            payment_url=session.redirect_url,
        )

    def request_balance(self, booking_id: str) -> TransitionResult:
        """Admin-initiated balance request. Unlike complete_service, every precondition is an error."""
        booking = self._bookings.find_by_id(booking_id)
        if booking.balance_status == BalanceStatus.PAID:
            raise InvalidTransitionError("Balance already paid")
        if booking.deposit_status.is_terminal:
            raise InvalidTransitionError(f"Booking is {booking.deposit_status.value}")
        settings = self._reference.business_settings()
        if booking.amounts.balance < settings.min_payable_amount:
            raise InvalidTransitionError(
                f"Balance below the minimum payable amount of {settings.min_payable_amount:.2f}"
            )

        session = self._create_balance_checkout(booking, settings)
        requested = self._mark_balance_requested(booking_id, session.redirect_url, complete=True)
        effects = SideEffectQueue()
        if requested.changed:
            effects.add(
                "notify_balance_requested",
                self._notifier.notify_customer_balance_requested,
                requested.booking,
                session.redirect_url,
                booking_id=booking_id,
            )
        return TransitionResult(
            booking=requested.booking,
            changed=requested.changed,
            effects=effects,
            payment_url=session.redirect_url,
        )

    def confirm_balance(self, booking_id: str, payment_ref: str | None = None) -> TransitionResult:
        def to_paid(booking: Booking) -> Booking | None:
            if booking.balance_status == BalanceStatus.PAID:
                return None
            return replace(
                booking,
                balance_status=BalanceStatus.PAID,
                balance_payment_ref=payment_ref or booking.balance_payment_ref,
            )

        result = self._bookings.update(booking_id, to_paid)
        if not result.changed:
            self._logger.info("Balance already paid, skipping", extra={"booking_id": booking_id})
            return TransitionResult(booking=result.booking, changed=False)

        self._logger.info("Balance paid", extra={"booking_id": booking_id})
        effects = SideEffectQueue()
        effects.add("notify_rebook", self._notifier.notify_customer_rebook, result.booking, booking_id=booking_id)
        effects.add("notify_admin_balance", self._notifier.notify_admin_balance_paid, result.booking, booking_id=booking_id)
        return TransitionResult(booking=result.booking, changed=True, effects=effects)

    # -- side exits --------------------------------------------------------

    def cancel(self, booking_id: str) -> TransitionResult:
        def to_cancelled(booking: Booking) -> Booking | None:
            if booking.deposit_status == DepositStatus.CANCELLED:
                return None
            if not booking.deposit_status.can_move_to(DepositStatus.CANCELLED):
                raise InvalidTransitionError(f"Cannot cancel a booking that is {booking.deposit_status.value}")
            return replace(booking, deposit_status=DepositStatus.CANCELLED)

        result = self._bookings.update(booking_id, to_cancelled)
        if not result.changed:
            return TransitionResult(booking=result.booking, changed=False)

        self._reference.invalidate_availability()
        self._logger.info("Booking cancelled", extra={"booking_id": booking_id})
        effects = SideEffectQueue()
        if result.booking.calendar_event_id:
            effects.add("calendar_delete", self._delete_calendar_entry, result.booking, booking_id=booking_id)
        return TransitionResult(booking=result.booking, changed=True, effects=effects)

    def refund(self, booking_id: str, reason: str | None = None) -> TransitionResult:
        booking = self._bookings.find_by_id(booking_id)
        if booking.deposit_status == DepositStatus.REFUNDED:
            return TransitionResult(booking=booking, changed=False)
        if not booking.deposit_status.can_move_to(DepositStatus.REFUNDED):
            raise InvalidTransitionError(f"Cannot refund a booking that is {booking.deposit_status.value}")
        if not booking.checkout_id:
            raise RefundFailedError("No checkout reference on this booking; refund it manually in the gateway dashboard")

        try:
            self._gateway.refund(booking.checkout_id, reason or "requested_by_customer")
        except RefundFailedError:
            raise
        except PaymentGatewayError as e:
            raise RefundFailedError(str(e)) from e

        def to_refunded(current: Booking) -> Booking | None:
            if current.deposit_status == DepositStatus.REFUNDED:
                return None
            return replace(current, deposit_status=DepositStatus.REFUNDED)

        result = self._bookings.update(booking_id, to_refunded)
        self._reference.invalidate_availability()
        self._logger.info("Booking refunded", extra={"booking_id": booking_id})
        effects = SideEffectQueue()
        if result.changed and result.booking.calendar_event_id:
            effects.add("calendar_delete", self._delete_calendar_entry, result.booking, booking_id=booking_id)
        return TransitionResult(booking=result.booking, changed=result.changed, effects=effects)

    # -- rescheduling and admin override -----------------------------------

    def reschedule(self, booking_id: str, new_date: str, new_time: str) -> TransitionResult:
        day = parse_iso_date((new_date or "").strip())
        if day is None:
            raise BookingValidationError("Invalid date format")
        new_time = (new_time or "").strip()
        if not is_strict_time_range(new_time):
            raise BookingValidationError("Invalid time format")

        def to_rescheduled(booking: Booking) -> Booking | None:
            if booking.deposit_status.is_terminal:
                raise InvalidTransitionError(f"Cannot reschedule a booking that is {booking.deposit_status.value}")
            if booking.date == day and booking.time_slot == new_time:
                return None
            return replace(booking, date=day, time_slot=new_time)

        result = self._bookings.update(booking_id, to_rescheduled)
        if not result.changed:
            return TransitionResult(booking=result.booking, changed=False)

        self._reference.invalidate_availability()
        self._logger.info(
            "Booking rescheduled",
            extra={"booking_id": booking_id, "date": day.isoformat(), "time": new_time},
        )
        effects = SideEffectQueue()
        if result.booking.calendar_event_id:
            effects.add("calendar_move", self._move_calendar_entry, result.booking, booking_id=booking_id)
        return TransitionResult(booking=result.booking, changed=True, effects=effects)

    def set_status(self, booking_id: str, status: DepositStatus) -> TransitionResult:
        if status == DepositStatus.PENDING_PAYMENT:
            raise InvalidTransitionError("A booking cannot be moved back to Pending Payment")
        booking = self._bookings.find_by_id(booking_id)
        if booking.deposit_status != status and not booking.deposit_status.can_move_to(status):
            raise InvalidTransitionError(
                f"Cannot move from {booking.deposit_status.value} to {status.value}"
            )
        if status == DepositStatus.CONFIRMED:
            return self.confirm_deposit(booking_id)
        if status == DepositStatus.SERVICE_COMPLETE:
            return self.complete_service(booking_id)
        if status == DepositStatus.CANCELLED:
            return self.cancel(booking_id)
        return self.refund(booking_id)

    # -- helpers -----------------------------------------------------------

    def _create_balance_checkout(self, booking: Booking, settings: BusinessSettings) -> CheckoutSession:
        return self._gateway.create_checkout(
            CheckoutRequest(
                reference=f"{booking.booking_id}-BAL",
                amount_cents=minor_units(booking.amounts.balance),
                currency=settings.currency,
                success_url=settings.success_url(booking.booking_id, "balance"),
                cancel_url=settings.cancel_url(booking.booking_id, "balance"),
                description=f"{settings.business_name} balance - {booking.services_label}",
                customer_email=booking.customer_email,
                customer_first_name=booking.first_name,
                customer_last_name=booking.last_name,
                customer_phone=booking.customer_phone,
                metadata={"bookingId": booking.booking_id, "type": "balance"},
            )
        )

    def _mark_balance_requested(self, booking_id: str, payment_url: str, complete: bool):
        def to_requested(booking: Booking) -> Booking | None:
            if booking.balance_status == BalanceStatus.PAID:
                return None
            deposit_status = booking.deposit_status
            if complete and deposit_status.can_move_to(DepositStatus.SERVICE_COMPLETE):
                deposit_status = DepositStatus.SERVICE_COMPLETE
            return replace(
                booking,
                balance_status=BalanceStatus.REQUESTED,
                payment_link=payment_url,
                deposit_status=deposit_status,
            )

        result = self._bookings.update(booking_id, to_requested)
        if result.changed:
            self._logger.info("Balance requested", extra={"booking_id": booking_id})
        return result

    def _calendar_event(self, booking: Booking) -> CalendarEvent:
        start, end = slot_datetimes(booking.date, booking.time_slot, self._timezone)
        amounts = booking.amounts
        description = "\n".join(
            [
                f"ID: {booking.booking_id}",
                f"Phone: {booking.customer_phone}",
                f"Email: {booking.customer_email}",
                f"Address: {booking.customer_address}",
                f"Total: {amounts.total:.2f}",
                f"Deposit: {amounts.deposit:.2f}",
                f"Balance: {amounts.balance:.2f}",
            ]
        )
        return CalendarEvent(
            start=start,
            end=end,
            title=f"{booking.customer_name} - {booking.services_label}",
            description=description,
            location=booking.customer_address,
        )

    def _create_calendar_entry(self, booking: Booking) -> None:
        event_id = self._calendar.create_event(self._calendar_event(booking))
        if not event_id:
            return
        self._bookings.update(booking.booking_id, lambda current: replace(current, calendar_event_id=event_id))

    def _delete_calendar_entry(self, booking: Booking) -> None:
        event_id = booking.calendar_event_id
        if self._calendar.delete_event(event_id):
            self._bookings.update(
                booking.booking_id,
                lambda current: replace(current, calendar_event_id="") if current.calendar_event_id == event_id else None,
            )

    def _move_calendar_entry(self, booking: Booking) -> None:
        event = self._calendar_event(booking)
        old_id = booking.calendar_event_id
        if self._calendar.update_event(old_id, event):
            return
        self._logger.info("Calendar update failed, recreating event", extra={"booking_id": booking.booking_id})
        self._calendar.delete_event(old_id)
        new_id = self._calendar.create_event(event) or ""
        self._bookings.update(booking.booking_id, lambda current: replace(current, calendar_event_id=new_id))
