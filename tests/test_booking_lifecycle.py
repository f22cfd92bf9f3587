"""
Tests for booking status transitions and the side effects they queue.
"""

from __future__ import annotations

from datetime import date

import pytest

from bookingdesk.application.exceptions import (
    BookingValidationError,
    InvalidTransitionError,
    PaymentGatewayError,
    RefundFailedError,
    SlotUnavailableError,
)
from bookingdesk.domain.entities.booking import BalanceStatus, DepositStatus
from conftest import make_booking


def _confirmed(machine, repository, booking_id="BK-1", **changes):
    repository.create(make_booking(booking_id, **changes))
    result = machine.confirm_deposit(booking_id, "ch_paid_1")
    result.effects.run()
    return repository.find_by_id(booking_id)


def test_confirm_deposit_queues_calendar_and_notifications(machine, repository, calendar, notifier):
    repository.create(make_booking("BK-1"))

    result = machine.confirm_deposit("BK-1", "p_123")

    assert result.changed is True
    assert result.booking.deposit_status == DepositStatus.CONFIRMED
    assert result.booking.checkout_id == "p_123"
    assert result.effects.names() == ["calendar_create", "notify_admin_deposit", "notify_customer_confirmed"]

    assert result.effects.run() == 0
    assert calendar.created == 1
    assert notifier.kinds() == ["admin_deposit_paid", "customer_confirmed"]
    assert repository.find_by_id("BK-1").calendar_event_id == "mock_event_1"


def test_confirm_deposit_twice_is_a_no_op(machine, repository, calendar, notifier):
    repository.create(make_booking("BK-1"))
    machine.confirm_deposit("BK-1", "p_123").effects.run()

    again = machine.confirm_deposit("BK-1", "p_123")

    assert again.changed is False
    assert len(again.effects) == 0
    assert calendar.created == 1
    assert notifier.kinds().count("customer_confirmed") == 1


def test_confirm_deposit_on_cancelled_booking_does_nothing(machine, repository):
    repository.create(make_booking("BK-1", deposit_status=DepositStatus.CANCELLED))

    result = machine.confirm_deposit("BK-1", "p_late")

    assert result.changed is False
    assert repository.find_by_id("BK-1").deposit_status == DepositStatus.CANCELLED


def test_calendar_failure_does_not_undo_confirmation(machine, repository, calendar, notifier):
    calendar.fail_create = True
    repository.create(make_booking("BK-1"))

    result = machine.confirm_deposit("BK-1")

    assert result.effects.run() == 1
    assert repository.find_by_id("BK-1").deposit_status == DepositStatus.CONFIRMED
    assert notifier.kinds() == ["admin_deposit_paid", "customer_confirmed"]


def test_complete_service_requests_balance(machine, repository, gateway, notifier):
    _confirmed(machine, repository)

    result = machine.complete_service("BK-1")
    result.effects.run()

    booking = repository.find_by_id("BK-1")
    assert booking.deposit_status == DepositStatus.SERVICE_COMPLETE
    assert booking.balance_status == BalanceStatus.REQUESTED
    assert booking.payment_link == result.payment_url
    assert gateway.checkouts[-1].amount_cents == 50000
    assert gateway.checkouts[-1].metadata == {"bookingId": "BK-1", "type": "balance"}
    assert notifier.kinds()[-1] == "customer_balance_requested"


def test_complete_service_below_threshold_leaves_balance_pending(machine, repository, gateway, notifier):
    # R3.00 total at 50% leaves a R1.50 balance, under the R2.00 minimum.
    _confirmed(machine, repository, services_total="3")
    notifications_before = list(notifier.kinds())

    result = machine.complete_service("BK-1")
    result.effects.run()

    booking = repository.find_by_id("BK-1")
    assert booking.deposit_status == DepositStatus.SERVICE_COMPLETE
    assert booking.balance_status == BalanceStatus.PENDING
    assert booking.payment_link == ""
    assert gateway.checkouts == []
    assert notifier.kinds() == notifications_before


def test_complete_service_gateway_failure_keeps_balance_pending(machine, repository, gateway):
    _confirmed(machine, repository)
    gateway.fail_checkout = True

    result = machine.complete_service("BK-1")

    assert result.changed is True
    assert result.note == "Mock checkout failure"
    assert repository.find_by_id("BK-1").balance_status == BalanceStatus.PENDING


def test_complete_service_on_cancelled_booking_rejected(machine, repository):
    repository.create(make_booking("BK-1", deposit_status=DepositStatus.CANCELLED))

    with pytest.raises(InvalidTransitionError):
        machine.complete_service("BK-1")


def test_request_balance_is_strict(machine, repository, gateway):
    _confirmed(machine, repository)
    gateway.fail_checkout = True

    with pytest.raises(PaymentGatewayError):
        machine.request_balance("BK-1")

    gateway.fail_checkout = False
    result = machine.request_balance("BK-1")
    assert result.booking.balance_status == BalanceStatus.REQUESTED
    assert result.booking.deposit_status == DepositStatus.SERVICE_COMPLETE

    machine.confirm_balance("BK-1", "p_bal")
    with pytest.raises(InvalidTransitionError):
        machine.request_balance("BK-1")


def test_request_balance_below_minimum_rejected(machine, repository):
    _confirmed(machine, repository, services_total="3")

    with pytest.raises(InvalidTransitionError):
        machine.request_balance("BK-1")


def test_confirm_balance_once(machine, repository, notifier):
    _confirmed(machine, repository)
    machine.complete_service("BK-1").effects.run()

    first = machine.confirm_balance("BK-1", "p_bal")
    first.effects.run()
    second = machine.confirm_balance("BK-1", "p_bal")

    assert first.changed and not second.changed
    assert repository.find_by_id("BK-1").balance_payment_ref == "p_bal"
    assert notifier.kinds()[-2:] == ["customer_rebook", "admin_balance_paid"]


def test_cancel_deletes_calendar_event(machine, repository, calendar):
    _confirmed(machine, repository)

    result = machine.cancel("BK-1")
    result.effects.run()

    assert result.booking.deposit_status == DepositStatus.CANCELLED
    assert calendar.events == {}
    assert repository.find_by_id("BK-1").calendar_event_id == ""
    assert machine.cancel("BK-1").changed is False


def test_terminal_states_cannot_move_back(machine, repository):
    repository.create(make_booking("BK-1", deposit_status=DepositStatus.REFUNDED))

    with pytest.raises(InvalidTransitionError):
        machine.set_status("BK-1", DepositStatus.CONFIRMED)
    with pytest.raises(InvalidTransitionError):
        machine.cancel("BK-1")


def test_set_status_rejects_pending_payment(machine, repository):
    _confirmed(machine, repository)

    with pytest.raises(InvalidTransitionError):
        machine.set_status("BK-1", DepositStatus.PENDING_PAYMENT)


def test_set_status_confirmed_shares_webhook_logic(machine, repository, calendar, notifier):
    repository.create(make_booking("BK-1"))

    result = machine.set_status("BK-1", DepositStatus.CONFIRMED)
    result.effects.run()

    assert calendar.created == 1
    assert "customer_confirmed" in notifier.kinds()


def test_refund_failure_leaves_status_unchanged(machine, repository, gateway):
    _confirmed(machine, repository)
    gateway.fail_refund = True

    with pytest.raises(RefundFailedError):
        machine.refund("BK-1", "requested_by_customer")

    assert repository.find_by_id("BK-1").deposit_status == DepositStatus.CONFIRMED


def test_refund_requires_checkout_reference(machine, repository):
    repository.create(make_booking("BK-1", deposit_status=DepositStatus.CONFIRMED))

    with pytest.raises(RefundFailedError):
        machine.refund("BK-1")


def test_refund_success(machine, repository, gateway, calendar):
    _confirmed(machine, repository)

    result = machine.refund("BK-1")
    result.effects.run()

    assert result.booking.deposit_status == DepositStatus.REFUNDED
    assert gateway.refunds == [("ch_paid_1", "requested_by_customer")]
    assert calendar.events == {}
    assert machine.refund("BK-1").changed is False
    assert len(gateway.refunds) == 1


def test_cancelled_booking_can_still_be_refunded(machine, repository, gateway):
    _confirmed(machine, repository)
    machine.cancel("BK-1").effects.run()

    result = machine.refund("BK-1")

    assert result.booking.deposit_status == DepositStatus.REFUNDED


def test_reschedule_moves_calendar_event(machine, repository, calendar):
    _confirmed(machine, repository)

    result = machine.reschedule("BK-1", "2026-03-16", "13:00-14:00")
    result.effects.run()

    booking = repository.find_by_id("BK-1")
    assert booking.date == date(2026, 3, 16)
    assert booking.time_slot == "13:00-14:00"
    event = calendar.events[booking.calendar_event_id]
    assert event.start.hour == 13 and event.start.day == 16


def test_reschedule_recreates_event_when_update_fails(machine, repository, calendar):
    _confirmed(machine, repository)
    calendar.fail_update = True

    machine.reschedule("BK-1", "2026-03-16", "13:00-14:00").effects.run()

    booking = repository.find_by_id("BK-1")
    assert booking.calendar_event_id == "mock_event_2"
    assert list(calendar.events) == ["mock_event_2"]


def test_reschedule_validates_input(machine, repository):
    _confirmed(machine, repository)

    with pytest.raises(BookingValidationError):
        machine.reschedule("BK-1", "16-03-2026", "13:00-14:00")
    with pytest.raises(BookingValidationError):
        machine.reschedule("BK-1", "2026-03-16", "1pm")


def test_reschedule_rejects_slot_held_by_another_booking(machine, repository):
    _confirmed(machine, repository, "BK-A")
    _confirmed(machine, repository, "BK-B", day=date(2026, 3, 16))

    with pytest.raises(SlotUnavailableError):
        machine.reschedule("BK-B", "2026-03-09", "09:00-10:00")

    booking = repository.find_by_id("BK-B")
    assert booking.date == date(2026, 3, 16)
    active = [b.booking_id for b in repository.list_by_month("2026-03") if b.is_active and b.date == date(2026, 3, 9)]
    assert active == ["BK-A"]
