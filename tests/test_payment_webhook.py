"""
Tests for payment webhook verification and idempotent processing.
"""

from __future__ import annotations

import base64
import json

import pytest

from bookingdesk.application.exceptions import (
    BookingValidationError,
    StoreUnavailableError,
    WebhookProcessingError,
    WebhookSignatureError,
)
from bookingdesk.application.use_cases.payment_webhook import PaymentWebhookProcessor
from bookingdesk.domain.entities.booking import BalanceStatus, DepositStatus
from bookingdesk.infrastructure.payments.webhook_verify import sign, verify_signature
from conftest import make_booking

SECRET = "whsec_" + base64.b64encode(b"super-secret-signing-key").decode("ascii")
NOW = 1_773_000_000


def _body(booking_id: str = "BK-1", kind: str = "deposit", event_type: str = "payment.succeeded", status: str = "succeeded") -> bytes:
    return json.dumps(
        {
            "id": "evt_1",
            "type": event_type,
            "payload": {"id": "p_789", "status": status, "metadata": {"bookingId": booking_id, "type": kind}},
        }
    ).encode("utf-8")


def _headers(body: bytes, secret: str = SECRET, timestamp: int = NOW) -> dict[str, str]:
    return {
        "webhook-id": "msg_1",
        "webhook-timestamp": str(timestamp),
        "webhook-signature": f"v1,{sign(body, 'msg_1', str(timestamp), secret)}",
    }


def _processor(machine, secret: str | None = SECRET) -> PaymentWebhookProcessor:
    return PaymentWebhookProcessor(machine, secret, tolerance_seconds=300, clock=lambda: NOW)


def test_signature_accepts_any_valid_v1_entry():
    body = _body()
    headers = _headers(body)
    headers["webhook-signature"] = "v1,bm90LXZhbGlk " + headers["webhook-signature"]

    assert verify_signature(body, headers, SECRET, now=NOW)


def test_signature_rejects_modified_body_and_old_timestamp():
    body = _body()

    assert not verify_signature(body + b" ", _headers(body), SECRET, now=NOW)
    assert not verify_signature(body, _headers(body, timestamp=NOW - 301), SECRET, now=NOW)
    assert not verify_signature(body, {}, SECRET, now=NOW)


def test_svix_header_names_accepted():
    body = _body()
    headers = {key.replace("webhook-", "svix-"): value for key, value in _headers(body).items()}

    assert verify_signature(body, headers, SECRET, now=NOW)


def test_duplicate_deposit_delivery_has_one_set_of_side_effects(machine, repository, calendar, notifier):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine)
    body = _body()

    first = processor.process(body, _headers(body))
    first.effects.run()
    second = processor.process(body, _headers(body))
    second.effects.run()

    assert first.handled is True
    assert second.handled is False
    assert len(second.effects) == 0
    assert calendar.created == 1
    assert notifier.kinds().count("customer_confirmed") == 1
    booking = repository.find_by_id("BK-1")
    assert booking.deposit_status == DepositStatus.CONFIRMED
    assert booking.checkout_id == "p_789"


def test_bad_signature_never_mutates(machine, repository, calendar):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine)
    body = _body()

    with pytest.raises(WebhookSignatureError):
        processor.process(body, _headers(body, secret="whsec_" + base64.b64encode(b"wrong").decode()))

    assert repository.find_by_id("BK-1").deposit_status == DepositStatus.PENDING_PAYMENT
    assert calendar.created == 0


def test_missing_secret_accepts_unverified(machine, repository):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine, secret=None)

    outcome = processor.process(_body(), {})

    assert outcome.handled is True


def test_balance_delivery_marks_balance_paid(machine, repository, notifier):
    repository.create(make_booking("BK-1", deposit_status=DepositStatus.SERVICE_COMPLETE, balance_status=BalanceStatus.REQUESTED))
    processor = _processor(machine, secret=None)

    outcome = processor.process(_body(kind="balance"), {})
    outcome.effects.run()

    booking = repository.find_by_id("BK-1")
    assert booking.balance_status == BalanceStatus.PAID
    assert booking.balance_payment_ref == "p_789"
    assert notifier.kinds() == ["customer_rebook", "admin_balance_paid"]


@pytest.mark.parametrize(
    "body,reason",
    [
        (_body(event_type="payment.failed"), "ignored event type"),
        (_body(status="failed"), "ignored payment status"),
        (_body(booking_id=""), "missing booking reference"),
        (_body(kind="tip"), "unknown payment kind"),
        (_body(booking_id="BK-UNKNOWN"), "unknown booking"),
    ],
)
def test_unactionable_events_are_acknowledged(machine, repository, body, reason):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine, secret=None)

    outcome = processor.process(body, {})

    assert outcome.handled is False
    assert outcome.reason == reason
    assert repository.find_by_id("BK-1").deposit_status == DepositStatus.PENDING_PAYMENT


def test_top_level_payment_shape_supported(machine, repository):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine, secret=None)
    body = json.dumps(
        {"type": "payment_approved", "id": "p_top", "metadata": {"bookingId": "BK-1"}}
    ).encode("utf-8")

    outcome = processor.process(body, {})

    assert outcome.handled is True
    assert repository.find_by_id("BK-1").checkout_id == "p_top"


def test_malformed_body_rejected(machine):
    processor = _processor(machine, secret=None)

    with pytest.raises(BookingValidationError):
        processor.process(b"{not json", {})
    with pytest.raises(BookingValidationError):
        processor.process(b"[1, 2]", {})


def test_store_failure_asks_for_retry(machine, repository, monkeypatch):
    repository.create(make_booking("BK-1"))
    processor = _processor(machine, secret=None)

    def broken_update(booking_id, mutation):
        raise StoreUnavailableError("write failed")

    monkeypatch.setattr(repository, "update", broken_update)

    with pytest.raises(WebhookProcessingError):
        processor.process(_body(), {})
