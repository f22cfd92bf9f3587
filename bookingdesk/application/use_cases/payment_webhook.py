from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping

from pydantic import ValidationError

from bookingdesk.application.dto.payment_event import PaymentEventDTO
from bookingdesk.application.exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    WebhookProcessingError,
    WebhookSignatureError,
)
from bookingdesk.application.use_cases.booking_lifecycle import BookingStateMachine
from bookingdesk.application.use_cases.side_effects import SideEffectQueue
from bookingdesk.infrastructure.payments.webhook_verify import verify_signature


@dataclass(frozen=True)
class WebhookOutcome:
    handled: bool
    reason: str
    booking_id: str | None = None
    effects: SideEffectQueue = field(default_factory=SideEffectQueue)


class PaymentWebhookProcessor:
    """Turns a gateway delivery into at most one state transition.

    Anything the processor cannot act on is acknowledged and discarded so the
    gateway stops retrying; only a failed mutation raises
    ``WebhookProcessingError`` to ask for a retry.
    """

    def __init__(
        self,
        state_machine: BookingStateMachine,
        secret: str | None,
        tolerance_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state_machine = state_machine
        self._secret = (secret or "").strip()
        self._tolerance_seconds = tolerance_seconds
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def process(self, body: bytes, headers: Mapping[str, str]) -> WebhookOutcome:
        if self._secret:
            if not verify_signature(body, headers, self._secret, self._tolerance_seconds, now=self._clock()):
                self._logger.warning("Webhook signature verification failed")
                raise WebhookSignatureError("Invalid signature")
        else:
            self._logger.warning("Webhook secret not configured; accepting unverified delivery")

        event = self._parse(body)
        event_type = event.type or ""

        if not event.is_success_type:
            return self._discard("ignored event type", event_type=event_type)
        status = event.payment_status
        if status and status != "succeeded":
            return self._discard("ignored payment status", event_type=event_type, status=status)

        booking_id = event.booking_id
        if not booking_id:
            return self._discard("missing booking reference", event_type=event_type)
        kind = event.kind
        if kind not in {"deposit", "balance"}:
            return self._discard("unknown payment kind", event_type=event_type, kind=kind, booking_id=booking_id)

        try:
            if kind == "balance":
                result = self._state_machine.confirm_balance(booking_id, event.payment_id)
            else:
                result = self._state_machine.confirm_deposit(booking_id, event.payment_id)
        except BookingNotFoundError:
            return self._discard("unknown booking", event_type=event_type, booking_id=booking_id)
        except Exception as e:
            self._logger.exception(
                "Webhook processing failed",
                extra={"booking_id": booking_id, "kind": kind, "error": str(e)},
            )
            raise WebhookProcessingError(str(e)) from e

        reason = f"{kind} confirmed" if result.changed else f"{kind} already recorded"
        self._logger.info(reason.capitalize(), extra={"booking_id": booking_id, "event_type": event_type, "kind": kind})
        return WebhookOutcome(handled=result.changed, reason=reason, booking_id=booking_id, effects=result.effects)

    def _parse(self, body: bytes) -> PaymentEventDTO:
        try:
            payload = json.loads(body.decode("utf-8")) if body else None
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise BookingValidationError("Malformed webhook body") from e
        if not isinstance(payload, dict):
            raise BookingValidationError("Malformed webhook body")
        try:
            return PaymentEventDTO.model_validate(payload)
        except ValidationError as e:
            raise BookingValidationError("Malformed webhook body") from e

    def _discard(self, reason: str, **context: str) -> WebhookOutcome:
        self._logger.info(f"Webhook discarded: {reason}", extra=context)
        return WebhookOutcome(handled=False, reason=reason, booking_id=context.get("booking_id"))
