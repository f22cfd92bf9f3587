from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


SUCCESS_EVENT_TYPES = frozenset(
    {
        "payment.succeeded",
        "payment.approved",
        "payment_approved",
        "payment.captured",
        "payment_captured",
    }
)


class PaymentEventDTO(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    payload: dict[str, Any] | None = None
    status: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def payment(self) -> dict[str, Any]:
        """Gateways nest the payment under ``payload``; older events put it at the top level."""
        if self.payload is not None:
            return self.payload
        return self.model_dump(exclude={"payload"})

    @property
    def is_success_type(self) -> bool:
        return (self.type or "") in SUCCESS_EVENT_TYPES

    @property
    def payment_status(self) -> str | None:
        status = self.payment().get("status")
        return str(status) if status else None

    @property
    def payment_id(self) -> str | None:
        payment_id = self.payment().get("id")
        return str(payment_id) if payment_id else None

    @property
    def booking_id(self) -> str:
        metadata = self.payment().get("metadata") or {}
        if not isinstance(metadata, dict):
            return ""
        return str(metadata.get("bookingId") or "").strip()

    @property
    def kind(self) -> str:
        metadata = self.payment().get("metadata") or {}
        if not isinstance(metadata, dict):
            return "deposit"
        return str(metadata.get("type") or "deposit").strip().lower()
