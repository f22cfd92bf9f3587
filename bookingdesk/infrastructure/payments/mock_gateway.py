from __future__ import annotations

import logging

from bookingdesk.application.exceptions import PaymentGatewayError, RefundFailedError
from bookingdesk.application.ports.payment_gateway import CheckoutRequest, CheckoutSession, PaymentGatewayPort


class MockPaymentGateway(PaymentGatewayPort):
    def __init__(self, base_url: str = "https://pay.example.test") -> None:
        self._base_url = base_url.rstrip("/")
        self.checkouts: list[CheckoutRequest] = []
        self.refunds: list[tuple[str, str]] = []
        self.fail_checkout = False
        self.fail_refund = False
        self._logger = logging.getLogger(__name__)

    def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        if self.fail_checkout:
            raise PaymentGatewayError("Mock checkout failure")
        self.checkouts.append(request)
        checkout_id = f"ch_mock_{len(self.checkouts)}"
        self._logger.info(
            "Mock checkout created",
            extra={"booking_id": request.reference, "amount_cents": request.amount_cents},
        )
        return CheckoutSession(redirect_url=f"{self._base_url}/checkout/{checkout_id}", checkout_id=checkout_id)

    def refund(self, checkout_id: str, reason: str) -> None:
        if self.fail_refund:
            raise RefundFailedError("Mock refund failure")
        self.refunds.append((checkout_id, reason))
        self._logger.info("Mock refund issued", extra={"checkout_id": checkout_id})
