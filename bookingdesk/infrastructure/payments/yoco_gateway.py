from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable
from urllib.parse import urlencode

import httpx

from bookingdesk.application.exceptions import (
    PaymentGatewayError,
    PaymentGatewayNotConfiguredError,
    RefundFailedError,
)
from bookingdesk.application.ports.payment_gateway import CheckoutRequest, CheckoutSession, PaymentGatewayPort
from bookingdesk.core.config import settings
from bookingdesk.domain.entities.business_settings import BusinessSettings


class YocoGateway(PaymentGatewayPort):
    """Hosted checkouts and refunds against the Yoco payments API.

    The secret key and payment page slug are business settings, read on
    every call so edits take effect after the settings cache refreshes.
    Without a key, a payment-page link is built from the slug instead.
    """

    def __init__(
        self,
        settings_provider: Callable[[], BusinessSettings],
        api_base_url: str | None = None,
        pay_page_base_url: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._api_base_url = (api_base_url or settings.YOCO_API_BASE_URL).rstrip("/")
        self._pay_page_base_url = (pay_page_base_url or settings.YOCO_PAY_PAGE_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        business = self._settings_provider()
        error: str | None = None

        if business.gateway_secret_key:
            payload = {
                "amount": request.amount_cents,
                "currency": request.currency,
                "successUrl": request.success_url,
                "cancelUrl": request.cancel_url,
                "description": request.description,
                "customer": {
                    "email": request.customer_email,
                    "firstName": request.customer_first_name,
                    "lastName": request.customer_last_name,
                    "phone": request.customer_phone,
                },
                "metadata": dict(request.metadata),
            }
            try:
                response = self._client.post(
                    f"{self._api_base_url}/checkouts",
                    json=payload,
                    headers=self._headers(business.gateway_secret_key, idempotency_key=request.reference),
                )
            except httpx.HTTPError as e:
                self._logger.error("Checkout request failed", extra={"booking_id": request.reference, "error": str(e)})
                error = "Payment gateway unreachable"
            else:
                data = _json(response)
                redirect_url = data.get("redirectUrl")
                if response.is_success and redirect_url:
                    self._logger.info(
                        "Checkout created",
                        extra={"booking_id": request.reference, "status": response.status_code},
                    )
                    return CheckoutSession(redirect_url=str(redirect_url), checkout_id=str(data.get("id") or ""))
                error = _error_message(data, response.status_code)
                self._logger.error(
                    "Checkout rejected",
                    extra={"booking_id": request.reference, "status": response.status_code, "error": error},
                )

        if business.payment_page_slug:
            return CheckoutSession(redirect_url=self._payment_page_link(business.payment_page_slug, request))

        if error:
            raise PaymentGatewayError(error)
        raise PaymentGatewayNotConfiguredError("No payment gateway credentials in Settings")

    def refund(self, checkout_id: str, reason: str) -> None:
        business = self._settings_provider()
        if not business.gateway_secret_key:
            raise RefundFailedError("yoco_secret_key not set")
        try:
            response = self._client.post(
                f"{self._api_base_url}/checkouts/{checkout_id}/refund",
                json={"reason": reason},
                headers=self._headers(business.gateway_secret_key, idempotency_key=f"refund-{checkout_id}"),
            )
        except httpx.HTTPError as e:
            self._logger.error("Refund request failed", extra={"error": str(e)})
            raise RefundFailedError("Payment gateway unreachable") from e
        if not response.is_success:
            message = _error_message(_json(response), response.status_code)
            self._logger.error("Refund rejected", extra={"status": response.status_code, "error": message})
            raise RefundFailedError(message)
        self._logger.info("Refund accepted", extra={"status": response.status_code})

    def _payment_page_link(self, slug: str, request: CheckoutRequest) -> str:
        params = {
            "amount": f"{Decimal(request.amount_cents) / 100:.2f}",
            "reference": request.reference,
            "firstName": request.customer_first_name,
            "lastName": request.customer_last_name,
            "email": request.customer_email,
            "redirectOnPaymentSuccess": request.success_url,
        }
        return f"{self._pay_page_base_url}/{slug}?{urlencode(params)}"

    @staticmethod
    def _headers(secret_key: str, idempotency_key: str | None = None) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {secret_key}", "Content-Type": "application/json"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(data: dict[str, Any], status_code: int) -> str:
    return str(data.get("displayMessage") or data.get("message") or f"Payment gateway error ({status_code})")
