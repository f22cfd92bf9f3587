from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckoutRequest:
    reference: str
    amount_cents: int
    currency: str
    success_url: str
    cancel_url: str
    description: str
    customer_email: str = ""
    customer_first_name: str = ""
    customer_last_name: str = ""
    customer_phone: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSession:
    redirect_url: str
    checkout_id: str = ""


class PaymentGatewayPort(ABC):
    @abstractmethod
    def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        """Create a hosted checkout. Raises PaymentGatewayError on failure."""
        raise NotImplementedError

    @abstractmethod
    def refund(self, checkout_id: str, reason: str) -> None:
        """Refund a completed checkout. Raises RefundFailedError on failure."""
        raise NotImplementedError
