from __future__ import annotations

from abc import ABC, abstractmethod

from bookingdesk.domain.entities.booking import Booking


class NotifierPort(ABC):
    @abstractmethod
    def notify_admin_deposit_paid(self, booking: Booking) -> None:
        raise NotImplementedError

    @abstractmethod
    def notify_customer_confirmed(self, booking: Booking) -> None:
        raise NotImplementedError

    @abstractmethod
    def notify_customer_balance_requested(self, booking: Booking, payment_url: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def notify_customer_rebook(self, booking: Booking) -> None:
        """Thank the customer once the balance is paid and invite them back."""
        raise NotImplementedError

    @abstractmethod
    def notify_admin_balance_paid(self, booking: Booking) -> None:
        raise NotImplementedError
