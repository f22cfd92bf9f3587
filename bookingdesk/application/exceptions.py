class BookingValidationError(ValueError):
    """Raised when client input is malformed. The message is shown to the user."""
    pass


class AuthenticationError(RuntimeError):
    """Raised when admin credentials or tokens do not match."""
    pass


class WebhookSignatureError(AuthenticationError):
    """Raised when a webhook body does not carry a valid signature."""
    pass


class BookingNotFoundError(LookupError):
    """Raised when no booking exists for a reference."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class SlotUnavailableError(RuntimeError):
    """Raised when the requested date/time slot is not bookable."""
    pass


class InvalidTransitionError(RuntimeError):
    """Raised when a status change is not allowed from the booking's current state."""
    pass


class StoreUnavailableError(RuntimeError):
    """Raised when the external record store cannot be read or written."""
    pass


class PaymentGatewayError(RuntimeError):
    """Raised when the payment gateway rejects or fails a request."""
    pass


class PaymentGatewayNotConfiguredError(PaymentGatewayError):
    """Raised when no gateway credentials are configured."""
    pass


class RefundFailedError(PaymentGatewayError):
    """Raised when a refund did not go through. Never recorded as success."""
    pass


class WebhookProcessingError(RuntimeError):
    """Raised when a verified payment event could not be applied; the gateway should retry."""
    pass


class DistanceLookupError(RuntimeError):
    """Raised when the maps provider cannot produce a route."""
    pass


class RowConflictError(RuntimeError):
    """Raised when a conditional row update collides with another row."""
    pass
