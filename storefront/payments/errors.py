from __future__ import annotations


class CheckoutError(Exception):
    """Base error for the checkout flow."""

    event_code = "checkout_error"
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None, *, transaction_id: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.transaction_id = transaction_id

    @property
    def client_message(self) -> str:
        return self.public_message


class ValidationError(CheckoutError):
    event_code = "checkout_validation_failed"
    status_code = 400
    public_message = "Invalid request"

    @property
    def client_message(self) -> str:
        # Validation messages describe the caller's own input.
        return str(self)


class ConfigurationError(CheckoutError):
    event_code = "checkout_configuration_missing"
    status_code = 500
    public_message = "Server error"


class GatewayError(CheckoutError):
    event_code = "payment_gateway_error"
    status_code = 500
    public_message = "Payment gateway unavailable"


class NotificationError(CheckoutError):
    event_code = "notification_dispatch_failed"
    status_code = 500
    public_message = "Notification failed"
