from .checkout import (
    PaymentInitiator,
    PaymentVerifier,
    VerificationOutcome,
    to_minor_units,
)
from .notifications import EmailNotifier, NotificationDispatcher, NotificationLedger

__all__ = [
    "EmailNotifier",
    "NotificationDispatcher",
    "NotificationLedger",
    "PaymentInitiator",
    "PaymentVerifier",
    "VerificationOutcome",
    "to_minor_units",
]
