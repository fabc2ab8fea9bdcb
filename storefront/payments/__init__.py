from storefront.payments.base import (
    InitiatedPayment,
    PaymentGateway,
    PaymentRequest,
    PaymentStatus,
    SignedPayload,
    VerificationResult,
)
from storefront.payments.phonepe import PhonePeGateway

__all__ = [
    "InitiatedPayment",
    "PaymentGateway",
    "PaymentRequest",
    "PaymentStatus",
    "PhonePeGateway",
    "SignedPayload",
    "VerificationResult",
]
