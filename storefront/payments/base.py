from __future__ import annotations

import abc
import enum
from dataclasses import dataclass


class PaymentMode(enum.StrEnum):
    CLIENT_REDIRECT = "client_redirect"
    SERVER_INITIATED = "server_initiated"


class PaymentInstrument(enum.StrEnum):
    UPI_INTENT = "UPI_INTENT"
    PAY_PAGE = "PAY_PAGE"


class PaymentStatus(enum.StrEnum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_gateway(cls, value: object) -> PaymentStatus:
        if isinstance(value, str) and value in {cls.SUCCESS, cls.FAILED, cls.PENDING}:
            return cls(value)
        return cls.UNKNOWN


@dataclass(frozen=True)
class PaymentRequest:
    transaction_id: str
    amount_minor_units: int
    redirect_url: str
    merchant_user_id: str


@dataclass(frozen=True)
class SignedPayload:
    base64_body: str
    signature_header: str


@dataclass(frozen=True)
class InitiatedPayment:
    url: str
    payload: str
    x_verify: str
    mode: PaymentMode = PaymentMode.CLIENT_REDIRECT


@dataclass(frozen=True)
class VerificationResult:
    transaction_id: str
    status: PaymentStatus
    raw_status: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.SUCCESS


class PaymentGateway(abc.ABC):
    def ensure_configured(self) -> None:
        """Raise ConfigurationError when credentials are missing."""

    @abc.abstractmethod
    async def initiate(self, request: PaymentRequest) -> InitiatedPayment:
        raise NotImplementedError

    @abc.abstractmethod
    async def check_status(self, transaction_id: str) -> VerificationResult:
        raise NotImplementedError
