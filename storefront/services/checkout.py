from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable
from urllib.parse import urlsplit

from fastapi import BackgroundTasks
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from storefront.core.config import Settings
from storefront.payments.base import (
    InitiatedPayment,
    PaymentGateway,
    PaymentRequest,
    PaymentStatus,
)
from storefront.payments.errors import ValidationError
from storefront.services.notifications import NotificationDispatcher, NotificationLedger

logger = logging.getLogger(__name__)

MAX_TRANSACTION_ID_LENGTH = 38
PAYMENT_VERIFIED_MESSAGE = "Payment verified."
PAYMENT_FAILED_MESSAGE = "Payment failed."

_EMAIL_ADAPTER = TypeAdapter(EmailStr)
_MINOR_UNITS = Decimal(100)


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount (rupees) to minor units (paise) exactly.

    Only JSON numbers are amounts; numeric strings such as ``"10"`` are rejected.
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationError("amount is required")
    if not isinstance(amount, (int, float, Decimal)):
        raise ValidationError("amount must be a number")
    # str() keeps 199.99 as written instead of its binary float value.
    value = Decimal(str(amount))
    if not value.is_finite():
        raise ValidationError("amount must be a number")
    if value <= 0:
        raise ValidationError("amount must be greater than zero")
    minor = value * _MINOR_UNITS
    if minor != minor.to_integral_value():
        raise ValidationError("amount must have at most two decimal places")
    return int(minor)


def validate_transaction_id(transaction_id: Any) -> str:
    if not isinstance(transaction_id, str) or not transaction_id.strip():
        raise ValidationError("transactionId is required")
    value = transaction_id.strip()
    if len(value) > MAX_TRANSACTION_ID_LENGTH:
        raise ValidationError(f"transactionId must be at most {MAX_TRANSACTION_ID_LENGTH} characters")
    return value


def validate_redirect_url(redirect_url: Any) -> str:
    if not isinstance(redirect_url, str) or not redirect_url.strip():
        raise ValidationError("redirectUrl is required")
    value = redirect_url.strip()
    try:
        parts = urlsplit(value)
        hostname = parts.hostname
        parts.port  # raises on a non-numeric or out-of-range port
    except ValueError as exc:
        raise ValidationError("redirectUrl must be an absolute http(s) URL") from exc
    if parts.scheme not in {"http", "https"} or not hostname or " " in value:
        raise ValidationError("redirectUrl must be an absolute http(s) URL")
    return value


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Missing email or order details")
    value = email.strip()
    try:
        _EMAIL_ADAPTER.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError("userEmail is not a valid email address") from exc
    return value

def guest_user_id() -> str:
    return f"guest_{int(time.time() * 1000)}"


class PaymentInitiator:
    def __init__(
        self,
        gateway: PaymentGateway,
        *,
        merchant_user_id_factory: Callable[[], str] = guest_user_id,
    ) -> None:
        self._gateway = gateway
        self._merchant_user_id_factory = merchant_user_id_factory

    async def initiate(self, amount: Any, transaction_id: Any, redirect_url: Any) -> InitiatedPayment:
        self._gateway.ensure_configured()

        request = PaymentRequest(
            transaction_id=validate_transaction_id(transaction_id),
            amount_minor_units=to_minor_units(amount),
            redirect_url=validate_redirect_url(redirect_url),
            merchant_user_id=self._merchant_user_id_factory(),
        )
        initiated = await self._gateway.initiate(request)
        logger.info(
            "payment_initiated",
            extra={
                "transaction_id": request.transaction_id,
                "amount_minor_units": request.amount_minor_units,
                "mode": initiated.mode.value,
            },
        )
        return initiated


@dataclass(frozen=True)
class VerificationOutcome:
    transaction_id: str
    success: bool
    message: str
    status: PaymentStatus
    notification: str = "skipped"


class PaymentVerifier:
    def __init__(
        self,
        settings: Settings,
        gateway: PaymentGateway,
        notifier: NotificationDispatcher,
        ledger: NotificationLedger | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._notifier = notifier
        self._ledger = ledger if settings.notification_dedupe_enabled else None

    async def verify(
        self,
        transaction_id: Any,
        user_email: Any,
        order_details: Any,
        background_tasks: BackgroundTasks | None = None,
    ) -> VerificationOutcome:
        if not user_email or order_details is None:
            raise ValidationError("Missing email or order details")
        email = validate_email(user_email)
        tx_id = validate_transaction_id(transaction_id)
        try:
            summary = json.dumps(order_details, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ValidationError("orderDetails must be JSON serializable") from exc

        result = await self._gateway.check_status(tx_id)
        if not result.is_paid:
            logger.info(
                "payment_verify_not_successful",
                extra={"transaction_id": tx_id, "status": result.status.value, "raw_status": result.raw_status},
            )
            return VerificationOutcome(
                transaction_id=tx_id,
                success=False,
                message=PAYMENT_FAILED_MESSAGE,
                status=result.status,
            )

        notification = await self._notify(tx_id, email, summary, background_tasks)
        logger.info("payment_verified", extra={"transaction_id": tx_id, "notification": notification})
        return VerificationOutcome(
            transaction_id=tx_id,
            success=True,
            message=PAYMENT_VERIFIED_MESSAGE,
            status=result.status,
            notification=notification,
        )

    async def _notify(
        self,
        transaction_id: str,
        email: str,
        summary: str,
        background_tasks: BackgroundTasks | None,
    ) -> str:
        if self._ledger is not None and not self._ledger.reserve(transaction_id):
            logger.info("confirmation_email_duplicate_skipped", extra={"transaction_id": transaction_id})
            return "duplicate"
        if background_tasks is not None and self._settings.notification_mode.strip().lower() == "background":
            background_tasks.add_task(self.dispatch, transaction_id, email, summary)
            return "scheduled"
        return await self.dispatch(transaction_id, email, summary)

    async def dispatch(self, transaction_id: str, email: str, summary: str) -> str:
        try:
            await self._notifier.send_confirmation_email(email, summary)
        except Exception as exc:  # noqa: BLE001 - notification is best-effort
            if self._ledger is not None:
                self._ledger.release(transaction_id)
            logger.warning(
                "confirmation_email_failed",
                extra={"transaction_id": transaction_id, "error": str(exc)},
            )
            return "failed"
        return "sent"
