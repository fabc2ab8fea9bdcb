from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from storefront.core.config import Settings
from storefront.payments.base import (
    InitiatedPayment,
    PaymentGateway,
    PaymentInstrument,
    PaymentMode,
    PaymentRequest,
    PaymentStatus,
    VerificationResult,
)
from storefront.payments.checksum import PAY_PATH, STATUS_PATH, signed_payload
from storefront.payments.errors import ConfigurationError, GatewayError

logger = logging.getLogger(__name__)


class PhonePeGateway(PaymentGateway):
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def base_url(self) -> str:
        return self._settings.phonepe_base_url.rstrip("/")

    @property
    def pay_url(self) -> str:
        return f"{self.base_url}{PAY_PATH}"

    @property
    def mode(self) -> PaymentMode:
        try:
            return PaymentMode(self._settings.payment_mode.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported PAYMENT_MODE: {self._settings.payment_mode}") from exc

    @property
    def instrument(self) -> PaymentInstrument:
        try:
            return PaymentInstrument(self._settings.payment_instrument_type.strip().upper())
        except ValueError as exc:
            raise ConfigurationError(
                f"Unsupported PAYMENT_INSTRUMENT_TYPE: {self._settings.payment_instrument_type}"
            ) from exc

    def ensure_configured(self) -> None:
        missing = self._settings.missing_gateway_settings
        if missing:
            logger.error("phonepe_config_missing", extra={"missing": ",".join(missing)})
            raise ConfigurationError(f"Missing gateway configuration: {', '.join(missing)}")

    def build_pay_payload(self, request: PaymentRequest) -> dict[str, Any]:
        return {
            "merchantId": self._settings.phonepe_merchant_id,
            "merchantTransactionId": request.transaction_id,
            "transactionId": request.transaction_id,
            "amount": request.amount_minor_units,
            "merchantUserId": request.merchant_user_id,
            "redirectUrl": request.redirect_url,
            "redirectMode": "POST",
            "callbackUrl": request.redirect_url,
            "paymentInstrument": {"type": self.instrument.value},
        }

    def build_status_payload(self, transaction_id: str) -> dict[str, Any]:
        return {
            "merchantId": self._settings.phonepe_merchant_id,
            "transactionId": transaction_id,
        }

    async def initiate(self, request: PaymentRequest) -> InitiatedPayment:
        self.ensure_configured()
        mode = self.mode
        signed = signed_payload(
            self.build_pay_payload(request),
            PAY_PATH,
            self._settings.phonepe_salt_key,
            self._settings.phonepe_salt_index,
        )
        if mode is PaymentMode.CLIENT_REDIRECT:
            return InitiatedPayment(
                url=self.pay_url,
                payload=signed.base64_body,
                x_verify=signed.signature_header,
                mode=mode,
            )

        try:
            async with httpx.AsyncClient(timeout=self._settings.phonepe_timeout_seconds) as client:
                response = await client.post(
                    self.pay_url,
                    json={"request": signed.base64_body},
                    headers={
                        "Content-Type": "application/json",
                        "X-VERIFY": signed.signature_header,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "phonepe_pay_request_failed",
                extra={"transaction_id": request.transaction_id, "error": exc.__class__.__name__},
            )
            raise GatewayError(str(exc), transaction_id=request.transaction_id) from exc

        redirect_url = _extract_redirect_url(_safe_json(response))
        if not redirect_url:
            logger.warning("phonepe_pay_redirect_missing", extra={"transaction_id": request.transaction_id})
            raise GatewayError("Gateway reply has no redirect url", transaction_id=request.transaction_id)
        return InitiatedPayment(
            url=redirect_url,
            payload=signed.base64_body,
            x_verify=signed.signature_header,
            mode=mode,
        )

    async def check_status(self, transaction_id: str) -> VerificationResult:
        self.ensure_configured()
        signed = signed_payload(
            self.build_status_payload(transaction_id),
            STATUS_PATH,
            self._settings.phonepe_salt_key,
            self._settings.phonepe_salt_index,
        )
        url = f"{self.base_url}{STATUS_PATH}/{quote(transaction_id, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self._settings.phonepe_timeout_seconds) as client:
                response = await client.get(
                    url,
                    headers={
                        "Content-Type": "application/json",
                        "X-VERIFY": signed.signature_header,
                        "X-MERCHANT-ID": self._settings.phonepe_merchant_id,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "phonepe_status_request_failed",
                extra={"transaction_id": transaction_id, "error": exc.__class__.__name__},
            )
            raise GatewayError(str(exc), transaction_id=transaction_id) from exc

        raw_status = _extract_status(_safe_json(response))
        return VerificationResult(
            transaction_id=transaction_id,
            status=PaymentStatus.from_gateway(raw_status),
            raw_status=raw_status,
        )


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


def _extract_status(body: dict[str, Any]) -> str | None:
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    status = data.get("status")
    return status if isinstance(status, str) else None


def _extract_redirect_url(body: dict[str, Any]) -> str | None:
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    instrument_response = data.get("instrumentResponse")
    if not isinstance(instrument_response, dict):
        return None
    redirect_info = instrument_response.get("redirectInfo")
    if isinstance(redirect_info, dict) and isinstance(redirect_info.get("url"), str):
        return redirect_info["url"]
    # UPI_INTENT replies carry a deep link instead of a redirect page.
    intent_url = instrument_response.get("intentUrl")
    if isinstance(intent_url, str) and intent_url:
        return intent_url
    return None
