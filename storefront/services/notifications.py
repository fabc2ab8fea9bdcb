from __future__ import annotations

import html
import json
import logging
import threading
from collections import OrderedDict
from typing import Any, Protocol

import httpx

from storefront.core.config import Settings
from storefront.payments.errors import NotificationError

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    async def send_confirmation_email(self, recipient: str, summary: str) -> None:
        ...


class EmailNotifier:
    """Sends order confirmations through a Brevo-compatible transactional API."""

    subject = "Your order is confirmed"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send_confirmation_email(self, recipient: str, summary: str) -> None:
        api_key = self._settings.email_api_key
        sender = self._settings.email_sender_address
        if not api_key or not sender:
            logger.warning(
                "email_config_missing",
                extra={"api_key_set": bool(api_key), "sender_set": bool(sender)},
            )
            raise NotificationError("Email API key or sender address is not configured")

        message = {
            "sender": {"name": self._settings.email_sender_name, "email": sender},
            "to": [{"email": recipient}],
            "subject": self.subject,
            "htmlContent": render_confirmation_html(summary),
        }
        try:
            async with httpx.AsyncClient(timeout=self._settings.email_timeout_seconds) as client:
                response = await client.post(
                    self._settings.email_api_url,
                    json=message,
                    headers={"api-key": api_key, "Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise NotificationError(f"Email request failed: {exc.__class__.__name__}") from exc
        if response.status_code not in (200, 201, 202):
            raise NotificationError(f"Email API returned {response.status_code}")
        logger.info("confirmation_email_sent", extra={"status_code": response.status_code})


def render_confirmation_html(summary: str) -> str:
    try:
        details: Any = json.loads(summary)
        pretty = json.dumps(details, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        pretty = summary
    return (
        "<h2>Thank you for your order!</h2>"
        "<p>Your payment was received. Order details:</p>"
        f"<pre>{html.escape(pretty)}</pre>"
    )


class NotificationLedger:
    """Remembers which transactions already had a confirmation sent.

    Per-process and bounded: the oldest entries are dropped first.
    """

    def __init__(self, max_size: int = 10000) -> None:
        self._max_size = max(1, max_size)
        self._entries: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def reserve(self, transaction_id: str) -> bool:
        with self._lock:
            if transaction_id in self._entries:
                self._entries.move_to_end(transaction_id)
                return False
            self._entries[transaction_id] = None
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
            return True

    def release(self, transaction_id: str) -> None:
        with self._lock:
            self._entries.pop(transaction_id, None)

    def __contains__(self, transaction_id: object) -> bool:
        with self._lock:
            return transaction_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
