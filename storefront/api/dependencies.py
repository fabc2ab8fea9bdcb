from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from storefront.core.config import Settings, get_settings
from storefront.payments.base import PaymentGateway
from storefront.payments.phonepe import PhonePeGateway
from storefront.services.checkout import PaymentInitiator, PaymentVerifier
from storefront.services.notifications import EmailNotifier, NotificationDispatcher, NotificationLedger


def get_gateway(settings: Settings = Depends(get_settings)) -> PaymentGateway:
    return PhonePeGateway(settings)


def get_notifier(settings: Settings = Depends(get_settings)) -> NotificationDispatcher:
    return EmailNotifier(settings)


@lru_cache(maxsize=1)
def get_notification_ledger() -> NotificationLedger:
    return NotificationLedger(max_size=get_settings().notification_dedupe_size)


def get_initiator(gateway: PaymentGateway = Depends(get_gateway)) -> PaymentInitiator:
    return PaymentInitiator(gateway)


def get_verifier(
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationDispatcher = Depends(get_notifier),
    ledger: NotificationLedger = Depends(get_notification_ledger),
) -> PaymentVerifier:
    return PaymentVerifier(settings, gateway, notifier, ledger)
