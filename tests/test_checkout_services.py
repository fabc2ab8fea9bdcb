from __future__ import annotations

import unittest
from decimal import Decimal

from fastapi import BackgroundTasks

from storefront.payments.base import PaymentMode, PaymentRequest, PaymentStatus
from storefront.payments.errors import ConfigurationError, GatewayError, NotificationError, ValidationError
from storefront.payments.phonepe import PhonePeGateway
from storefront.services.checkout import (
    PAYMENT_FAILED_MESSAGE,
    PaymentInitiator,
    PaymentVerifier,
    to_minor_units,
    validate_email,
    validate_redirect_url,
)
from storefront.services.notifications import NotificationLedger
from tests.fakes import FakeGateway, RecordingNotifier, gateway_settings


class MinorUnitsTests(unittest.TestCase):
    def test_converts_float_without_rounding_drift(self) -> None:
        self.assertEqual(to_minor_units(199.99), 19999)
        self.assertEqual(to_minor_units(0.29), 29)
        self.assertEqual(to_minor_units(1.1), 110)

    def test_accepts_int_and_decimal(self) -> None:
        self.assertEqual(to_minor_units(5), 500)
        self.assertEqual(to_minor_units(12.5), 1250)
        self.assertEqual(to_minor_units(Decimal("0.01")), 1)

    def test_rejects_numeric_strings(self) -> None:
        for amount in ("10", "12.50", " 5 "):
            with self.assertRaises(ValidationError, msg=repr(amount)):
                to_minor_units(amount)

    def test_rejects_non_positive_amounts(self) -> None:
        for amount in (0, -1, -0.01, Decimal("0.00")):
            with self.assertRaises(ValidationError, msg=repr(amount)):
                to_minor_units(amount)

    def test_rejects_fractional_minor_units(self) -> None:
        with self.assertRaises(ValidationError):
            to_minor_units(10.005)

    def test_rejects_missing_and_non_numeric_amounts(self) -> None:
        for amount in (None, True, "ten", [], {}, float("nan"), float("inf"), Decimal("Infinity")):
            with self.assertRaises(ValidationError, msg=repr(amount)):
                to_minor_units(amount)


class RedirectUrlTests(unittest.TestCase):
    def test_accepts_absolute_http_urls(self) -> None:
        self.assertEqual(validate_redirect_url(" https://shop.example/return "), "https://shop.example/return")

    def test_rejects_malformed_urls(self) -> None:
        for url in (None, "", "shop.example/return", "ftp://shop.example", "https://", "https://shop .example"):
            with self.assertRaises(ValidationError, msg=repr(url)):
                validate_redirect_url(url)

    def test_unparseable_urls_are_validation_errors(self) -> None:
        for url in ("http://[shop.example/return", "http://:80", "https://shop.example:99999/return"):
            with self.assertRaises(ValidationError, msg=repr(url)):
                validate_redirect_url(url)


class EmailValidationTests(unittest.TestCase):
    def test_accepts_plain_address(self) -> None:
        self.assertEqual(validate_email(" buyer@example.com "), "buyer@example.com")

    def test_rejects_malformed_addresses(self) -> None:
        for email in ("nope", "a@b..com", "a..b@x.com", "<x>@y.z", "buyer@", "@example.com"):
            with self.assertRaises(ValidationError, msg=repr(email)) as ctx:
                validate_email(email)
            self.assertEqual(str(ctx.exception), "userEmail is not a valid email address")

    def test_missing_address_keeps_missing_message(self) -> None:
        for email in (None, "", "   "):
            with self.assertRaises(ValidationError) as ctx:
                validate_email(email)
            self.assertEqual(str(ctx.exception), "Missing email or order details")


class PaymentInitiatorTests(unittest.IsolatedAsyncioTestCase):
    async def test_builds_request_and_delegates_to_gateway(self) -> None:
        gateway = FakeGateway()
        initiator = PaymentInitiator(gateway, merchant_user_id_factory=lambda: "guest_42")

        initiated = await initiator.initiate(199.99, "T1", "https://shop.example/return")

        self.assertEqual(initiated.x_verify, "abc###1")
        self.assertEqual(
            gateway.initiate_calls,
            [
                PaymentRequest(
                    transaction_id="T1",
                    amount_minor_units=19999,
                    redirect_url="https://shop.example/return",
                    merchant_user_id="guest_42",
                )
            ],
        )

    async def test_invalid_input_never_reaches_gateway(self) -> None:
        gateway = FakeGateway()
        initiator = PaymentInitiator(gateway)
        cases = [
            (0, "T1", "https://shop.example/return"),
            (-5, "T1", "https://shop.example/return"),
            (None, "T1", "https://shop.example/return"),
            (10, "", "https://shop.example/return"),
            (10, "   ", "https://shop.example/return"),
            (10, "T" * 39, "https://shop.example/return"),
            (10, "T1", "not a url"),
            (10, "T1", None),
        ]

        for amount, transaction_id, redirect_url in cases:
            with self.assertRaises(ValidationError):
                await initiator.initiate(amount, transaction_id, redirect_url)

        self.assertEqual(gateway.initiate_calls, [])

    async def test_default_merchant_user_id_is_guest_timestamp(self) -> None:
        gateway = FakeGateway()

        await PaymentInitiator(gateway).initiate(10, "T1", "https://shop.example/return")

        self.assertRegex(gateway.initiate_calls[0].merchant_user_id, r"^guest_\d{13,}$")

    async def test_missing_configuration_fails_before_validation(self) -> None:
        initiator = PaymentInitiator(PhonePeGateway(gateway_settings(phonepe_merchant_id="")))

        with self.assertRaises(ConfigurationError):
            await initiator.initiate(0, "", "")

    async def test_initiates_against_phonepe_gateway_in_client_mode(self) -> None:
        initiator = PaymentInitiator(PhonePeGateway(gateway_settings()))

        initiated = await initiator.initiate(10, "T1", "https://shop.example/return")

        self.assertIs(initiated.mode, PaymentMode.CLIENT_REDIRECT)
        self.assertEqual(initiated.x_verify.count("###"), 1)
        self.assertEqual(len(initiated.x_verify.split("###")[0]), 64)


class PaymentVerifierTests(unittest.IsolatedAsyncioTestCase):
    order = {"items": [{"name": "Mango pickle", "qty": 2}], "total": 399.98}
    summary = '{"items":[{"name":"Mango pickle","qty":2}],"total":399.98}'

    def _verifier(self, gateway, notifier, **overrides) -> PaymentVerifier:
        settings = gateway_settings(**overrides)
        return PaymentVerifier(settings, gateway, notifier, NotificationLedger())

    async def test_success_dispatches_notification_once(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="inline")

        outcome = await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.notification, "sent")
        self.assertEqual(notifier.calls, [("buyer@example.com", self.summary)])

    async def test_order_summary_is_compact_and_keeps_non_ascii(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="inline")

        await verifier.verify("T1", "buyer@example.com", {"items": [{"name": "आम का अचार", "qty": 1}]})

        self.assertEqual(notifier.calls, [("buyer@example.com", '{"items":[{"name":"आम का अचार","qty":1}]}')])

    async def test_non_success_statuses_do_not_notify(self) -> None:
        for status in (PaymentStatus.FAILED, PaymentStatus.PENDING, PaymentStatus.UNKNOWN):
            notifier = RecordingNotifier()
            verifier = self._verifier(FakeGateway(status=status), notifier)

            outcome = await verifier.verify("T1", "buyer@example.com", self.order)

            self.assertFalse(outcome.success)
            self.assertEqual(outcome.message, PAYMENT_FAILED_MESSAGE)
            self.assertIs(outcome.status, status)
            self.assertEqual(notifier.calls, [])

    async def test_missing_email_or_order_is_rejected_before_gateway(self) -> None:
        gateway = FakeGateway()
        verifier = self._verifier(gateway, RecordingNotifier())

        for email, order in ((None, self.order), ("", self.order), ("buyer@example.com", None), ("nope", self.order)):
            with self.assertRaises(ValidationError):
                await verifier.verify("T1", email, order)

        self.assertEqual(gateway.status_calls, [])

    async def test_gateway_error_propagates(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(error=GatewayError("boom", transaction_id="T1")), notifier)

        with self.assertRaises(GatewayError):
            await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertEqual(notifier.calls, [])

    async def test_notification_failure_keeps_success(self) -> None:
        notifier = RecordingNotifier(error=NotificationError("smtp down"))
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="inline")

        outcome = await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.notification, "failed")

    async def test_failed_notification_can_be_retried(self) -> None:
        failing = RecordingNotifier(error=NotificationError("smtp down"))
        ledger = NotificationLedger()
        settings = gateway_settings(notification_mode="inline")
        await PaymentVerifier(settings, FakeGateway(), failing, ledger).verify("T1", "buyer@example.com", self.order)

        notifier = RecordingNotifier()
        outcome = await PaymentVerifier(settings, FakeGateway(), notifier, ledger).verify(
            "T1", "buyer@example.com", self.order
        )

        self.assertEqual(outcome.notification, "sent")
        self.assertEqual(len(notifier.calls), 1)

    async def test_repeated_success_does_not_resend(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="inline")

        first = await verifier.verify("T1", "buyer@example.com", self.order)
        second = await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertEqual(first.notification, "sent")
        self.assertTrue(second.success)
        self.assertEqual(second.notification, "duplicate")
        self.assertEqual(len(notifier.calls), 1)

    async def test_dedupe_can_be_disabled(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(
            FakeGateway(), notifier, notification_mode="inline", notification_dedupe_enabled=False
        )

        await verifier.verify("T1", "buyer@example.com", self.order)
        await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertEqual(len(notifier.calls), 2)

    async def test_background_mode_schedules_dispatch(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="background")
        tasks = BackgroundTasks()

        outcome = await verifier.verify("T1", "buyer@example.com", self.order, background_tasks=tasks)

        self.assertEqual(outcome.notification, "scheduled")
        self.assertEqual(notifier.calls, [])
        await tasks()
        self.assertEqual(notifier.calls, [("buyer@example.com", self.summary)])

    async def test_background_mode_without_task_queue_sends_inline(self) -> None:
        notifier = RecordingNotifier()
        verifier = self._verifier(FakeGateway(), notifier, notification_mode="background")

        outcome = await verifier.verify("T1", "buyer@example.com", self.order)

        self.assertEqual(outcome.notification, "sent")
        self.assertEqual(len(notifier.calls), 1)


class NotificationLedgerTests(unittest.TestCase):
    def test_reserve_is_single_shot_until_released(self) -> None:
        ledger = NotificationLedger()

        self.assertTrue(ledger.reserve("T1"))
        self.assertFalse(ledger.reserve("T1"))
        ledger.release("T1")
        self.assertTrue(ledger.reserve("T1"))

    def test_oldest_entries_are_evicted(self) -> None:
        ledger = NotificationLedger(max_size=2)

        ledger.reserve("T1")
        ledger.reserve("T2")
        ledger.reserve("T3")

        self.assertEqual(len(ledger), 2)
        self.assertNotIn("T1", ledger)
        self.assertIn("T3", ledger)


if __name__ == "__main__":
    unittest.main()
