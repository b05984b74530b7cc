"""
Unit Tests: PaymentWebhookProcessor

Signature verification, event dispatch and the acknowledge-anyway policy.
"""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, patch

import pytest

from enums.order_status import OrderStatus
from exceptions.payment import InvalidSignatureError
from processing.order_payment import PaymentWebhookProcessor, ACK

SECRET = "whsec_test_0123456789abcdef0123456789abcdef"


def sign(payload: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def event(event_type: str, reference: str | None = "pay_1", event_id: str = "evt_1") -> bytes:
    data = {"reference": reference} if reference is not None else {}
    return json.dumps({"id": event_id, "type": event_type, "data": data}).encode("utf-8")


class TestVerifySignature:

    def test_valid_bare_hex(self):
        payload = event("payment.succeeded")
        assert PaymentWebhookProcessor.verify_webhook_signature(payload, sign(payload), SECRET)

    def test_valid_prefixed(self):
        payload = event("payment.succeeded")
        assert PaymentWebhookProcessor.verify_webhook_signature(payload, f"sha256={sign(payload)}", SECRET)

    def test_uppercase_hex_accepted(self):
        payload = event("payment.succeeded")
        assert PaymentWebhookProcessor.verify_webhook_signature(payload, sign(payload).upper(), SECRET)

    @pytest.mark.parametrize("signature", [None, "", "sha256=", "deadbeef", "not-hex-é"])
    def test_invalid_signatures(self, signature):
        assert not PaymentWebhookProcessor.verify_webhook_signature(event("payment.succeeded"), signature, SECRET)

    def test_wrong_secret(self):
        payload = event("payment.succeeded")
        assert not PaymentWebhookProcessor.verify_webhook_signature(payload, sign(payload, "other-secret"), SECRET)

    def test_missing_secret_never_verifies(self):
        payload = event("payment.succeeded")
        assert not PaymentWebhookProcessor.verify_webhook_signature(payload, sign(payload, ""), "")


class TestParseEvent:

    def test_reference_falls_back_to_data_id(self):
        payload = json.dumps({"id": "evt_2", "type": "payment.failed", "data": {"id": "pay_7"}}).encode()
        parsed = PaymentWebhookProcessor.parse_event(payload)
        assert (parsed.id, parsed.type, parsed.reference) == ("evt_2", "payment.failed", "pay_7")

    def test_non_object_body(self):
        with pytest.raises(ValueError):
            PaymentWebhookProcessor.parse_event(b"[1, 2]")


class TestProcessEvent:

    @pytest.mark.asyncio
    async def test_tampered_body_rejected_without_mutation(self, test_session, seed, db_state):
        user_id = await seed.user()
        order_id = await seed.order(user_id, payment_reference="pay_1")
        original = event("payment.failed")
        tampered = event("payment.succeeded")

        with pytest.raises(InvalidSignatureError):
            await PaymentWebhookProcessor.process_event(tampered, sign(original), SECRET, test_session)

        assert await db_state.order_status(test_session, order_id) == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_missing_signature_rejected(self, test_session):
        with pytest.raises(InvalidSignatureError):
            await PaymentWebhookProcessor.process_event(event("payment.succeeded"), None, SECRET, test_session)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_type", ["payment.succeeded", "payment.captured"])
    async def test_success_moves_to_processing(self, test_session, seed, db_state, event_type):
        user_id = await seed.user()
        order_id = await seed.order(user_id, payment_reference="pay_1")
        payload = event(event_type)

        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK
        assert await db_state.order_status(test_session, order_id) == OrderStatus.PROCESSING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_type", ["payment.failed", "payment.declined"])
    async def test_failure_moves_to_payment_failed(self, test_session, seed, db_state, event_type):
        user_id = await seed.user()
        order_id = await seed.order(user_id, payment_reference="pay_1")
        payload = event(event_type)

        assert await PaymentWebhookProcessor.process_event(payload, f"sha256={sign(payload)}", SECRET,
                                                           test_session) == ACK
        assert await db_state.order_status(test_session, order_id) == OrderStatus.PAYMENT_FAILED

    @pytest.mark.asyncio
    async def test_redelivered_success_is_noop(self, test_session, seed, db_state):
        user_id = await seed.user()
        order_id = await seed.order(user_id, payment_reference="pay_1")
        payload = event("payment.succeeded")

        for _ in range(2):
            assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK

        assert await db_state.order_status(test_session, order_id) == OrderStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_failure_after_success_ignored(self, test_session, seed, db_state):
        user_id = await seed.user()
        order_id = await seed.order(user_id, status=OrderStatus.PROCESSING, payment_reference="pay_1")
        payload = event("payment.failed")

        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK
        assert await db_state.order_status(test_session, order_id) == OrderStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_unknown_event_type_acknowledged(self, test_session, seed, db_state):
        user_id = await seed.user()
        order_id = await seed.order(user_id, payment_reference="pay_1")
        payload = event("payment.refunded")

        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK
        assert await db_state.order_status(test_session, order_id) == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_orphan_event_acknowledged(self, test_session):
        payload = event("payment.succeeded", reference="pay_unknown")
        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK

    @pytest.mark.asyncio
    async def test_event_without_reference_acknowledged(self, test_session):
        payload = event("payment.succeeded", reference=None)
        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK

    @pytest.mark.asyncio
    async def test_signed_garbage_acknowledged(self, test_session):
        payload = b"not json"
        assert await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session) == ACK

    @pytest.mark.asyncio
    async def test_downstream_error_logged_and_acknowledged(self, test_session, caplog):
        payload = event("payment.succeeded")
        with patch("processing.order_payment.OrderService.reconcile_payment",
                   new=AsyncMock(side_effect=RuntimeError("database is locked"))):
            result = await PaymentWebhookProcessor.process_event(payload, sign(payload), SECRET, test_session)

        assert result == ACK
        assert any("Failed to apply event evt_1" in record.getMessage() for record in caplog.records)
