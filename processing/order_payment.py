import hashlib
import hmac
import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from enums.order_status import OrderStatus
from enums.payment_event import PaymentEventKind
from exceptions.payment import InvalidSignatureError
from models.payment import PaymentEventDTO
from services.order import OrderService

logger = logging.getLogger(__name__)

ACK = {"received": True}


class PaymentWebhookProcessor:
    """
    Verifies and applies payment provider webhook events.

    Delivery is at-least-once and the provider retries on any non-2xx, so
    once the signature checks out every event is acknowledged, whatever
    happens while applying it.
    """

    @staticmethod
    def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> bool:
        """
        HMAC-SHA256 of the raw body, given as ``sha256=<hex>`` or bare hex.
        """
        if not signature or not secret:
            return False

        signature = signature.strip()
        if signature.startswith('sha256='):
            signature = signature[len('sha256='):]

        expected_signature = hmac.new(
            secret.encode('utf-8'),
            payload,
            hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected_signature.encode('ascii'), signature.lower().encode('utf-8'))

    @staticmethod
    def parse_event(payload: bytes) -> PaymentEventDTO:
        """
        Raises:
            ValueError: Body is not a JSON object
        """
        body = json.loads(payload.decode('utf-8'))
        if not isinstance(body, dict):
            raise ValueError("event body is not an object")

        data = body.get("data")
        data = data if isinstance(data, dict) else {}
        reference = data.get("reference") or data.get("id")
        return PaymentEventDTO(
            id=str(body["id"]) if body.get("id") is not None else None,
            type=body.get("type"),
            reference=str(reference) if reference is not None else None,
        )

    @staticmethod
    async def process_event(payload: bytes, signature: str | None, secret: str, session: AsyncSession) -> dict:
        if not PaymentWebhookProcessor.verify_webhook_signature(payload, signature, secret):
            logger.warning("[Webhook] Rejected payment event: invalid signature")
            raise InvalidSignatureError()

        try:
            event = PaymentWebhookProcessor.parse_event(payload)
        except (ValueError, UnicodeDecodeError) as e:
            logger.error(f"[Webhook] Signed payload is not a valid event: {e}")
            return ACK

        kind = PaymentEventKind.from_event_type(event.type)
        if kind == PaymentEventKind.UNKNOWN:
            logger.info(f"[Webhook] Ignoring event {event.id} of type {event.type}")
            return ACK

        if not event.reference:
            logger.warning(f"[Webhook] Event {event.id} ({event.type}) carries no payment reference")
            return ACK

        new_status = OrderStatus.PROCESSING if kind == PaymentEventKind.SUCCEEDED else OrderStatus.PAYMENT_FAILED
        try:
            changed = await OrderService.reconcile_payment(event.reference, new_status, session)
            logger.info(f"[Webhook] Event {event.id} ({event.type}) for payment {event.reference}: "
                        f"{'applied' if changed else 'no change'}")
        except Exception:
            # Still acknowledged; the log line is the only trace
            logger.exception(f"[Webhook] Failed to apply event {event.id} ({event.type}) "
                             f"for payment {event.reference}")

        return ACK
