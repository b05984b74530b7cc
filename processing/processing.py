import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

import config
from processing.order_payment import PaymentWebhookProcessor
from web.dependencies import get_session

logger = logging.getLogger(__name__)

processing_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@processing_router.post("/payments")
async def payment_event(request: Request, session: AsyncSession = Depends(get_session)):
    """
    Webhook endpoint for payment provider notifications.

    The signature covers the raw body, so the body is read as bytes and
    only parsed after verification.
    """
    request_body = await request.body()
    logger.debug(f"[Webhook] Payment event received ({len(request_body)} bytes)")

    return await PaymentWebhookProcessor.process_event(
        request_body,
        request.headers.get("X-Signature"),
        config.PAYMENT_WEBHOOK_SECRET,
        session,
    )
