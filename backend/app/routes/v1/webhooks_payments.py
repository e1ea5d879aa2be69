# backend/app/routes/v1/webhooks_payments.py
"""
Payment provider webhook (v1).

Mounted under /api/v1/webhooks/payments. A completed purchase becomes a
credit grant; redelivered purchases are acknowledged without issuing again.
"""

from __future__ import annotations

import asyncio
import logging
import secrets as _secrets

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from ...api.dependencies import get_purchase_issuance_service
from ...core.config import settings
from ...core.exceptions import DomainException
from ...events.purchase_events import PurchaseCompleted
from ...schemas.webhooks import PurchaseCompletedPayload, PurchaseWebhookResponse
from ...services.purchase_issuance_service import PurchaseIssuanceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


def _verify_payment_secret(request: Request) -> None:
    """Verify the payment provider's shared secret header."""
    webhook_secret = settings.payment_webhook_secret
    if webhook_secret is None:
        logger.error("Payment webhook secret not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook authentication not configured",
        )

    provided = (request.headers.get("x-webhook-secret") or "").strip()
    if not provided:
        logger.warning("Missing payment webhook secret header")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    secret_value = webhook_secret.get_secret_value()
    if not secret_value:
        logger.error("PAYMENT_WEBHOOK_SECRET is configured but empty")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook verification misconfigured",
        )

    if not _secrets.compare_digest(provided, secret_value):
        logger.warning("Invalid payment webhook secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post(
    "",
    response_model=PurchaseWebhookResponse,
    dependencies=[Depends(_verify_payment_secret)],
)
async def handle_purchase_completed(
    payload: PurchaseCompletedPayload = Body(...),
    issuance_service: PurchaseIssuanceService = Depends(get_purchase_issuance_service),
) -> PurchaseWebhookResponse:
    """Turn a completed purchase into session credits (idempotent on reference)."""
    event = PurchaseCompleted(**payload.model_dump(exclude_none=True))
    try:
        result = await asyncio.to_thread(issuance_service.on_purchase_completed, event)
    except DomainException as e:
        raise e.to_http_exception()

    return PurchaseWebhookResponse(
        received=True,
        duplicate=result.duplicate,
        grant_id=result.grant_id,
        credits_issued=result.credits_issued,
    )
