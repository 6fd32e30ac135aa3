"""
Webhook handler for Stripe subscription events
Verifies the signature, then overwrites the team's subscription fields
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
from typing import Optional
import stripe
import structlog

from saas_starter.core.database import get_session
from saas_starter.core.timestamps import from_unix
from saas_starter.services.billing import SUBSCRIPTION_EVENTS, handle_subscription_change
from saas_starter.services.stripe_service import StripeService, get_stripe_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """
    Handle Stripe webhooks

    Flow:
    1. Verify Stripe-Signature (InvalidSignature -> 400, nothing written)
    2. Ignore event types we do not track
    3. Overwrite the matching team's subscription fields
    """
    payload = await request.body()
    event = stripe_service.verify_webhook(payload, request.headers.get("stripe-signature"))

    event_type = event.get("type")
    logger.info(f"Received Stripe webhook: {event_type}")

    if not isinstance(event_type, str) or event_type not in SUBSCRIPTION_EVENTS:
        logger.info(f"Unhandled event type {event_type}")
        return {"received": True}

    data = event.get("data")
    subscription = data.get("object") if isinstance(data, dict) else None
    created = event.get("created")
    event_created = from_unix(created) if isinstance(created, (int, float)) else None

    def resolve_product_name(product_id: str) -> Optional[str]:
        try:
            return stripe_service.get_product_name(product_id)
        except stripe.StripeError as e:
            logger.warning(f"Could not resolve product {product_id}: {e}")
            return None

    handle_subscription_change(
        session,
        subscription,
        event_created=event_created,
        resolve_product_name=resolve_product_name,
    )
    return {"received": True}
