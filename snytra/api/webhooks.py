"""
Webhook handlers for Stripe billing events
"""

import json

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session
from typing import Optional
import stripe
import structlog

from snytra.core.database import get_session
from snytra.core.exceptions import ValidationError
from snytra.services.stripe_billing import StripeService, get_stripe_service, process_event

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    stripe_service: StripeService = Depends(get_stripe_service),
    session: Session = Depends(get_session)
):
    """
    Handle Stripe subscription webhooks

    Flow:
    1. Verify the payload signature
    2. Dispatch on event type
    3. Update subscription rows and the user's denormalized plan state
    """
    payload = await request.body()
    if not stripe_signature:
        raise ValidationError("Missing signature or webhook secret")

    try:
        stripe_service.construct_event(payload, stripe_signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise ValidationError(f"Webhook signature verification failed: {e}")

    event = json.loads(payload)
    handled = await run_in_threadpool(process_event, session, event)

    logger.info("Stripe webhook processed", event_type=event.get("type"), handled=handled)
    return {"received": True}
