"""
Stripe Billing Service
Handles checkout sessions for subscription plans and keeps local
subscription state in sync with Stripe webhook events
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Dict, Any

import stripe
import structlog
from sqlmodel import Session, select

from snytra.core.config import get_settings
from snytra.core.exceptions import AppException
from snytra.models.subscription import Subscription, SubscriptionStatus
from snytra.models.subscription_plan import BillingInterval, SubscriptionPlan
from snytra.models.user import User

logger = structlog.get_logger(__name__)


class StripeService:
    """Thin wrapper over the Stripe SDK"""

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        """
        Initialize Stripe service

        Args:
            api_key: Stripe secret key (defaults to STRIPE_SECRET_KEY)
            webhook_secret: Signing secret for webhook payloads
        """
        settings = get_settings()
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

        if not self.api_key:
            raise ValueError("STRIPE_SECRET_KEY is required")

        stripe.api_key = self.api_key

    def get_or_create_customer(self, user: User) -> str:
        """Return the user's Stripe customer id, creating the customer if needed"""
        if user.stripe_customer_id:
            return user.stripe_customer_id

        customer = stripe.Customer.create(
            email=user.email,
            name=user.name,
            metadata={"user_id": str(user.id)},
        )
        logger.info("Stripe customer created", user_id=user.id, customer_id=customer["id"])
        return customer["id"]

    def create_checkout_session(
        self,
        customer_id: str,
        user: User,
        plan: SubscriptionPlan,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a subscription checkout session for a plan

        Args:
            customer_id: Stripe customer id
            user: Subscribing user
            plan: Plan being purchased
            success_url: Redirect after payment (defaults to STRIPE_SUCCESS_URL)
            cancel_url: Redirect on abandon (defaults to STRIPE_CANCEL_URL)

        Returns:
            Dict with session_id and url
        """
        settings = get_settings()
        checkout = stripe.checkout.Session.create(
            mode="subscription",
            customer=customer_id,
            line_items=[self._line_item(plan)],
            success_url=success_url or settings.STRIPE_SUCCESS_URL,
            cancel_url=cancel_url or settings.STRIPE_CANCEL_URL,
            metadata={"user_id": str(user.id), "plan_id": str(plan.id)},
            subscription_data=self._subscription_data(plan),
        )

        logger.info("Checkout session created", user_id=user.id, plan_id=plan.id, session_id=checkout["id"])
        return {"session_id": checkout["id"], "url": checkout["url"]}

    def construct_event(self, payload: bytes, signature: str):
        """Verify a webhook payload; raises ValueError or stripe.SignatureVerificationError"""
        if not self.webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET is not configured")
        return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)

    def _line_item(self, plan: SubscriptionPlan) -> Dict[str, Any]:
        if plan.stripe_price_id:
            return {"price": plan.stripe_price_id, "quantity": 1}

        interval = "year" if BillingInterval(plan.billing_interval) == BillingInterval.YEARLY else "month"
        return {
            "price_data": {
                "currency": "usd",
                "unit_amount": int(Decimal(plan.price) * 100),
                "recurring": {"interval": interval},
                "product_data": {"name": plan.name},
            },
            "quantity": 1,
        }

    def _subscription_data(self, plan: SubscriptionPlan) -> Dict[str, Any]:
        data: Dict[str, Any] = {"metadata": {"plan_id": str(plan.id)}}
        if plan.has_trial and plan.trial_days > 0:
            data["trial_period_days"] = plan.trial_days
        return data


def get_stripe_service() -> StripeService:
    """Dependency returning a configured StripeService"""
    try:
        return StripeService()
    except ValueError as e:
        raise AppException(500, "Payment service not configured", log_level="error", error=str(e))


# ============================================================================
# Webhook event handling
# ============================================================================

def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _find_by_stripe_id(session: Session, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
    if not stripe_subscription_id:
        return None
    return session.exec(
        select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
    ).first()


def _sync_user(session: Session, subscription: Subscription) -> None:
    user = session.get(User, subscription.user_id)
    if user is None:
        return
    user.subscription_status = SubscriptionStatus(subscription.status).value
    if subscription.plan_id is not None:
        user.subscription_plan = str(subscription.plan_id)
    user.subscription_current_period_end = subscription.current_period_end
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)


def handle_checkout_completed(session: Session, checkout: Dict[str, Any]) -> Optional[Subscription]:
    """Activate the subscription named in the checkout session metadata"""
    metadata = checkout.get("metadata") or {}
    user_id = metadata.get("user_id")
    plan_id = metadata.get("plan_id")
    if not user_id or not plan_id:
        logger.error("Checkout session without user or plan metadata", session_id=checkout.get("id"))
        return None

    user = session.get(User, int(user_id))
    if user is None:
        logger.error("Checkout session for unknown user", user_id=user_id)
        return None

    subscription = _find_by_stripe_id(session, checkout.get("subscription")) or Subscription(user_id=user.id)
    subscription.plan_id = int(plan_id)
    subscription.status = SubscriptionStatus.ACTIVE
    subscription.stripe_subscription_id = checkout.get("subscription")
    subscription.current_period_start = datetime.now(timezone.utc)
    subscription.updated_at = datetime.now(timezone.utc)
    session.add(subscription)

    if checkout.get("customer"):
        user.stripe_customer_id = checkout["customer"]
    session.add(user)
    _sync_user(session, subscription)

    logger.info("Subscription activated", user_id=user.id, plan_id=plan_id)
    return subscription


def handle_subscription_updated(session: Session, stripe_subscription: Dict[str, Any]) -> Optional[Subscription]:
    """Mirror status and billing period from Stripe"""
    subscription = _find_by_stripe_id(session, stripe_subscription.get("id"))
    if subscription is None:
        logger.warning("Update for unknown subscription", stripe_subscription_id=stripe_subscription.get("id"))
        return None

    try:
        subscription.status = SubscriptionStatus(stripe_subscription.get("status"))
    except ValueError:
        logger.warning("Unmapped subscription status", status=stripe_subscription.get("status"))
    subscription.current_period_start = _timestamp(stripe_subscription.get("current_period_start"))
    subscription.current_period_end = _timestamp(stripe_subscription.get("current_period_end"))
    subscription.cancel_at_period_end = bool(stripe_subscription.get("cancel_at_period_end"))
    subscription.updated_at = datetime.now(timezone.utc)
    session.add(subscription)
    _sync_user(session, subscription)
    return subscription


def handle_subscription_deleted(session: Session, stripe_subscription: Dict[str, Any]) -> Optional[Subscription]:
    subscription = _find_by_stripe_id(session, stripe_subscription.get("id"))
    if subscription is None:
        return None

    subscription.status = SubscriptionStatus.CANCELED
    subscription.updated_at = datetime.now(timezone.utc)
    session.add(subscription)
    _sync_user(session, subscription)
    logger.info("Subscription canceled", subscription_id=subscription.id)
    return subscription


def handle_payment_failed(session: Session, invoice: Dict[str, Any]) -> Optional[Subscription]:
    subscription = _find_by_stripe_id(session, invoice.get("subscription"))
    if subscription is None:
        return None

    subscription.status = SubscriptionStatus.PAST_DUE
    subscription.updated_at = datetime.now(timezone.utc)
    session.add(subscription)
    _sync_user(session, subscription)
    logger.warning("Subscription payment failed", subscription_id=subscription.id)
    return subscription


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_completed,
    "customer.subscription.created": handle_subscription_updated,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_failed": handle_payment_failed,
}


def process_event(session: Session, event: Dict[str, Any]) -> bool:
    """Apply a verified webhook event; returns False for ignored event types"""
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("Unhandled webhook event", event_type=event_type)
        return False

    try:
        handler(session, event["data"]["object"])
        session.commit()
    except Exception:
        session.rollback()
        raise
    return True
