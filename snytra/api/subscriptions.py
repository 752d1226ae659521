"""
Subscription API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
import stripe
import structlog

from snytra.core.database import get_session
from snytra.core.dependencies import get_current_user
from snytra.core.exceptions import AppException, NotFoundError, ValidationError
from snytra.models.subscription_plan import SubscriptionPlan
from snytra.models.user import User
from snytra.schemas.subscription import CheckoutRequest
from snytra.services.entitlements import effective_plan, get_features_by_plan, latest_subscription, resolve_plan
from snytra.services.feature_catalog import convert_feature_ids_to_names
from snytra.services.stripe_billing import StripeService, get_stripe_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/checkout")
def create_checkout(
    checkout_data: CheckoutRequest,
    user: User = Depends(get_current_user),
    stripe_service: StripeService = Depends(get_stripe_service),
    session: Session = Depends(get_session)
):
    """Start a Stripe checkout for a plan"""
    plan = session.get(SubscriptionPlan, checkout_data.plan_id)
    if plan is None:
        raise NotFoundError("Subscription plan", checkout_data.plan_id)
    if not plan.is_active:
        raise ValidationError("Subscription plan is not available", plan_id=plan.id)

    try:
        customer_id = stripe_service.get_or_create_customer(user)
        checkout = stripe_service.create_checkout_session(
            customer_id,
            user,
            plan,
            success_url=checkout_data.success_url,
            cancel_url=checkout_data.cancel_url,
        )
    except stripe.StripeError as e:
        raise AppException(502, "Payment provider error", log_level="error", error=str(e))

    if user.stripe_customer_id != customer_id:
        user.stripe_customer_id = customer_id
        session.add(user)
        session.commit()

    return {"success": True, "sessionId": checkout["session_id"], "url": checkout["url"]}


@router.get("/current")
def current_subscription(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """The signed-in user's plan, status and the features it carries"""
    ref, plan_features = effective_plan(session, user)
    plan = resolve_plan(session, ref)
    subscription = latest_subscription(session, user.id)

    return {
        "success": True,
        "subscription": {
            "plan": ref.raw or None,
            "planId": plan.id if plan else None,
            "planName": plan.name if plan else None,
            "status": user.subscription_status,
            "isActive": user.has_active_subscription(),
            "currentPeriodEnd": (
                user.subscription_current_period_end.isoformat()
                if user.subscription_current_period_end else None
            ),
            "cancelAtPeriodEnd": subscription.cancel_at_period_end if subscription else False,
            "features": (
                convert_feature_ids_to_names(plan_features)
                if plan_features else get_features_by_plan(ref)
            ),
        },
    }
