"""
Subscription plans API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select, func, or_
from datetime import datetime, timezone
import structlog

from snytra.core.database import get_session
from snytra.core.exceptions import NotFoundError, ValidationError
from snytra.core.permissions import Permission, require_permission
from snytra.models.subscription import Subscription
from snytra.models.subscription_plan import PlanFeature, SubscriptionPlan
from snytra.models.user import User
from snytra.schemas.subscription_plan import PlanCreate, PlanUpdate
from snytra.services.feature_catalog import (
    convert_feature_ids_to_names,
    convert_feature_names_to_ids,
    ensure_features_is_list,
    get_features_by_ids,
    normalized_feature_keys,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

can_edit_plans = Depends(require_permission(Permission.PLANS_EDIT))

DEFAULT_TRIAL_DAYS = 14


def active_user_count(session: Session, plan: SubscriptionPlan) -> int:
    """Active users whose denormalized plan names this plan by id or by name"""
    return session.exec(
        select(func.count(User.id)).where(
            User.subscription_status == "active",
            or_(User.subscription_plan == str(plan.id), User.subscription_plan == plan.name),
        )
    ).one()


def serialize_plan(session: Session, plan: SubscriptionPlan) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "price": float(plan.price),
        "billing_interval": plan.billing_interval,
        "billing_cycle": plan.billing_interval,
        "features": convert_feature_ids_to_names(ensure_features_is_list(plan.features)),
        "is_active": plan.is_active,
        "has_trial": plan.has_trial,
        "trial_days": plan.trial_days,
        "stripe_product_id": plan.stripe_product_id,
        "stripe_price_id": plan.stripe_price_id,
        "created_at": plan.created_at.isoformat() if plan.created_at else None,
        "updated_at": plan.updated_at.isoformat() if plan.updated_at else None,
        "user_count": active_user_count(session, plan),
    }


def _get_plan_or_404(session: Session, plan_id: int) -> SubscriptionPlan:
    plan = session.get(SubscriptionPlan, plan_id)
    if plan is None:
        raise NotFoundError("Subscription plan", plan_id)
    return plan


def _sync_plan_features(session: Session, plan: SubscriptionPlan) -> None:
    """Rewrite plan_features rows from the plan's features column"""
    wanted = normalized_feature_keys(plan.features)
    for row in list(plan.plan_features):
        if row.feature_key not in wanted:
            plan.plan_features.remove(row)
    existing = plan.feature_keys()
    for key in sorted(wanted - existing):
        plan.plan_features.append(PlanFeature(plan_id=plan.id, feature_key=key))


@router.get("")
def list_plans(session: Session = Depends(get_session)):
    """All plans, cheapest first, with feature display names"""
    plans = session.exec(select(SubscriptionPlan).order_by(SubscriptionPlan.price)).all()
    return {"plans": [serialize_plan(session, plan) for plan in plans], "success": True}


@router.get("/{plan_id}")
def get_plan(plan_id: int, session: Session = Depends(get_session)):
    plan = _get_plan_or_404(session, plan_id)
    return {"plan": serialize_plan(session, plan), "success": True}


@router.post("", dependencies=[can_edit_plans])
def create_plan(
    plan_data: PlanCreate,
    session: Session = Depends(get_session)
):
    """Create a plan and its plan_features rows in one transaction"""
    features = convert_feature_names_to_ids(ensure_features_is_list(plan_data.features))

    plan = SubscriptionPlan(
        name=plan_data.name,
        description=plan_data.description or "",
        price=plan_data.price,
        billing_interval=plan_data.billing_cycle,
        features=features,
        is_active=plan_data.is_active,
        has_trial=plan_data.has_trial,
        trial_days=plan_data.trial_days if plan_data.has_trial else 0,
    )
    try:
        session.add(plan)
        session.flush()
        for key in sorted(normalized_feature_keys(features)):
            session.add(PlanFeature(plan_id=plan.id, feature_key=key))
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(plan)

    logger.info("Subscription plan created", plan_id=plan.id, name=plan.name)
    data = serialize_plan(session, plan)
    data["feature_details"] = [
        {"id": f.id, "name": f.name, "description": f.description, "category": f.category}
        for f in get_features_by_ids(sorted(plan.feature_keys()))
    ]
    return {"plan": data, "success": True}


@router.patch("/{plan_id}", dependencies=[can_edit_plans])
def update_plan(
    plan_id: int,
    plan_data: PlanUpdate,
    session: Session = Depends(get_session)
):
    """Partial update; trial days follow the trial flag"""
    plan = _get_plan_or_404(session, plan_id)
    fields = plan_data.model_fields_set

    if "name" in fields and plan_data.name is not None:
        plan.name = plan_data.name
    if "description" in fields:
        plan.description = plan_data.description
    if "price" in fields and plan_data.price is not None:
        plan.price = plan_data.price
    if "billing_cycle" in fields and plan_data.billing_cycle is not None:
        plan.billing_interval = plan_data.billing_cycle
    if "is_active" in fields and plan_data.is_active is not None:
        plan.is_active = plan_data.is_active

    if "trial_days" in fields and plan_data.trial_days is not None:
        has_trial = plan_data.has_trial if plan_data.has_trial is not None else plan.has_trial
        plan.trial_days = plan_data.trial_days if has_trial else 0
    elif plan_data.has_trial is False:
        plan.trial_days = 0
    elif plan_data.has_trial is True and not plan.has_trial:
        plan.trial_days = DEFAULT_TRIAL_DAYS
    if "has_trial" in fields and plan_data.has_trial is not None:
        plan.has_trial = plan_data.has_trial

    try:
        if "features" in fields:
            plan.features = convert_feature_names_to_ids(ensure_features_is_list(plan_data.features))
            _sync_plan_features(session, plan)

        plan.updated_at = datetime.now(timezone.utc)
        session.add(plan)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(plan)

    logger.info("Subscription plan updated", plan_id=plan_id, fields=sorted(fields))
    return {"plan": serialize_plan(session, plan), "success": True}


@router.delete("/{plan_id}", dependencies=[can_edit_plans])
def delete_plan(plan_id: int, session: Session = Depends(get_session)):
    """Delete a plan no active user is on"""
    plan = _get_plan_or_404(session, plan_id)

    if active_user_count(session, plan) > 0:
        raise ValidationError("Cannot delete plan because it is currently used by active users", plan_id=plan_id)

    for subscription in session.exec(select(Subscription).where(Subscription.plan_id == plan_id)).all():
        subscription.plan_id = None
        session.add(subscription)

    session.delete(plan)
    session.commit()

    logger.info("Subscription plan deleted", plan_id=plan_id)
    return {"success": True, "message": "Subscription plan deleted successfully"}
