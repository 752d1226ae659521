"""
Subscription entitlement resolution

A user's plan reference arrives as a numeric id, a plan name, a legacy alias
("pro", "starter", "trial") or a digit string. It is parsed once into a
PlanRef and then run through an ordered chain of strategies, each of which
either grants access or has no opinion. The first definite answer wins and
the chain ends in an explicit deny.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Union

from sqlmodel import Session, func, select
import structlog

from snytra.core.config import get_settings
from snytra.models.subscription import Subscription
from snytra.models.subscription_plan import PlanFeature, SubscriptionPlan
from snytra.models.user import User
from snytra.services.feature_catalog import SYSTEM_FEATURES, normalized_feature_keys

logger = structlog.get_logger(__name__)


# ============================================================================
# Plan references
# ============================================================================

@dataclass(frozen=True)
class ById:
    plan_id: int

    @property
    def raw(self) -> str:
        return str(self.plan_id)


@dataclass(frozen=True)
class ByName:
    name: str

    @property
    def raw(self) -> str:
        return self.name


@dataclass(frozen=True)
class ByAlias:
    alias: str

    @property
    def raw(self) -> str:
        return self.alias


@dataclass(frozen=True)
class UnknownPlan:
    @property
    def raw(self) -> str:
        return ""


PlanRef = Union[ById, ByName, ByAlias, UnknownPlan]

DIGITS = re.compile(r"[0-9]+")

LEGACY_ALIASES = {"starter", "pro", "business", "advanced", "ultimate", "trial"}


def parse_plan_ref(raw: Any) -> PlanRef:
    """Classify a stored plan reference; never raises"""
    if isinstance(raw, (ById, ByName, ByAlias, UnknownPlan)):
        return raw
    if isinstance(raw, bool) or raw is None:
        return UnknownPlan()
    if isinstance(raw, int):
        return ById(raw)

    text = str(raw).strip()
    if not text:
        return UnknownPlan()
    if DIGITS.fullmatch(text):
        return ById(int(text))
    if text.lower() in LEGACY_ALIASES:
        return ByAlias(text)
    return ByName(text)


# ============================================================================
# Predefined tiers
# ============================================================================

class Tier(str, Enum):
    FREE = "Free"
    BASIC = "Basic"
    STANDARD = "Standard"
    PREMIUM = "Premium"
    ENTERPRISE = "Enterprise"


PLAN_FEATURES = {
    Tier.FREE: [
        "Limited menu items (up to 25)",
        "Basic reservations",
        "Standard support",
    ],
    Tier.BASIC: [
        "Unlimited menu items",
        "Advanced reservations",
        "Email support",
        "Customer database",
        "Basic analytics",
    ],
    Tier.STANDARD: [
        "All Basic features",
        "Inventory management",
        "Staff scheduling",
        "Advanced analytics",
        "Table management",
        "Priority email support",
    ],
    Tier.PREMIUM: [
        "All Standard features",
        "Multiple restaurant locations",
        "Custom reporting",
        "API access",
        "White-label mobile app",
        "Dedicated account manager",
    ],
    Tier.ENTERPRISE: [
        "All Premium features",
        "Custom integrations",
        "Advanced security",
        "Dedicated hosting",
        "Custom development",
        "24/7 phone support",
    ],
}

# Insertion order matters: partial matches take the first key contained in the reference
PLAN_MAPPING = {
    "free": Tier.FREE,
    "basic": Tier.BASIC,
    "standard": Tier.STANDARD,
    "premium": Tier.PREMIUM,
    "enterprise": Tier.ENTERPRISE,
    "starter": Tier.BASIC,
    "pro": Tier.STANDARD,
    "business": Tier.PREMIUM,
    "advanced": Tier.PREMIUM,
    "ultimate": Tier.ENTERPRISE,
    "trial": Tier.BASIC,
    "1": Tier.BASIC,
    "2": Tier.STANDARD,
    "3": Tier.PREMIUM,
    "4": Tier.ENTERPRISE,
}

PLAN_PRICES = {
    "free": 0,
    "basic": 4999,
    "standard": 9999,
    "premium": 19999,
    "enterprise": 49999,
}
YEARLY_DISCOUNT = 0.83


def normalize_tier(plan: Any) -> Optional[Tier]:
    """Map a plan reference onto the tier ladder, or None if nothing matches"""
    ref = parse_plan_ref(plan)
    normalized = ref.raw.lower()
    if not normalized:
        return None

    if normalized in PLAN_MAPPING:
        return PLAN_MAPPING[normalized]

    for key, tier in PLAN_MAPPING.items():
        if key in normalized:
            return tier
    return None


def fallback_tier() -> Optional[Tier]:
    """Tier applied to unrecognized plans, from UNKNOWN_PLAN_FALLBACK_TIER"""
    configured = get_settings().UNKNOWN_PLAN_FALLBACK_TIER
    if not configured:
        return None
    try:
        return Tier(configured.strip().capitalize())
    except ValueError:
        logger.warning("Ignoring unknown fallback tier", configured=configured)
        return None


def get_features_by_plan(plan: Any) -> List[str]:
    """Hardcoded feature descriptions for a plan's tier"""
    tier = normalize_tier(plan)
    if tier is None:
        tier = fallback_tier()
        if tier is None:
            return []
        logger.debug("Plan matched no tier, using fallback", plan=parse_plan_ref(plan).raw, tier=tier.value)
    return list(PLAN_FEATURES[tier])


def get_plan_price(plan_name: str, is_yearly: bool = False) -> int:
    """Plan price in cents; yearly billing is 12 months at 17% off"""
    normalized = (plan_name or "").lower()
    price = 0
    for key, base_price in PLAN_PRICES.items():
        if key in normalized:
            price = base_price
            break

    if is_yearly:
        price = round(price * 12 * YEARLY_DISCOUNT)
    return price


# ============================================================================
# Resolution strategies
# ============================================================================

# Coarse feature substrings -> tier names and numeric plan ids allowed to use them
LEGACY_FEATURE_MAP = {
    "reservation": ["Basic", "Standard", "Premium", "Enterprise", "1", "2", "3", "4", "5", "6", "7", "8", "9"],
    "menu": ["Basic", "Standard", "Premium", "Enterprise", "1", "2", "3", "4", "5", "6", "7", "8", "9"],
    "orders": ["Basic", "Standard", "Premium", "Enterprise", "1", "2", "3", "4", "5", "6", "7", "8", "9"],

    "inventory": ["Standard", "Premium", "Enterprise", "2", "3", "5", "6", "8", "9"],
    "staff": ["Standard", "Premium", "Enterprise", "2", "3", "5", "6", "8", "9"],
    "analytics": ["Standard", "Premium", "Enterprise", "2", "3", "5", "6", "8", "9"],
    "tables": ["Standard", "Premium", "Enterprise", "2", "3", "5", "6", "8", "9"],

    "multiple_locations": ["Premium", "Enterprise", "3", "5", "6", "8", "9"],
    "api_access": ["Premium", "Enterprise", "3", "6", "9"],
    "custom_reporting": ["Premium", "Enterprise", "3", "6", "9"],

    "custom_integrations": ["Enterprise", "6", "9"],
    "white_label": ["Enterprise", "6", "9"],
}


class DatabaseFeatureStrategy:
    """Match against the plan's stored feature keys, exact then partial"""

    name = "database"

    def check(self, plan: PlanRef, feature: str, plan_features: Optional[Sequence[str]]) -> Optional[bool]:
        if not plan_features:
            return None
        if feature in plan_features:
            return True
        # Partial match in either direction
        if any(stored in feature or feature in stored for stored in plan_features if stored):
            return True
        return None


class PredefinedTierStrategy:
    """Match against the hardcoded description list of the plan's tier"""

    name = "predefined_tier"

    def check(self, plan: PlanRef, feature: str, plan_features: Optional[Sequence[str]]) -> Optional[bool]:
        tier_features = get_features_by_plan(plan)
        if feature in tier_features:
            return True

        lowered = feature.lower()
        for description in tier_features:
            candidate = description.lower()
            if lowered in candidate or candidate in lowered:
                return True
        return None


class LegacyFeatureMapStrategy:
    """Coarse substring table keyed by feature, listing allowed tiers and ids"""

    name = "legacy_feature_map"

    def check(self, plan: PlanRef, feature: str, plan_features: Optional[Sequence[str]]) -> Optional[bool]:
        lowered = feature.lower()
        feature_key = next((key for key in LEGACY_FEATURE_MAP if key in lowered), None)
        if feature_key is None:
            return None

        raw = plan.raw
        for allowed in LEGACY_FEATURE_MAP[feature_key]:
            if allowed.lower() == raw.lower() or allowed == raw:
                return True
        return None


DEFAULT_STRATEGIES = (
    DatabaseFeatureStrategy(),
    PredefinedTierStrategy(),
    LegacyFeatureMapStrategy(),
)


class EntitlementResolver:
    """Ordered strategy chain; the first non-None answer wins"""

    def __init__(self, strategies: Iterable = DEFAULT_STRATEGIES, default: bool = False):
        self.strategies = tuple(strategies)
        self.default = default

    def resolve(
        self,
        plan: Any,
        feature: str,
        plan_features: Optional[Sequence[str]] = None,
    ) -> bool:
        ref = parse_plan_ref(plan)
        if not feature:
            return self.default

        for strategy in self.strategies:
            decision = strategy.check(ref, feature, plan_features)
            if decision is not None:
                logger.debug("Entitlement decided", plan=ref.raw, feature=feature,
                             strategy=strategy.name, granted=decision)
                return decision
        return self.default


resolver = EntitlementResolver()


def plan_has_feature(plan: Any, feature: str, plan_features: Optional[Sequence[str]] = None) -> bool:
    """Whether the plan grants the feature, using the default chain"""
    return resolver.resolve(plan, feature, plan_features)


# ============================================================================
# Database-backed access checks
# ============================================================================

@dataclass
class AccessDecision:
    has_access: bool
    reason: str


PRIVILEGED_ROLES = {"admin", "developer"}


def resolve_plan(session: Session, plan: Any) -> Optional[SubscriptionPlan]:
    """Canonical plan row for a reference: by id, or by case-insensitive name"""
    ref = parse_plan_ref(plan)
    if isinstance(ref, ById):
        return session.get(SubscriptionPlan, ref.plan_id)
    if isinstance(ref, (ByName, ByAlias)):
        return session.exec(
            select(SubscriptionPlan).where(func.lower(SubscriptionPlan.name) == ref.raw.lower())
        ).first()
    return None


def get_plan_feature_keys(session: Session, plan_id: int) -> List[str]:
    """Feature keys granted to a plan through plan_features, or the plan's features column"""
    keys = session.exec(select(PlanFeature.feature_key).where(PlanFeature.plan_id == plan_id)).all()
    if keys:
        return list(keys)

    plan = session.get(SubscriptionPlan, plan_id)
    if plan is None:
        return []
    return sorted(normalized_feature_keys(plan.features))


def latest_subscription(session: Session, user_id: int) -> Optional[Subscription]:
    return session.exec(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    ).first()


def effective_plan(session: Session, user: User) -> tuple[PlanRef, Optional[List[str]]]:
    """
    Reconcile the subscriptions table with the user's denormalized plan.

    A subscription row with a plan id wins; otherwise the user's plan string
    is used, and its stored features are loaded when it names a real plan.
    """
    subscription = latest_subscription(session, user.id)
    if subscription is not None and subscription.plan_id:
        return ById(subscription.plan_id), get_plan_feature_keys(session, subscription.plan_id)

    ref = parse_plan_ref(user.subscription_plan)
    plan = resolve_plan(session, ref)
    if plan is not None:
        return ref, get_plan_feature_keys(session, plan.id)
    return ref, None


def verify_feature_access(session: Session, user: User, feature_key: str) -> AccessDecision:
    """Decide whether a user may use a feature"""
    role = getattr(user.role, "value", user.role)
    if role in PRIVILEGED_ROLES:
        return AccessDecision(True, "admin_role")

    if not user.has_active_subscription():
        return AccessDecision(False, "no_active_subscription")

    ref, plan_features = effective_plan(session, user)
    has_access = plan_has_feature(ref, feature_key, plan_features)
    logger.info("Feature access checked", user_id=user.id, feature=feature_key, granted=has_access)
    return AccessDecision(has_access, "feature_included" if has_access else "feature_not_included")


def feature_access_map(session: Session, user: User) -> dict[str, bool]:
    """Access decision for every catalog feature"""
    role = getattr(user.role, "value", user.role)
    if role in PRIVILEGED_ROLES:
        return {feature.id: True for feature in SYSTEM_FEATURES}
    if not user.has_active_subscription():
        return {feature.id: False for feature in SYSTEM_FEATURES}

    ref, plan_features = effective_plan(session, user)
    return {feature.id: plan_has_feature(ref, feature.id, plan_features) for feature in SYSTEM_FEATURES}
