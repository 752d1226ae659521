"""
Subscription plan and plan feature models
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, DateTime, JSON, Numeric
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, List
from enum import Enum


class BillingInterval(str, Enum):
    """How often a plan is billed"""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionPlan(SQLModel, table=True):
    """A subscription tier offered to restaurants"""

    __tablename__ = "subscription_plans"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, nullable=False, index=True)
    description: Optional[str] = Field(default="", nullable=True)
    price: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(10, 2), nullable=False),
        description="Price per billing interval",
    )
    billing_interval: BillingInterval = Field(default=BillingInterval.MONTHLY, nullable=False)

    # Stored as written by the admin UI: a list of keys or display names,
    # an object keyed by feature, or a legacy comma separated string
    features: Any = Field(default=None, sa_column=Column(JSON, nullable=True))

    is_active: bool = Field(default=True, index=True)
    has_trial: bool = Field(default=False)
    trial_days: int = Field(default=0)

    # Stripe references
    stripe_product_id: Optional[str] = Field(default=None, max_length=255, nullable=True)
    stripe_price_id: Optional[str] = Field(default=None, max_length=255, nullable=True)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    plan_features: List["PlanFeature"] = Relationship(
        back_populates="plan",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    def feature_keys(self) -> set[str]:
        return {row.feature_key for row in self.plan_features}


class PlanFeature(SQLModel, table=True):
    """Concrete feature key granted by a plan"""

    __tablename__ = "plan_features"

    plan_id: int = Field(foreign_key="subscription_plans.id", primary_key=True)
    feature_key: str = Field(max_length=100, primary_key=True)

    plan: Optional[SubscriptionPlan] = Relationship(back_populates="plan_features")
