"""
Subscription model mirroring the Stripe subscription lifecycle
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from snytra.models.user import User
    from snytra.models.subscription_plan import SubscriptionPlan


class SubscriptionStatus(str, Enum):
    """Subset of Stripe subscription statuses we track"""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


class Subscription(SQLModel, table=True):
    """Subscription event record; may disagree with the user's denormalized fields"""

    __tablename__ = "subscriptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    plan_id: Optional[int] = Field(default=None, foreign_key="subscription_plans.id", nullable=True, index=True)

    status: SubscriptionStatus = Field(default=SubscriptionStatus.INCOMPLETE, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, nullable=True, index=True)

    current_period_start: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))
    current_period_end: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))
    cancel_at_period_end: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    user: Optional["User"] = Relationship(back_populates="subscriptions")
    plan: Optional["SubscriptionPlan"] = Relationship()
