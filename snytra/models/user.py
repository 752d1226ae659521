"""
User model with role and denormalized subscription state
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional, List, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from snytra.models.subscription import Subscription


class UserRole(str, Enum):
    """User roles for RBAC"""
    ADMIN = "admin"
    DEVELOPER = "developer"
    MANAGER = "manager"
    STAFF = "staff"
    CUSTOMER = "customer"


class User(SQLModel, table=True):
    """Account holder; may own a restaurant subscription"""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Authentication
    email: str = Field(index=True, unique=True, nullable=False, max_length=255)
    password_hash: str = Field(nullable=False)

    # Profile
    name: str = Field(nullable=False, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50, nullable=True)

    # RBAC
    role: UserRole = Field(default=UserRole.CUSTOMER, nullable=False)

    # Denormalized subscription state. subscription_plan holds a plan id,
    # a plan name or a legacy alias depending on when it was written.
    subscription_plan: Optional[str] = Field(default=None, max_length=100, nullable=True)
    subscription_status: Optional[str] = Field(default=None, max_length=50, nullable=True, index=True)
    subscription_current_period_end: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, nullable=True)

    # Status
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    subscriptions: List["Subscription"] = Relationship(back_populates="user")

    def has_active_subscription(self) -> bool:
        """Active flag is the only gate; period end is not cross-checked"""
        return self.subscription_status == "active"
