"""
Pydantic schemas for users
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from snytra.models.user import UserRole


class UserResponse(BaseModel):
    """User response model"""
    id: int
    email: str
    name: str
    role: UserRole
    subscription_plan: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_current_period_end: Optional[datetime] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
