"""
Pydantic schemas for subscription plans

Field names follow the admin UI, which sends billing_cycle for the stored
billing_interval column.
"""

from pydantic import BaseModel, Field
from typing import Any, Optional
from decimal import Decimal

from snytra.models.subscription_plan import BillingInterval


class PlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    price: Decimal = Field(..., gt=0)
    billing_cycle: BillingInterval = BillingInterval.MONTHLY
    features: Any = None
    is_active: bool = True
    has_trial: bool = False
    trial_days: int = Field(default=0, ge=0)


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    billing_cycle: Optional[BillingInterval] = None
    features: Any = None
    is_active: Optional[bool] = None
    has_trial: Optional[bool] = None
    trial_days: Optional[int] = Field(default=None, ge=0)
