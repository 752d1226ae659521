"""
Pydantic schemas for subscription checkout
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CheckoutRequest(BaseModel):
    plan_id: int = Field(..., alias="planId")
    success_url: Optional[str] = Field(default=None, alias="successUrl")
    cancel_url: Optional[str] = Field(default=None, alias="cancelUrl")

    model_config = ConfigDict(populate_by_name=True)
