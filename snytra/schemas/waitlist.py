"""
Pydantic schemas for the walk-in waitlist
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from snytra.models.waitlist import WaitlistStatus


class WaitlistCreate(BaseModel):
    customer_name: str = Field(..., alias="customerName", min_length=1, max_length=255)
    customer_email: Optional[str] = Field(default=None, alias="customerEmail", max_length=255)
    customer_phone: str = Field(..., alias="customerPhone", min_length=1, max_length=50)
    party_size: int = Field(..., alias="partySize", gt=0)
    date: str = Field(..., description="YYYY-MM-DD")
    time: str = Field(..., description="HH:MM, 24-hour")
    special_requests: Optional[str] = Field(default=None, alias="specialRequests", max_length=2000)

    model_config = ConfigDict(populate_by_name=True)


class WaitlistUpdate(BaseModel):
    id: int
    status: WaitlistStatus
