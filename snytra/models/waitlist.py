"""
Waitlist entry model
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, timezone, date as date_type, time as time_type
from typing import Optional
from enum import Enum


class WaitlistStatus(str, Enum):
    """Status of a waitlist entry"""
    WAITING = "waiting"
    SEATED = "seated"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class WaitlistEntry(SQLModel, table=True):
    """A queued party with no table assigned"""

    __tablename__ = "waitlist"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(max_length=255, nullable=False)
    customer_email: Optional[str] = Field(default=None, max_length=255, nullable=True)
    phone_number: str = Field(max_length=50, nullable=False, index=True)
    party_size: int

    # Slot the party is waiting for
    date: date_type = Field(index=True)
    time: time_type
    special_requests: Optional[str] = Field(default=None, max_length=2000, nullable=True)

    status: WaitlistStatus = Field(default=WaitlistStatus.WAITING, index=True)
    # Computed once at creation; not refreshed as the queue drains
    estimated_wait_time: int = Field(default=0, description="Minutes")
    notified: bool = Field(default=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))

    def to_response(self) -> dict:
        """Shape used by the waitlist endpoints"""
        return {
            "id": self.id,
            "customerName": self.name,
            "customerEmail": self.customer_email,
            "customerPhone": self.phone_number,
            "partySize": self.party_size,
            "date": self.date.isoformat(),
            "time": self.time.strftime("%H:%M"),
            "specialRequests": self.special_requests,
            "status": WaitlistStatus(self.status).value,
            "estimatedWaitTime": self.estimated_wait_time,
            "notified": self.notified,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
