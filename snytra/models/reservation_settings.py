"""
Operating hours used to accept reservations and waitlist entries
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, time as time_type
from typing import Optional


class ReservationSettings(SQLModel, table=True):
    """Opening window for one day of the week"""

    __tablename__ = "reservation_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    # 0 = Sunday ... 6 = Saturday
    day_of_week: int = Field(unique=True, index=True, ge=0, le=6)
    open_time: time_type
    close_time: time_type
    is_active: bool = Field(default=True)

    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def is_open_at(self, at: time_type) -> bool:
        return self.open_time <= at < self.close_time
