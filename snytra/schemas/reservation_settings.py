"""
Pydantic schemas for opening hours
"""

from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import datetime, time


class ReservationSettingsUpdate(BaseModel):
    open_time: time
    close_time: time
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class ReservationSettingsRead(BaseModel):
    id: int
    day_of_week: int
    open_time: time
    close_time: time
    is_active: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
