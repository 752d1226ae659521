"""
Audit log of outbound customer notifications
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional


class NotificationLog(SQLModel, table=True):
    """One notification attempt"""

    __tablename__ = "notification_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(max_length=100, index=True)
    recipient_id: str = Field(max_length=100)
    recipient_type: str = Field(max_length=50)
    sent_by: str = Field(max_length=100, default="system")
    status: str = Field(max_length=50, default="prepared")
    message: Optional[str] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
