"""
Reservation model for table bookings
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from datetime import datetime, timezone, date as date_type, time as time_type
from typing import Optional, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from snytra.models.table import Table


class ReservationStatus(str, Enum):
    """Status of a reservation"""
    CONFIRMED = "confirmed"     # Bound to a table
    WAITLIST = "waitlist"       # No table could be assigned
    CANCELLED = "cancelled"     # Soft-deleted by customer or staff


class Reservation(SQLModel, table=True):
    """A booking; table_id is null while waitlisted"""

    __tablename__ = "reservations"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Customer
    name: str = Field(max_length=255, nullable=False)
    email: Optional[str] = Field(default=None, max_length=255, nullable=True, index=True)
    phone_number: str = Field(max_length=50, nullable=False, index=True)

    # Booking slot
    date: date_type = Field(index=True)
    time: time_type
    party_size: int = Field(description="Number of guests")

    table_id: Optional[int] = Field(default=None, foreign_key="tables.id", nullable=True, index=True)
    status: ReservationStatus = Field(default=ReservationStatus.CONFIRMED, index=True)
    special_instructions: Optional[str] = Field(default=None, max_length=2000, nullable=True)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    table: Optional["Table"] = Relationship()

    def cancel(self) -> None:
        """Soft cancel; the assigned table is not freed automatically"""
        self.status = ReservationStatus.CANCELLED
        self.updated_at = datetime.now(timezone.utc)
