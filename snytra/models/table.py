"""
Table model for restaurant seating
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional
from enum import Enum


class TableStatus(str, Enum):
    """Status of a physical table"""
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    DIRTY = "dirty"
    MAINTENANCE = "maintenance"


# Allowed status changes. Reservation allocation only ever performs
# available -> reserved; everything else is staff driven.
TABLE_TRANSITIONS = {
    TableStatus.AVAILABLE: {TableStatus.RESERVED, TableStatus.OCCUPIED, TableStatus.MAINTENANCE},
    TableStatus.RESERVED: {TableStatus.OCCUPIED, TableStatus.AVAILABLE, TableStatus.MAINTENANCE},
    TableStatus.OCCUPIED: {TableStatus.DIRTY, TableStatus.MAINTENANCE},
    TableStatus.DIRTY: {TableStatus.AVAILABLE},
    TableStatus.MAINTENANCE: {TableStatus.AVAILABLE},
}


class Table(SQLModel, table=True):
    """Table model for restaurant seating"""

    __tablename__ = "tables"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Table details
    table_number: str = Field(max_length=50, nullable=False, unique=True, index=True,
                              description="Table identifier (e.g., '12', 'A1')")
    seats: int = Field(default=4, description="Maximum number of guests")
    is_smoking: bool = Field(default=False)
    location: Optional[str] = Field(default=None, max_length=100, nullable=True,
                                    description="Area of the restaurant, e.g. patio")

    # QR code for guest ordering
    qr_code_url: Optional[str] = Field(default=None, max_length=500, nullable=True)

    # Status
    status: TableStatus = Field(default=TableStatus.AVAILABLE, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def can_transition_to(self, new_status: TableStatus) -> bool:
        """Check whether moving to new_status is a legal transition"""
        current = TableStatus(self.status)
        new_status = TableStatus(new_status)
        if current == new_status:
            return True
        return new_status in TABLE_TRANSITIONS[current]

    def transition_to(self, new_status: TableStatus) -> None:
        """Apply a status change, enforcing the table lifecycle"""
        new_status = TableStatus(new_status)
        if not self.can_transition_to(new_status):
            raise ValueError(f"Cannot transition table from {TableStatus(self.status).value} to {new_status.value}")
        self.status = new_status
        self.updated_at = datetime.now(timezone.utc)

    def mark_reserved(self) -> None:
        self.transition_to(TableStatus.RESERVED)
