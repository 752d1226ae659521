"""
Pydantic schemas for reservations

Request bodies use the camelCase names the booking widget sends.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, date, time

from snytra.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Booking request"""
    customer_name: str = Field(..., alias="customerName", min_length=1, max_length=255)
    customer_email: Optional[str] = Field(default=None, alias="customerEmail", max_length=255)
    customer_phone: str = Field(..., alias="customerPhone", min_length=1, max_length=50)
    party_size: int = Field(..., alias="partySize", gt=0)
    date: str = Field(..., description="YYYY-MM-DD")
    time: str = Field(..., description="HH:MM, 24-hour")
    special_requests: Optional[str] = Field(default=None, alias="specialRequests", max_length=2000)
    table_id: Optional[int] = Field(default=None, alias="tableId")

    model_config = ConfigDict(populate_by_name=True)


class ReservationUpdate(BaseModel):
    """Partial update; only fields present in the body are applied"""
    id: int
    status: Optional[ReservationStatus] = None
    date: Optional[str] = None
    time: Optional[str] = None
    party_size: Optional[int] = Field(default=None, alias="partySize", gt=0)
    table_id: Optional[int] = Field(default=None, alias="tableId")
    special_instructions: Optional[str] = Field(default=None, alias="specialInstructions", max_length=2000)

    model_config = ConfigDict(populate_by_name=True)


class ReservationEdit(BaseModel):
    """
    Edit of a single reservation.

    Guests must send the booking phone number in `phone` and may only change
    name, email, party size and special requests.
    """
    customer_name: Optional[str] = Field(default=None, alias="customerName", min_length=1, max_length=255)
    customer_email: Optional[str] = Field(default=None, alias="customerEmail", max_length=255)
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone", min_length=1, max_length=50)
    party_size: Optional[int] = Field(default=None, alias="partySize", gt=0)
    date: Optional[str] = None
    time: Optional[str] = None
    special_requests: Optional[str] = Field(default=None, alias="specialRequests", max_length=2000)
    status: Optional[ReservationStatus] = None
    table_id: Optional[int] = Field(default=None, alias="tableId")
    phone: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def changes(self) -> dict:
        """Present fields keyed by Reservation column name"""
        columns = {
            "customer_name": "name",
            "customer_email": "email",
            "customer_phone": "phone_number",
            "party_size": "party_size",
            "date": "date",
            "time": "time",
            "special_requests": "special_instructions",
            "status": "status",
            "table_id": "table_id",
        }
        nullable = {"customer_email", "special_requests", "table_id"}
        return {
            column: getattr(self, field)
            for field, column in columns.items()
            if field in self.model_fields_set and (field in nullable or getattr(self, field) is not None)
        }


class ReservationRead(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone_number: str
    date: date
    time: time
    party_size: int
    table_id: Optional[int] = None
    status: ReservationStatus
    special_instructions: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    table_number: Optional[str] = None
    seats: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
