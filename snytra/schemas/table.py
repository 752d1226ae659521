"""
Pydantic schemas for tables
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from snytra.models.table import TableStatus


class TableCreate(BaseModel):
    table_number: str = Field(..., min_length=1, max_length=50)
    seats: int = Field(default=4, gt=0)
    is_smoking: bool = False
    location: Optional[str] = Field(default=None, max_length=100)
    qr_code_url: Optional[str] = Field(default=None, max_length=500)


class TableUpdate(BaseModel):
    """Editable attributes; status changes go through PATCH"""
    table_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    seats: Optional[int] = Field(default=None, gt=0)
    is_smoking: Optional[bool] = None
    location: Optional[str] = Field(default=None, max_length=100)
    qr_code_url: Optional[str] = Field(default=None, max_length=500)


class TableStatusUpdate(BaseModel):
    status: TableStatus


class TableRead(BaseModel):
    id: int
    table_number: str
    seats: int
    is_smoking: bool
    location: Optional[str] = None
    qr_code_url: Optional[str] = None
    status: TableStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
