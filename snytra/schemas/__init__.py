"""
Schemas module
"""

from snytra.schemas.token import LoginRequest, TokenResponse
from snytra.schemas.user import UserResponse
from snytra.schemas.reservation import ReservationCreate, ReservationEdit, ReservationUpdate, ReservationRead
from snytra.schemas.waitlist import WaitlistCreate, WaitlistUpdate
from snytra.schemas.table import TableCreate, TableUpdate, TableStatusUpdate, TableRead
from snytra.schemas.reservation_settings import ReservationSettingsUpdate, ReservationSettingsRead
from snytra.schemas.subscription_plan import PlanCreate, PlanUpdate
from snytra.schemas.subscription import CheckoutRequest

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "UserResponse",
    "ReservationCreate",
    "ReservationEdit",
    "ReservationUpdate",
    "ReservationRead",
    "WaitlistCreate",
    "WaitlistUpdate",
    "TableCreate",
    "TableUpdate",
    "TableStatusUpdate",
    "TableRead",
    "ReservationSettingsUpdate",
    "ReservationSettingsRead",
    "PlanCreate",
    "PlanUpdate",
    "CheckoutRequest",
]
