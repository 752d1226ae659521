"""
Reservations API endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlmodel import Session, select
from typing import Optional
from datetime import date, datetime
import structlog

from snytra.core.database import get_session
from snytra.core.dependencies import get_optional_role
from snytra.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from snytra.core.permissions import Permission, get_permissions_for_role, has_permission
from snytra.models.reservation import Reservation, ReservationStatus
from snytra.models.table import Table
from snytra.schemas.reservation import ReservationCreate, ReservationEdit, ReservationRead, ReservationUpdate
from snytra.schemas.table import TableRead
from snytra.services import allocator
from snytra.services.email import send_reservation_confirmation

logger = structlog.get_logger(__name__)
router = APIRouter()


def serialize_reservation(reservation: Reservation, table: Optional[Table] = None) -> dict:
    data = ReservationRead.model_validate(reservation)
    table = table or reservation.table
    if table is not None:
        data.table_number = table.table_number
        data.seats = table.seats
    return data.model_dump(mode="json")


@router.get("")
def list_reservations(
    email: Optional[str] = None,
    phone: Optional[str] = None,
    session: Session = Depends(get_session)
):
    """Upcoming reservations, optionally for one customer"""
    query = select(Reservation).where(Reservation.date >= date.today())

    if email:
        query = query.where(Reservation.email == email).limit(5)
    elif phone:
        query = query.where(Reservation.phone_number == phone).limit(5)
    else:
        query = query.limit(20)

    reservations = session.exec(query.order_by(Reservation.date, Reservation.time)).all()
    return {
        "success": True,
        "reservations": [serialize_reservation(r) for r in reservations],
    }


@router.post("")
def create_reservation(
    reservation_data: ReservationCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session)
):
    """Book a table, falling back to the waitlist when nothing fits"""
    request = allocator.ReservationRequest(
        customer_name=reservation_data.customer_name,
        customer_email=reservation_data.customer_email,
        customer_phone=reservation_data.customer_phone,
        party_size=reservation_data.party_size,
        date=allocator.parse_date(reservation_data.date),
        time=allocator.parse_time(reservation_data.time),
        special_requests=reservation_data.special_requests,
        table_id=reservation_data.table_id,
    )

    result = allocator.allocate_reservation(session, request)
    reservation, table = result.reservation, result.table

    if result.confirmed and reservation.email:
        background_tasks.add_task(
            send_reservation_confirmation,
            reservation_id=reservation.id,
            customer_email=reservation.email,
            customer_name=reservation.name,
            reservation_date=reservation.date,
            reservation_time=reservation.time,
            party_size=reservation.party_size,
            table_number=table.table_number,
            special_requests=reservation.special_instructions,
            qr_code_url=table.qr_code_url,
        )

    return {
        "success": True,
        "reservation": serialize_reservation(reservation, table),
        "table_qr_code": table.qr_code_url if table else None,
        "message": (
            "Reservation confirmed successfully!"
            if result.confirmed
            else "No tables available at this time. Added to waitlist!"
        ),
    }


@router.patch("")
def update_reservation(
    update_data: ReservationUpdate,
    session: Session = Depends(get_session)
):
    """Apply the fields present in the body"""
    reservation = session.get(Reservation, update_data.id)
    if not reservation:
        raise NotFoundError("Reservation", update_data.id)

    fields = update_data.model_fields_set
    changes = {}
    for field in ("status", "date", "time", "party_size"):
        if field in fields and getattr(update_data, field) is not None:
            changes[field] = getattr(update_data, field)
    for field in ("table_id", "special_instructions"):
        if field in fields:
            changes[field] = getattr(update_data, field)

    reservation = allocator.update_reservation(session, reservation, changes)
    return {
        "success": True,
        "reservation": serialize_reservation(reservation),
        "message": "Reservation updated successfully",
    }


@router.delete("")
def cancel_reservation(
    id: Optional[int] = Query(default=None),
    session: Session = Depends(get_session)
):
    """Soft cancel a reservation"""
    if id is None:
        raise ValidationError("Reservation ID is required")

    reservation = session.get(Reservation, id)
    if not reservation:
        raise NotFoundError("Reservation", id)

    reservation.cancel()
    session.add(reservation)
    session.commit()

    logger.info("Reservation cancelled", reservation_id=id)
    return {"success": True, "message": "Reservation cancelled successfully"}


@router.get("/available-tables")
def available_tables(
    date: str,
    time: str,
    party_size: Optional[int] = Query(default=None, gt=0),
    session: Session = Depends(get_session)
):
    """Tables free for a slot"""
    slot_date = allocator.parse_date(date)
    slot_time = allocator.parse_time(time)

    tables = allocator.find_available_tables(session, slot_date, slot_time, party_size)
    return {
        "success": True,
        "tables": [TableRead.model_validate(t).model_dump(mode="json") for t in tables],
    }


@router.get("/available-slots")
def available_slots(
    date: str,
    party_size: Optional[int] = Query(default=None, alias="partySize", gt=0),
    session: Session = Depends(get_session)
):
    """Bookable half-hour slots for a day"""
    slot_date = allocator.parse_date(date)
    if slot_date < datetime.now().date():
        raise ValidationError("Cannot book slots in the past")

    return {
        "success": True,
        "date": slot_date.isoformat(),
        "slots": allocator.available_slots(session, slot_date, party_size),
    }


# ============================================================================
# Single reservation, for staff or a guest holding the booking phone number
# ============================================================================

def _can(role: Optional[str], permission: Permission) -> bool:
    return role is not None and has_permission(permission, get_permissions_for_role(role))


def _load_for_caller(session: Session, reservation_id: int, phone: Optional[str], staff: bool) -> Reservation:
    if not staff and not phone:
        raise UnauthorizedError("Phone number is required for verification")

    reservation = session.get(Reservation, reservation_id)
    if reservation is None or (not staff and reservation.phone_number != phone):
        raise NotFoundError("Reservation", reservation_id)
    return reservation


def guest_view(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "customerName": reservation.name,
        "date": reservation.date.isoformat(),
        "time": reservation.time.strftime("%H:%M"),
        "partySize": reservation.party_size,
        "status": ReservationStatus(reservation.status).value,
    }


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: int,
    phone: Optional[str] = None,
    role: Optional[str] = Depends(get_optional_role),
    session: Session = Depends(get_session)
):
    """Staff see the whole booking; guests get a reduced view"""
    staff = _can(role, Permission.RESERVATIONS_MANAGE)
    reservation = _load_for_caller(session, reservation_id, phone, staff)

    return {
        "success": True,
        "reservation": serialize_reservation(reservation) if staff else guest_view(reservation),
    }


@router.put("/{reservation_id}")
def edit_reservation(
    reservation_id: int,
    edit: ReservationEdit,
    role: Optional[str] = Depends(get_optional_role),
    session: Session = Depends(get_session)
):
    """
    Edit one reservation

    Staff may move it to another slot or table and change its status.
    Guests are limited to contact details, party size and special requests.
    """
    staff = _can(role, Permission.RESERVATIONS_MANAGE)
    reservation = _load_for_caller(session, reservation_id, edit.phone, staff)

    changes = edit.changes()
    if not staff:
        ignored = sorted(set(changes) - allocator.CUSTOMER_EDITABLE)
        if ignored:
            logger.info("Guest edit limited to contact fields", reservation_id=reservation_id, ignored=ignored)
        changes = {k: v for k, v in changes.items() if k in allocator.CUSTOMER_EDITABLE}

    reservation = allocator.update_reservation(session, reservation, changes)

    if staff:
        view = serialize_reservation(reservation)
    else:
        view = guest_view(reservation)
        view["customerEmail"] = reservation.email
        view["specialRequests"] = reservation.special_instructions
    return {"success": True, "reservation": view, "message": "Reservation updated successfully"}


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: int,
    phone: Optional[str] = None,
    role: Optional[str] = Depends(get_optional_role),
    session: Session = Depends(get_session)
):
    """Admins delete the booking; everyone else cancels it. Either way the table is freed"""
    staff = _can(role, Permission.RESERVATIONS_MANAGE)
    reservation = _load_for_caller(session, reservation_id, phone, staff)

    delete = _can(role, Permission.RESERVATIONS_DELETE)
    allocator.cancel_booking(session, reservation, delete=delete)

    return {
        "success": True,
        "message": "Reservation deleted successfully" if delete else "Reservation cancelled successfully",
    }
