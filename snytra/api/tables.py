"""
Tables API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from typing import Optional
from datetime import datetime, timezone
import structlog

from snytra.core.database import get_session
from snytra.core.exceptions import ConflictError, NotFoundError
from snytra.core.permissions import Permission, require_permission
from snytra.models.reservation import Reservation, ReservationStatus
from snytra.models.table import Table, TableStatus
from snytra.schemas.table import TableCreate, TableRead, TableStatusUpdate, TableUpdate

logger = structlog.get_logger(__name__)
router = APIRouter()

can_view = Depends(require_permission(Permission.TABLES_VIEW))
can_edit = Depends(require_permission(Permission.TABLES_EDIT))


def _get_table_or_404(session: Session, table_id: int) -> Table:
    table = session.get(Table, table_id)
    if not table:
        raise NotFoundError("Table", table_id)
    return table


def _ensure_number_free(session: Session, table_number: str, exclude_id: Optional[int] = None) -> None:
    query = select(Table).where(Table.table_number == table_number)
    if exclude_id is not None:
        query = query.where(Table.id != exclude_id)
    if session.exec(query).first():
        raise ConflictError("A table with this number already exists", table_number=table_number)


@router.get("", response_model=list[TableRead], dependencies=[can_view])
def list_tables(
    status: Optional[TableStatus] = None,
    min_seats: Optional[int] = None,
    session: Session = Depends(get_session)
):
    """List tables ordered by number"""
    query = select(Table)

    if status:
        query = query.where(Table.status == status)
    if min_seats:
        query = query.where(Table.seats >= min_seats)

    return session.exec(query.order_by(Table.table_number)).all()


@router.post("", response_model=TableRead, status_code=201, dependencies=[can_edit])
def create_table(
    table_data: TableCreate,
    session: Session = Depends(get_session)
):
    """Create a new table"""
    _ensure_number_free(session, table_data.table_number)

    new_table = Table(**table_data.model_dump())
    session.add(new_table)
    session.commit()
    session.refresh(new_table)

    logger.info("Table created", table_id=new_table.id, table_number=new_table.table_number)
    return new_table


@router.get("/{table_id}", response_model=TableRead, dependencies=[can_view])
def get_table(
    table_id: int,
    session: Session = Depends(get_session)
):
    """Get table by ID"""
    return _get_table_or_404(session, table_id)


@router.put("/{table_id}", response_model=TableRead, dependencies=[can_edit])
def update_table(
    table_id: int,
    table_data: TableUpdate,
    session: Session = Depends(get_session)
):
    """Update table attributes"""
    table = _get_table_or_404(session, table_id)

    updates = table_data.model_dump(exclude_unset=True)
    if updates.get("table_number") and updates["table_number"] != table.table_number:
        _ensure_number_free(session, updates["table_number"], exclude_id=table_id)

    for key, value in updates.items():
        setattr(table, key, value)

    table.updated_at = datetime.now(timezone.utc)
    session.add(table)
    session.commit()
    session.refresh(table)

    logger.info("Table updated", table_id=table_id, fields=sorted(updates))
    return table


@router.patch("/{table_id}", response_model=TableRead, dependencies=[can_edit])
def update_table_status(
    table_id: int,
    status_data: TableStatusUpdate,
    session: Session = Depends(get_session)
):
    """Move a table through its service lifecycle"""
    table = _get_table_or_404(session, table_id)
    previous = TableStatus(table.status)

    try:
        table.transition_to(status_data.status)
    except ValueError as e:
        raise ConflictError(str(e), table_id=table_id)

    session.add(table)
    session.commit()
    session.refresh(table)

    logger.info("Table status changed", table_id=table_id, old=previous.value, new=status_data.status.value)
    return table


@router.delete("/{table_id}", dependencies=[can_edit])
def delete_table(
    table_id: int,
    session: Session = Depends(get_session)
):
    """Delete a table that no confirmed reservation points at"""
    table = _get_table_or_404(session, table_id)

    in_use = session.exec(
        select(Reservation.id).where(
            Reservation.table_id == table_id,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    ).first()
    if in_use is not None:
        raise ConflictError("Table has confirmed reservations", table_id=table_id)

    # Detach cancelled and waitlisted history so the foreign key allows the delete
    for reservation in session.exec(select(Reservation).where(Reservation.table_id == table_id)).all():
        reservation.table_id = None
        session.add(reservation)

    session.delete(table)
    session.commit()

    logger.info("Table deleted", table_id=table_id)
    return {"success": True, "message": "Table deleted successfully"}
