"""
Waitlist API endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session, select, or_
from typing import Optional
from datetime import date as date_type
import structlog

from snytra.core.database import get_session
from snytra.core.dependencies import get_current_user_id, get_optional_user_id
from snytra.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from snytra.core.permissions import Permission, require_permission
from snytra.models.notification_log import NotificationLog
from snytra.models.waitlist import WaitlistEntry, WaitlistStatus
from snytra.schemas.waitlist import WaitlistCreate, WaitlistUpdate
from snytra.services import allocator
from snytra.services.email import send_table_ready

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def join_waitlist(
    waitlist_data: WaitlistCreate,
    session: Session = Depends(get_session)
):
    """Queue a party for a future slot within business hours"""
    placement = allocator.add_to_waitlist(
        session,
        allocator.WaitlistRequest(
            customer_name=waitlist_data.customer_name,
            customer_email=waitlist_data.customer_email,
            customer_phone=waitlist_data.customer_phone,
            party_size=waitlist_data.party_size,
            date=waitlist_data.date,
            time=waitlist_data.time,
            special_requests=waitlist_data.special_requests,
        ),
    )

    return {
        "message": "Added to waitlist successfully",
        "waitlistEntry": placement.entry.to_response(),
        "position": placement.position,
        "estimatedWaitTime": placement.estimated_wait_time,
    }


@router.get("", dependencies=[Depends(require_permission(Permission.WAITLIST_VIEW))])
def list_waitlist(
    date: Optional[str] = None,
    status: Optional[WaitlistStatus] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session)
):
    """Staff view of the waitlist with optional filters"""
    query = select(WaitlistEntry)

    if date:
        query = query.where(WaitlistEntry.date == allocator.parse_date(date))
    if status:
        query = query.where(WaitlistEntry.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            WaitlistEntry.name.ilike(pattern),
            WaitlistEntry.phone_number.ilike(pattern),
            WaitlistEntry.customer_email.ilike(pattern),
        ))

    entries = session.exec(
        query.order_by(WaitlistEntry.date, WaitlistEntry.time, WaitlistEntry.created_at)
    ).all()
    return {"waitlist": [entry.to_response() for entry in entries]}


@router.get("/check")
def check_waitlist(
    phone: Optional[str] = None,
    session: Session = Depends(get_session)
):
    """A customer's upcoming waiting entries with live positions"""
    if not phone:
        raise ValidationError("Phone number is required")

    entries = session.exec(
        select(WaitlistEntry)
        .where(
            WaitlistEntry.phone_number == phone,
            WaitlistEntry.status == WaitlistStatus.WAITING,
            WaitlistEntry.date >= date_type.today(),
        )
        .order_by(WaitlistEntry.date, WaitlistEntry.time)
    ).all()

    if not entries:
        raise NotFoundError("Active waitlist entry")

    return {
        "success": True,
        "entries": [
            {
                "id": entry.id,
                "customerName": entry.name,
                "partySize": entry.party_size,
                "date": entry.date.isoformat(),
                "time": entry.time.strftime("%H:%M"),
                "estimatedWaitTime": entry.estimated_wait_time,
                "position": allocator.waitlist_position(session, entry),
                "createdAt": entry.created_at.isoformat(),
            }
            for entry in entries
        ],
    }


@router.get("/{entry_id}")
def get_waitlist_entry(
    entry_id: int,
    phone: Optional[str] = None,
    user_id: Optional[int] = Depends(get_optional_user_id),
    session: Session = Depends(get_session)
):
    """Signed-in users see any entry; guests must present the entry's phone number"""
    if user_id is None and not phone:
        raise UnauthorizedError("Unauthorized")

    entry = session.get(WaitlistEntry, entry_id)
    if entry is None or (user_id is None and entry.phone_number != phone):
        raise NotFoundError("Waitlist entry", entry_id)

    return {"waitlistEntry": entry.to_response()}


@router.patch("")
def update_waitlist_status(
    update_data: WaitlistUpdate,
    session: Session = Depends(get_session)
):
    entry = session.get(WaitlistEntry, update_data.id)
    if entry is None:
        raise NotFoundError("Waitlist entry", update_data.id)

    entry.status = update_data.status
    session.add(entry)
    session.commit()
    session.refresh(entry)

    logger.info("Waitlist status updated", entry_id=entry.id, status=update_data.status.value)
    return {
        "success": True,
        "waitlist": entry.to_response(),
        "message": "Waitlist status updated successfully",
    }


@router.delete("")
def remove_from_waitlist(
    id: Optional[int] = Query(default=None),
    session: Session = Depends(get_session)
):
    if id is None:
        raise ValidationError("Waitlist ID is required")

    entry = session.get(WaitlistEntry, id)
    if entry is None:
        raise NotFoundError("Waitlist entry", id)

    session.delete(entry)
    session.commit()

    logger.info("Removed from waitlist", entry_id=id)
    return {"success": True, "message": "Removed from waitlist successfully"}


@router.post("/{entry_id}/notify", dependencies=[Depends(require_permission(Permission.WAITLIST_NOTIFY))])
def notify_waitlist_entry(
    entry_id: int,
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """Tell a waiting party their table is ready"""
    entry = session.get(WaitlistEntry, entry_id)
    if entry is None or entry.status != WaitlistStatus.WAITING:
        raise NotFoundError("Waitlist entry", entry_id, reason="missing or not waiting")

    position = allocator.waitlist_position(session, entry)
    entry.notified = True
    session.add(entry)
    session.add(NotificationLog(
        type="waitlist_notification",
        recipient_id=str(entry.id),
        recipient_type="waitlist",
        sent_by=str(user_id),
        status="queued" if entry.customer_email else "prepared",
        message=f"Table ready notification for waitlist entry #{entry.id}",
    ))
    session.commit()
    session.refresh(entry)

    if entry.customer_email:
        background_tasks.add_task(send_table_ready, entry.customer_email, entry.name, position)

    logger.info("Waitlist entry notified", entry_id=entry.id, position=position)
    return {
        "success": True,
        "message": "Customer has been notified",
        "waitlist": entry.to_response(),
        "notification": {
            "method": "email" if entry.customer_email else None,
            "status": "queued" if entry.customer_email else "prepared",
            "position": position,
        },
    }
