"""
Table allocation and waitlist placement

Reservations are bound to the smallest free table that seats the party
(best fit). When none qualifies the reservation is stored without a table
and marked as waitlisted. Walk-in waitlist entries get a static wait
estimate computed once from the number of parties already waiting in the
same slot.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, func, select
import structlog

from snytra.core.config import get_settings
from snytra.core.exceptions import ConflictError, NotFoundError, ValidationError
from snytra.models.reservation import Reservation, ReservationStatus
from snytra.models.reservation_settings import ReservationSettings
from snytra.models.table import Table, TableStatus
from snytra.models.waitlist import WaitlistEntry, WaitlistStatus

logger = structlog.get_logger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

# Static slot grid used by the availability view
SLOT_OPEN = time(18, 0)
SLOT_CLOSE = time(22, 0)
SLOT_MINUTES = 30
TABLES_PER_SLOT = 3
SEATS_PER_TABLE = 4


# ============================================================================
# Input parsing
# ============================================================================

def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD, rejecting impossible calendar dates"""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", value=value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", value=value)


def parse_time(value: str) -> time:
    """Parse HH:MM in 24-hour format"""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError("Invalid time format. Use HH:MM 24-hour format", value=value)
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def validate_slot(date_str: str, time_str: str, now: Optional[datetime] = None) -> Tuple[date, time]:
    """Parse a requested slot and require it to lie strictly in the future"""
    slot_date = parse_date(date_str)
    slot_time = parse_time(time_str)

    now = now or datetime.now()
    if datetime.combine(slot_date, slot_time) <= now:
        raise ValidationError("Waitlist date and time must be in the future")
    return slot_date, slot_time


def day_of_week(value: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (value.weekday() + 1) % 7


def check_business_hours(session: Session, slot_date: date, slot_time: time,
                         subject: str = "Waitlist") -> ReservationSettings:
    """Reject slots on closed days or outside the opening window"""
    settings = session.exec(
        select(ReservationSettings).where(
            ReservationSettings.day_of_week == day_of_week(slot_date),
            ReservationSettings.is_active == True,  # noqa: E712
        )
    ).first()

    if settings is None:
        raise ValidationError("Reservations are not available for this day")

    if not settings.is_open_at(slot_time):
        raise ValidationError(f"{subject} time is outside of business hours")
    return settings


# ============================================================================
# Table allocation
# ============================================================================

@dataclass
class ReservationRequest:
    customer_name: str
    customer_phone: str
    party_size: int
    date: date
    time: time
    customer_email: Optional[str] = None
    special_requests: Optional[str] = None
    table_id: Optional[int] = None


@dataclass
class AllocationResult:
    reservation: Reservation
    table: Optional[Table]

    @property
    def confirmed(self) -> bool:
        return self.table is not None


def _booked_table_ids(slot_date: date, slot_time: time):
    return select(Reservation.table_id).where(
        Reservation.date == slot_date,
        Reservation.time == slot_time,
        Reservation.status == ReservationStatus.CONFIRMED,
        Reservation.table_id.is_not(None),
    )


def find_best_fit_table(session: Session, party_size: int, slot_date: date, slot_time: time,
                        lock: bool = False) -> Optional[Table]:
    """Smallest available table seating the party and free in the slot"""
    query = (
        select(Table)
        .where(
            Table.seats >= party_size,
            Table.status == TableStatus.AVAILABLE,
            Table.id.not_in(_booked_table_ids(slot_date, slot_time)),
        )
        .order_by(Table.seats.asc(), Table.id.asc())
        .limit(1)
    )
    if lock:
        query = query.with_for_update()
    return session.exec(query).first()


def find_available_tables(session: Session, slot_date: date, slot_time: time,
                          party_size: Optional[int] = None) -> List[Table]:
    """All tables that could take a booking in the slot, smallest first"""
    query = select(Table).where(
        Table.status == TableStatus.AVAILABLE,
        Table.id.not_in(_booked_table_ids(slot_date, slot_time)),
    )
    if party_size:
        query = query.where(Table.seats >= party_size)
    return list(session.exec(query.order_by(Table.seats.asc(), Table.id.asc())).all())


def _lock_requested_table(session: Session, table_id: int) -> Table:
    table = session.exec(select(Table).where(Table.id == table_id).with_for_update()).first()
    if table is None:
        raise NotFoundError("Table", table_id)
    if not table.can_transition_to(TableStatus.RESERVED):
        raise ConflictError(f"Table {table.table_number} is not available", table_id=table_id)
    return table


def allocate_reservation(session: Session, request: ReservationRequest) -> AllocationResult:
    """
    Create a reservation, binding it to a table when one is free.

    The table status change and the reservation insert commit together; the
    chosen table row is locked for the duration of the transaction.
    """
    try:
        if request.table_id is not None:
            table = _lock_requested_table(session, request.table_id)
        else:
            table = find_best_fit_table(
                session, request.party_size, request.date, request.time, lock=True
            )

        if table is not None:
            table.mark_reserved()
            session.add(table)
            status = ReservationStatus.CONFIRMED
        else:
            status = ReservationStatus.WAITLIST

        reservation = Reservation(
            name=request.customer_name,
            email=request.customer_email,
            phone_number=request.customer_phone,
            date=request.date,
            time=request.time,
            party_size=request.party_size,
            table_id=table.id if table else None,
            status=status,
            special_instructions=request.special_requests,
        )
        session.add(reservation)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(reservation)
    if table is not None:
        session.refresh(table)

    logger.info(
        "Reservation allocated",
        reservation_id=reservation.id,
        table_id=reservation.table_id,
        status=status.value,
        party_size=request.party_size,
    )
    return AllocationResult(reservation=reservation, table=table)


# ============================================================================
# Changes to existing reservations
# ============================================================================

# Fields a guest may change after verifying the booking phone number
CUSTOMER_EDITABLE = {"name", "email", "party_size", "special_instructions"}


def check_slot_capacity(session: Session, slot_date: date, slot_time: time,
                        exclude_id: Optional[int] = None) -> None:
    """A slot holds at most one confirmed booking per table not in maintenance"""
    booked_query = select(func.count(Reservation.id)).where(
        Reservation.date == slot_date,
        Reservation.time == slot_time,
        Reservation.status == ReservationStatus.CONFIRMED,
    )
    if exclude_id is not None:
        booked_query = booked_query.where(Reservation.id != exclude_id)
    booked = session.exec(booked_query).one()

    usable = session.exec(
        select(func.count(Table.id)).where(Table.status != TableStatus.MAINTENANCE)
    ).one()
    if booked >= usable:
        raise ValidationError("No tables available for this time slot")


def validate_reschedule(session: Session, reservation: Reservation, date_str: Optional[str],
                        time_str: Optional[str], now: Optional[datetime] = None) -> Tuple[date, time]:
    """Resolve the requested slot; a changed slot must be bookable"""
    slot_date = parse_date(date_str) if date_str is not None else reservation.date
    slot_time = parse_time(time_str) if time_str is not None else reservation.time
    if (slot_date, slot_time) == (reservation.date, reservation.time):
        return slot_date, slot_time

    now = now or datetime.now()
    if datetime.combine(slot_date, slot_time) <= now:
        raise ValidationError("Reservation date and time must be in the future")
    check_business_hours(session, slot_date, slot_time, subject="Reservation")
    check_slot_capacity(session, slot_date, slot_time, exclude_id=reservation.id)
    return slot_date, slot_time


def _release_table(session: Session, table_id: int) -> None:
    table = session.exec(select(Table).where(Table.id == table_id).with_for_update()).first()
    if table is not None and table.status == TableStatus.RESERVED:
        table.transition_to(TableStatus.AVAILABLE)
        session.add(table)


def reassign_table(session: Session, reservation: Reservation, table_id: Optional[int]) -> Optional[Table]:
    """
    Move a reservation to another table, or off tables entirely.

    Runs inside the caller's transaction: the old table goes back to
    available and the new one is locked and reserved.
    """
    if table_id == reservation.table_id:
        return reservation.table

    if reservation.table_id is not None:
        _release_table(session, reservation.table_id)

    table = None
    if table_id is not None:
        table = _lock_requested_table(session, table_id)
        table.mark_reserved()
        session.add(table)
        if reservation.status == ReservationStatus.WAITLIST:
            reservation.status = ReservationStatus.CONFIRMED
    elif reservation.status == ReservationStatus.CONFIRMED:
        reservation.status = ReservationStatus.WAITLIST

    reservation.table_id = table_id
    return table


def _table_double_booked(session: Session, reservation: Reservation) -> bool:
    clash = session.exec(
        select(Reservation.id).where(
            Reservation.id != reservation.id,
            Reservation.table_id == reservation.table_id,
            Reservation.date == reservation.date,
            Reservation.time == reservation.time,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    ).first()
    return clash is not None


def update_reservation(session: Session, reservation: Reservation, changes: Dict[str, Any],
                       now: Optional[datetime] = None) -> Reservation:
    """
    Apply changes keyed by model field name in one transaction.

    A new date or time goes through validate_reschedule; a new table_id
    through reassign_table. The bound table may not hold another confirmed
    booking in the resulting slot.
    """
    try:
        moved = "date" in changes or "time" in changes
        if moved:
            reservation.date, reservation.time = validate_reschedule(
                session, reservation, changes.get("date"), changes.get("time"), now
            )
        if "table_id" in changes:
            reassign_table(session, reservation, changes["table_id"])
        if (moved or "table_id" in changes) and reservation.table_id is not None \
                and _table_double_booked(session, reservation):
            raise ConflictError("Table is already booked for this time slot", table_id=reservation.table_id)

        for field in ("name", "email", "phone_number", "party_size", "special_instructions", "status"):
            if field in changes:
                setattr(reservation, field, changes[field])

        reservation.updated_at = datetime.now(timezone.utc)
        session.add(reservation)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(reservation)
    logger.info("Reservation updated", reservation_id=reservation.id, fields=sorted(changes))
    return reservation


def cancel_booking(session: Session, reservation: Reservation, delete: bool = False) -> None:
    """Free the bound table, then soft cancel or delete the reservation"""
    reservation_id = reservation.id
    try:
        if reservation.table_id is not None:
            _release_table(session, reservation.table_id)
        if delete:
            session.delete(reservation)
        else:
            reservation.cancel()
            reservation.table_id = None
            session.add(reservation)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Reservation cancelled", reservation_id=reservation_id, deleted=delete)


# ============================================================================
# Waitlist
# ============================================================================

@dataclass
class WaitlistRequest:
    customer_name: str
    customer_phone: str
    party_size: int
    date: str
    time: str
    customer_email: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass
class WaitlistPlacement:
    entry: WaitlistEntry
    position: int
    estimated_wait_time: int


def estimate_wait_minutes(parties_ahead: int) -> int:
    """Every N parties ahead in the slot add one fixed step of minutes"""
    settings = get_settings()
    steps = math.ceil(parties_ahead / settings.WAITLIST_PARTIES_PER_STEP)
    return steps * settings.WAITLIST_MINUTES_PER_STEP


def count_waiting(session: Session, slot_date: date, slot_time: time) -> int:
    return session.exec(
        select(func.count(WaitlistEntry.id)).where(
            WaitlistEntry.date == slot_date,
            WaitlistEntry.time == slot_time,
            WaitlistEntry.status == WaitlistStatus.WAITING,
        )
    ).one()


def add_to_waitlist(session: Session, request: WaitlistRequest,
                    now: Optional[datetime] = None) -> WaitlistPlacement:
    """Validate the slot, then queue the party with a one-off wait estimate"""
    slot_date, slot_time = validate_slot(request.date, request.time, now)
    check_business_hours(session, slot_date, slot_time)

    waiting = count_waiting(session, slot_date, slot_time)
    estimated = estimate_wait_minutes(waiting)

    entry = WaitlistEntry(
        name=request.customer_name,
        customer_email=request.customer_email,
        phone_number=request.customer_phone,
        party_size=request.party_size,
        date=slot_date,
        time=slot_time,
        special_requests=request.special_requests,
        status=WaitlistStatus.WAITING,
        estimated_wait_time=estimated,
    )
    try:
        session.add(entry)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(entry)

    logger.info("Added to waitlist", entry_id=entry.id, position=waiting + 1, estimated_wait_time=estimated)
    return WaitlistPlacement(entry=entry, position=waiting + 1, estimated_wait_time=estimated)


def waitlist_position(session: Session, entry: WaitlistEntry) -> int:
    """1-based position among waiting parties in the same slot"""
    ahead = session.exec(
        select(func.count(WaitlistEntry.id)).where(
            WaitlistEntry.date == entry.date,
            WaitlistEntry.time == entry.time,
            WaitlistEntry.status == WaitlistStatus.WAITING,
            WaitlistEntry.id < entry.id,
        )
    ).one()
    return ahead + 1


# ============================================================================
# Availability view
# ============================================================================

def _format_slot(value: time) -> str:
    hour = value.hour
    display_hour = hour - 12 if hour > 12 else hour
    suffix = "PM" if hour >= 12 else "AM"
    return f"{display_hour}:{value.minute:02d} {suffix}"


def available_slots(session: Session, slot_date: date, party_size: Optional[int] = None) -> List[dict]:
    """Half-hour slots with the number of tables still bookable in each"""
    slots = []
    current = datetime.combine(slot_date, SLOT_OPEN)
    close = datetime.combine(slot_date, SLOT_CLOSE)
    while current < close:
        slots.append({
            "time": current.strftime("%H:%M"),
            "display": _format_slot(current.time()),
            "available": TABLES_PER_SLOT,
        })
        current += timedelta(minutes=SLOT_MINUTES)

    booked = session.exec(
        select(Reservation.time, func.count(Reservation.id))
        .where(Reservation.date == slot_date, Reservation.status == ReservationStatus.CONFIRMED)
        .group_by(Reservation.time)
    ).all()
    booked_by_time = {booked_time.strftime("%H:%M"): count for booked_time, count in booked}

    for slot in slots:
        slot["available"] = max(0, slot["available"] - booked_by_time.get(slot["time"], 0))

    if party_size:
        tables_needed = math.ceil(party_size / SEATS_PER_TABLE)
        slots = [slot for slot in slots if slot["available"] >= tables_needed]
    return slots
