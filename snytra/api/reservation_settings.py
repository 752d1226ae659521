"""
Reservation settings (opening hours) API endpoints
"""

from fastapi import APIRouter, Depends, Path
from sqlmodel import Session, select
from datetime import datetime, timezone
import structlog

from snytra.core.database import get_session
from snytra.core.permissions import Permission, require_permission
from snytra.models.reservation_settings import ReservationSettings
from snytra.schemas.reservation_settings import ReservationSettingsRead, ReservationSettingsUpdate

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("", response_model=list[ReservationSettingsRead])
def list_settings(session: Session = Depends(get_session)):
    """Opening hours for each configured day, Sunday first"""
    return session.exec(select(ReservationSettings).order_by(ReservationSettings.day_of_week)).all()


@router.put(
    "/{day_of_week}",
    response_model=ReservationSettingsRead,
    dependencies=[Depends(require_permission(Permission.SETTINGS_EDIT))],
)
def upsert_settings(
    settings_data: ReservationSettingsUpdate,
    day_of_week: int = Path(..., ge=0, le=6),
    session: Session = Depends(get_session)
):
    """Create or replace the window for one day (0 = Sunday)"""
    settings = session.exec(
        select(ReservationSettings).where(ReservationSettings.day_of_week == day_of_week)
    ).first()

    if settings is None:
        settings = ReservationSettings(day_of_week=day_of_week, **settings_data.model_dump())
    else:
        for key, value in settings_data.model_dump().items():
            setattr(settings, key, value)
    settings.updated_at = datetime.now(timezone.utc)

    session.add(settings)
    session.commit()
    session.refresh(settings)

    logger.info("Reservation settings saved", day_of_week=day_of_week, is_active=settings.is_active)
    return settings
