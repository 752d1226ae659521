"""
Feature access API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import Optional
import structlog

from snytra.core.database import get_session
from snytra.core.dependencies import get_current_user
from snytra.core.exceptions import ValidationError
from snytra.models.user import User
from snytra.services.entitlements import feature_access_map, verify_feature_access

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("")
def check_feature_access(
    feature: Optional[str] = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Whether the signed-in user's plan includes a feature"""
    if not feature:
        raise ValidationError("Feature parameter is required")

    decision = verify_feature_access(session, user, feature)
    return {
        "success": True,
        "hasAccess": decision.has_access,
        "reason": decision.reason,
    }


@router.get("/all")
def list_feature_access(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Access decision for every catalog feature"""
    return {"success": True, "features": feature_access_map(session, user)}
