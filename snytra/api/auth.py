"""
Auth API endpoints - Login and current user
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from datetime import datetime, timezone
import structlog

from snytra.core.auth import create_access_token, verify_password
from snytra.core.database import get_session
from snytra.core.dependencies import get_current_user
from snytra.core.exceptions import ForbiddenError, UnauthorizedError
from snytra.models.user import User, UserRole
from snytra.schemas.token import LoginRequest, TokenResponse
from snytra.schemas.user import UserResponse

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login_user(
    login_data: LoginRequest,
    session: Session = Depends(get_session)
):
    """Exchange email and password for a bearer token"""
    user = session.exec(
        select(User).where(User.email == login_data.email)
    ).first()

    if not user or not verify_password(login_data.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password", email=login_data.email)

    if not user.is_active:
        raise ForbiddenError("User account is inactive", user_id=user.id)

    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    session.commit()

    role = UserRole(user.role).value
    logger.info("User logged in", user_id=user.id, role=role)

    return TokenResponse(
        access_token=create_access_token(user_id=user.id, role=role),
        user_id=user.id,
        role=role,
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current user info"""
    return user
