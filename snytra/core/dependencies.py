"""
Authentication dependencies for FastAPI
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from typing import Optional
import structlog

from snytra.core.auth import decode_access_token, verify_token
from snytra.core.database import get_session
from snytra.core.exceptions import NotFoundError, UnauthorizedError
from snytra.models.user import User

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


def _require_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    return credentials.credentials


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> int:
    """Get current user ID from JWT token"""
    user_id = verify_token(_require_credentials(credentials))
    if user_id is None:
        raise UnauthorizedError()

    logger.debug("User authenticated", user_id=user_id)
    return user_id


async def get_user_role(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Get user role from JWT token"""
    payload = decode_access_token(_require_credentials(credentials))
    if payload is None:
        raise UnauthorizedError()

    return payload.get("role") or ""


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[int]:
    """User ID when a valid token is present, None for anonymous callers"""
    if credentials is None:
        return None
    return verify_token(credentials.credentials)


async def get_optional_role(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Role claim when a valid token is present, None for anonymous callers"""
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None
    return payload.get("role") or ""


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> User:
    """Load the authenticated user row"""
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user
