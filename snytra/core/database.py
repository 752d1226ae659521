"""
Database configuration and session management
"""

from sqlmodel import Session, create_engine
import structlog

from snytra.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

# Schema is owned by Alembic migrations; nothing here issues DDL
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session
