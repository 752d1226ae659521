"""
Test configuration for pytest
"""

import os

# Test environment variables (must be set before the app reads its settings)
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_123"
os.environ["SMTP_HOST"] = ""

import pytest
from datetime import date, time, timedelta
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from snytra.core.auth import create_access_token
from snytra.core.database import get_session
from snytra.main import app
from snytra.models import ReservationSettings, Table, TableStatus, User, UserRole

# In-memory SQLite shared across connections
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests share the test session"""
    def override_get_session():
        yield db

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(role: str, user_id: int = 1) -> dict:
    token = create_access_token(user_id=user_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers() -> dict:
    return auth_headers("staff")


@pytest.fixture
def manager_headers() -> dict:
    return auth_headers("manager")


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers("admin")


@pytest.fixture
def customer_headers() -> dict:
    return auth_headers("customer")


@pytest.fixture
def make_user(db: Session):
    """Factory for persisted users"""
    counter = {"n": 0}

    def _make_user(role: UserRole = UserRole.CUSTOMER, **fields) -> User:
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            password_hash=fields.pop("password_hash", "not-a-real-hash"),
            name=fields.pop("name", f"User {counter['n']}"),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_table(db: Session):
    """Factory for persisted tables"""
    def _make_table(table_number: str, seats: int, status: TableStatus = TableStatus.AVAILABLE, **fields) -> Table:
        table = Table(table_number=table_number, seats=seats, status=status, **fields)
        db.add(table)
        db.commit()
        db.refresh(table)
        return table

    return _make_table


@pytest.fixture
def open_every_day(db: Session):
    """Reservations accepted 17:00-23:00 on every day of the week"""
    for day in range(7):
        db.add(ReservationSettings(day_of_week=day, open_time=time(17, 0), close_time=time(23, 0)))
    db.commit()


@pytest.fixture
def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def headers_for():
    """Build auth headers for an arbitrary role and user id"""
    return auth_headers
