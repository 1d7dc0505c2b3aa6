"""Shared test fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, datetime
from decimal import Decimal
import uuid

from app.database import Base, get_db as database_get_db
from app.dependencies import get_db as dependencies_get_db
from app.main import app
from app.models.user import User
from app.models.category import Category
from app.models.expense import TransactionType
from app.models.recurring import RecurringTransaction, Frequency
from app.notifications import Notifier, NotificationResult
from app.services.scheduler_service import SchedulerConfig, SchedulerService

FIXED_NOW = datetime(2024, 2, 1, 6, 0)


class RecordingNotifier(Notifier):
    """Notifier that keeps every notification in memory."""

    def __init__(self):
        self.sent = []

    async def notify(self, kind, payload):
        self.sent.append((kind, payload))
        return NotificationResult(success=True)

    def kinds(self):
        return [kind for kind, _ in self.sent]


@pytest.fixture(scope="function")
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Session for arranging and asserting test data."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def scheduler(session_factory, notifier):
    """Scheduler wired to the test database with a frozen clock."""
    return SchedulerService(
        SchedulerConfig(),
        session_factory,
        notifier=notifier,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture(scope="function")
def client(db_session, scheduler):
    """Create a test client with database and scheduler overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Override both get_db functions (app.database and app.dependencies)
    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[dependencies_get_db] = override_get_db
    with TestClient(app) as test_client:
        app.state.scheduler = scheduler
        yield test_client
        scheduler.stop()
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user(db_session):
    """Create a sample user."""
    user = User(
        id=str(uuid.uuid4()),
        email="jane@example.com",
        first_name="Jane",
        last_name="Doe",
        monthly_budget=Decimal("1000.00"),
        monthly_goal=Decimal("500.00"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    """Create a second user."""
    user = User(
        id=str(uuid.uuid4()),
        email="sam@example.com",
        first_name="Sam",
        last_name="Roe",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(sample_user):
    return {"X-User-Id": sample_user.id}


@pytest.fixture
def sample_category(db_session):
    """Create a shared default category."""
    category = Category(
        id=str(uuid.uuid4()),
        name="Bills & Utilities",
        color="#10b981",
        icon="receipt",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_recurring(db_session, sample_user):
    """Factory for recurring transactions stored directly in the database."""
    def _make(**overrides):
        start_date = overrides.pop("start_date", date(2024, 1, 31))
        fields = {
            "id": str(uuid.uuid4()),
            "user_id": sample_user.id,
            "type": TransactionType.expense,
            "amount": Decimal("50.00"),
            "description": "Internet",
            "frequency": Frequency.monthly,
            "start_date": start_date,
            "next_due_date": start_date,
            "current_occurrences": 0,
            "is_active": True,
        }
        fields.update(overrides)
        recurring = RecurringTransaction(**fields)
        db_session.add(recurring)
        db_session.commit()
        db_session.refresh(recurring)
        return recurring

    return _make
