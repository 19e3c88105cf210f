"""Pytest configuration and fixtures."""

from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

EMPLOYEES = [
    # id, name, department, role, manager_id
    ("alice", "Alice Ortega", "ops", "employee", "mike"),
    ("bob", "Bob Lindqvist", "ops", "employee", "mike"),
    ("carol", "Carol Mensah", "sales", "employee", "sam"),
    ("mike", "Mike Draper", "ops", "manager", None),
    ("sam", "Sam Whitfield", "sales", "manager", None),
    ("hannah", "Hannah Brandt", "people", "hr", None),
    ("ada", "Ada Kowalski", None, "admin", None),
]

ASSIGNMENTS = [
    # employee_id, work_date, shift_id
    ("alice", date(2025, 3, 1), "early"),
    ("bob", date(2025, 3, 1), "late"),
    ("carol", date(2025, 3, 2), "night"),
    ("bob", date(2025, 3, 3), "early"),
]

START = datetime(2025, 2, 20, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    """Notifier that keeps every message in memory."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def notify(self, user_id: str, message: str) -> None:
        self.sent.append((user_id, message))

    def recipients(self) -> list[str]:
        return [user_id for user_id, _ in self.sent]


async def init_database(engine) -> None:
    """Create all tables and seed the directory and schedule."""
    from app.models import Base, Employee, ScheduleAssignment

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        for emp_id, name, department, role, manager_id in EMPLOYEES:
            session.add(
                Employee(
                    id=emp_id,
                    name=name,
                    email=f"{emp_id}@example.com",
                    department=department,
                    role=role,
                    manager_id=manager_id,
                )
            )
        for employee_id, work_date, shift_id in ASSIGNMENTS:
            session.add(
                ScheduleAssignment(
                    employee_id=employee_id, work_date=work_date, shift_id=shift_id
                )
            )
        await session.commit()


def make_engine(tmp_path):
    """File-backed SQLite engine; NullPool keeps connections loop-independent."""
    return create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'shiftswap.db'}",
        poolclass=NullPool,
    )


@pytest.fixture(scope="session")
def app():
    """Create FastAPI application for testing."""
    from app.main import create_app

    return create_app()


@pytest.fixture(scope="session")
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from app.core.config import Settings

    return Settings(environment="testing")


@pytest.fixture
def clock():
    """Clock pinned to the test start time."""
    return FakeClock()


@pytest.fixture
def notifier():
    """Notifier recording sent messages."""
    return RecordingNotifier()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a seeded SQLite database."""
    engine = make_engine(tmp_path)
    await init_database(engine)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def swap_service(session_factory, notifier, settings, clock):
    """Swap service wired to the test database."""
    from app.services.swap import SwapService

    return SwapService(
        session_factory=session_factory,
        notifier=notifier,
        settings=settings,
        clock=clock,
    )
