import os
from collections.abc import AsyncGenerator, Callable
from datetime import date, time, timedelta
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# The suite always runs against throwaway SQLite files, never a configured server
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["PROVIDER_LOCK_BACKEND"] = "local"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
load_dotenv()

from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from clinicbook.core.locks import ProviderLockManager, get_lock_manager
from clinicbook.core.security import create_access_token
from clinicbook.database import get_db
from clinicbook.main import app
from clinicbook.models import metadata, patients, providers
from clinicbook.schemas.bookings import ActorRole, Booking, BookingEvent, Identity
from clinicbook.schemas.scheduling import (
    BreakWindowCreate,
    DayOfWeek,
    DaySchedule,
    ScheduleSettings,
    WeeklyScheduleUpdate,
)
from clinicbook.services.booking_coordinator import BookingCoordinator
from clinicbook.services.notification_service import NotificationDispatcher, get_dispatcher
from clinicbook.services.schedule_service import ScheduleService

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)


class RecordingNotifier:
    """Notifier that records events instead of pushing them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events: list[tuple[UUID, BookingEvent]] = []

    async def notify(self, booking: Booking, event: BookingEvent) -> None:
        if self.fail:
            raise RuntimeError("push gateway unavailable")
        self.events.append((booking.id, event))


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a fresh SQLite file with all tables created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'clinicbook_test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


async def _insert_provider(db: AsyncSession, name: str) -> dict:
    provider_id = uuid4()
    values = {
        "id": provider_id,
        "full_name": name,
        "email": f"{provider_id.hex[:8]}@clinic.example.com",
        "specialization": "General Practice",
        "is_active": True,
    }
    await db.execute(insert(providers).values(**values))
    await db.commit()
    return values


async def _insert_patient(db: AsyncSession, name: str) -> dict:
    patient_id = uuid4()
    values = {
        "id": patient_id,
        "full_name": name,
        "email": f"{patient_id.hex[:8]}@example.com",
        "phone": "+1234567890",
        "is_active": True,
    }
    await db.execute(insert(patients).values(**values))
    await db.commit()
    return values


@pytest_asyncio.fixture
async def provider(db_session: AsyncSession) -> dict:
    """Create a test provider in the database."""
    return await _insert_provider(db_session, "Dr. Jane Smith")


@pytest_asyncio.fixture
async def other_provider(db_session: AsyncSession) -> dict:
    return await _insert_provider(db_session, "Dr. Alan Grant")


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession) -> dict:
    """Create a test patient in the database."""
    return await _insert_patient(db_session, "John Doe")


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict:
    return await _insert_patient(db_session, "Mary Major")


@pytest.fixture
def provider_identity(provider: dict) -> Identity:
    return Identity(actor_id=provider["id"], role=ActorRole.PROVIDER)


@pytest.fixture
def patient_identity(patient: dict) -> Identity:
    return Identity(actor_id=patient["id"], role=ActorRole.PATIENT)


@pytest_asyncio.fixture
async def monday_schedule(db_session: AsyncSession, provider: dict) -> dict:
    """MONDAY 09:00-12:00, 30 minute slots, no buffer, UTC, with a Tea break at 10:00."""
    service = ScheduleService(db_session)
    await service.update_settings(
        provider["id"],
        ScheduleSettings(slot_duration_minutes=30, buffer_minutes=0, timezone="UTC"),
    )
    await service.update_weekly_schedule(
        provider["id"],
        WeeklyScheduleUpdate(
            schedule={
                DayOfWeek.MONDAY: DaySchedule(
                    available=True, start_time=time(9, 0), end_time=time(12, 0)
                )
            }
        ),
    )
    await service.add_break(
        provider["id"],
        BreakWindowCreate(
            name="Tea", day_of_week="MONDAY", start_time=time(10, 0), end_time=time(10, 15)
        ),
    )
    return provider


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


@pytest.fixture
def lock_manager() -> ProviderLockManager:
    return ProviderLockManager()


@pytest.fixture
def make_coordinator(
    session_factory: async_sessionmaker[AsyncSession],
    lock_manager: ProviderLockManager,
    dispatcher: NotificationDispatcher,
) -> Callable[[AsyncSession], BookingCoordinator]:
    """Build coordinators sharing one lock manager, one per session."""

    def _make(session: AsyncSession) -> BookingCoordinator:
        return BookingCoordinator(session, lock_manager, dispatcher)

    return _make


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    lock_manager: ProviderLockManager,
    dispatcher: NotificationDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_manager] = lambda: lock_manager
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    await dispatcher.drain()
    app.dependency_overrides.clear()


def make_headers(actor_id: UUID, role: str) -> dict:
    """Authentication headers for an actor."""
    token = create_access_token(
        data={"sub": str(actor_id), "role": role},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def provider_headers(provider: dict) -> dict:
    return make_headers(provider["id"], "provider")


@pytest.fixture
def patient_headers(patient: dict) -> dict:
    return make_headers(patient["id"], "patient")


@pytest.fixture
def headers_for() -> Callable[[UUID, str], dict]:
    return make_headers


@pytest.fixture
def failing_dispatcher() -> NotificationDispatcher:
    """Dispatcher whose every delivery raises."""
    return NotificationDispatcher(RecordingNotifier(fail=True))
