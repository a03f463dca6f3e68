"""
Pytest fixtures for the test database, engine components and HTTP client.

Each test gets a fresh database: a SQLite file under tmp_path by default,
or whatever TEST_DATABASE_URL points at (e.g. a throwaway PostgreSQL DB).
"""

import datetime as dt
import os
from typing import AsyncGenerator

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autocare.api.deps import get_allocator, get_dispatcher, get_lifecycle
from autocare.core.config import Settings
from autocare.db.base import Base
from autocare.db.session import create_engine, create_session_factory, get_db
from autocare.main import app
from autocare.models import Booking, BookingStatusHistory, Profile, ServiceType, TimeSlot, Vehicle
from autocare.schemas.booking import BookingDraft
from autocare.schemas.notification import DispatchResult
from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.notification_dispatcher import NotificationDispatcher
from autocare.services.slot_allocator import SlotAllocator

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher with no channels that remembers every notify() call."""

    def __init__(self):
        super().__init__(channels=[])
        self.calls: list[tuple[int, str]] = []

    async def notify(self, booking: Booking, new_status: str) -> DispatchResult:
        self.calls.append((booking.id, new_status))
        return await super().notify(booking, new_status)


@pytest.fixture
def settings() -> Settings:
    return Settings(REDIS_ENABLED=False, MAX_RETRY_ATTEMPTS=5)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables, hand out a session factory, then drop tables."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'autocare_test.db'}"
    engine = create_engine(url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def allocator(session_factory, settings) -> SlotAllocator:
    return SlotAllocator(session_factory, settings)


@pytest_asyncio.fixture
async def lifecycle(session_factory, allocator, dispatcher, settings) -> AsyncGenerator[BookingLifecycle, None]:
    lifecycle = BookingLifecycle(session_factory, allocator, dispatcher, settings)
    yield lifecycle
    await lifecycle.drain()


@pytest_asyncio.fixture
async def customer(session_factory) -> Profile:
    async with session_factory() as session:
        profile = Profile(full_name="Jane Driver", phone="+15550102030", email="jane@example.com")
        session.add(profile)
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def other_customer(session_factory) -> Profile:
    async with session_factory() as session:
        profile = Profile(full_name="Sam Rider", phone=None, email="sam@example.com")
        session.add(profile)
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def staff(session_factory) -> Profile:
    async with session_factory() as session:
        profile = Profile(full_name="Alex Mechanic", email="alex@example.com", is_staff=True)
        session.add(profile)
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def car(session_factory, customer) -> Vehicle:
    async with session_factory() as session:
        vehicle = Vehicle(
            user_id=customer.id,
            vehicle_type="car",
            make="Toyota",
            model="Corolla",
            year=2019,
            registration_number="KA01AB1234",
        )
        session.add(vehicle)
        await session.commit()
        return vehicle


@pytest_asyncio.fixture
async def oil_change(session_factory) -> ServiceType:
    async with session_factory() as session:
        service = ServiceType(
            name="Oil Change",
            description="Engine oil and filter",
            vehicle_type="both",
            duration_minutes=45,
            price=49.99,
        )
        session.add(service)
        await session.commit()
        return service


@pytest_asyncio.fixture
async def bike_tune_up(session_factory) -> ServiceType:
    async with session_factory() as session:
        service = ServiceType(name="Chain Tune-Up", vehicle_type="bike", duration_minutes=30, price=19.0)
        session.add(service)
        await session.commit()
        return service


async def make_slot(session_factory, capacity: int = 2, booked_count: int = 0, active: bool = True) -> TimeSlot:
    async with session_factory() as session:
        slot = TimeSlot(
            date=dt.date.today() + dt.timedelta(days=1),
            start_time=dt.time(9, 0),
            end_time=dt.time(10, 0),
            capacity=capacity,
            booked_count=booked_count,
            active=active,
        )
        session.add(slot)
        await session.commit()
        return slot


async def fetch_slot(session_factory, slot_id: int) -> TimeSlot:
    async with session_factory() as session:
        return await session.get(TimeSlot, slot_id)


async def fetch_booking(session_factory, booking_id: int) -> Booking:
    async with session_factory() as session:
        return await session.get(Booking, booking_id)


async def fetch_history(session_factory, booking_id: int) -> list[BookingStatusHistory]:
    async with session_factory() as session:
        result = await session.execute(
            select(BookingStatusHistory)
            .where(BookingStatusHistory.booking_id == booking_id)
            .order_by(BookingStatusHistory.created_at, BookingStatusHistory.id)
        )
        return list(result.scalars().all())


@pytest_asyncio.fixture
async def slot(session_factory) -> TimeSlot:
    """A slot with room for two bookings."""
    return await make_slot(session_factory, capacity=2)


@pytest.fixture
def draft(customer, car, oil_change) -> BookingDraft:
    return BookingDraft(
        user_id=customer.id,
        vehicle_id=car.id,
        service_type_id=oil_change.id,
        notes="Strange noise when braking",
    )


@pytest_asyncio.fixture
async def booking(allocator, slot, draft) -> Booking:
    """A pending booking holding one place on `slot`."""
    return await allocator.reserve(slot.id, draft)


@pytest_asyncio.fixture
async def client(session_factory, allocator, lifecycle, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test database and components."""

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_allocator] = lambda: allocator
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
