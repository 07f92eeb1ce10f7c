import uuid
from collections.abc import AsyncGenerator, Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from booklink.models import Base
from booklink.models.booking import (
    AppointmentType,
    Booking,
    BookingStatus,
    PaymentStatus,
)

# In-memory SQLite: each test gets a fresh schema, no external services
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed instant the frozen clock starts at
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta

    def set(self, when: datetime) -> None:
        self.current = when


@pytest.fixture
def clock() -> FrozenClock:
    """Frozen clock starting at T0."""
    return FrozenClock()


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with all tables.

    pysqlite's implicit transaction handling breaks SAVEPOINT, so the
    driver is put in autocommit mode and SQLAlchemy emits BEGIN itself.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_booking(
    db_session: AsyncSession, clock: FrozenClock
) -> Callable[..., Any]:
    """Factory that inserts a booking directly, bypassing the service.

    Defaults describe a fresh booking created at the clock's current time
    with a one-hour link. Pass keyword overrides for any column.
    """

    async def _make(**overrides: Any) -> Booking:
        now = clock.now()
        fields: dict[str, Any] = {
            "booking_id": f"booking_{int(now.timestamp() * 1000)}_"
            f"{uuid.uuid4().hex[:9]}",
            "magic_link_id": uuid.uuid4().hex[:12],
            "user_name": "Ada Lovelace",
            "user_phone": "+1 (555) 010-2030",
            "appointment_type": AppointmentType.CONSULTATION,
            "appointment_date": now + timedelta(days=7),
            "booking_details": {"notes": "first visit"},
            "status": BookingStatus.PENDING_CONFIRMATION,
            "payment_status": PaymentStatus.PENDING,
            "created_at": now,
            "magic_link_expires_at": now + timedelta(hours=1),
            "access_count": 0,
        }
        fields.update(overrides)
        booking = Booking(**fields)
        db_session.add(booking)
        # Commit without refreshing so no transaction stays open on the
        # shared connection when a request session begins its own.
        await db_session.commit()
        return booking

    return _make


@pytest_asyncio.fixture
async def client(
    db_engine: AsyncEngine,
    clock: FrozenClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test database and frozen clock.

    Each request gets its own session, committed on success and rolled
    back on error, the same as the production get_db dependency.
    """
    from booklink.core.clock import get_clock
    from booklink.core.database import get_db
    from booklink.main import app

    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Rate limiting is tested separately; disable for other tests to avoid
    flaky failures from rate limit triggers.
    """
    from booklink.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled


@pytest.fixture
def fetch_booking(db_engine: AsyncEngine) -> Callable[..., Any]:
    """Read a booking's current row in a short-lived session.

    Used by API tests to inspect state between requests without holding
    a transaction open on the shared connection.
    """

    async def _fetch(booking_uuid: uuid.UUID) -> Booking | None:
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        async with session_factory() as session:
            return await session.get(Booking, booking_uuid)

    return _fetch
