"""
Test configuration and fixtures.

Provides:
- A fresh file-backed SQLite database per test
- A fixed clock in the business timezone
- Seeded business settings, weekly hours and catalog
- HTTPX AsyncClient wired to the test database, clock and a recording gateway
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Generator
from zoneinfo import ZoneInfo

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session, sessionmaker

from booking_engine.core.deps import get_db
from booking_engine.db.base import Base
from booking_engine.db.session import build_engine
from booking_engine.main import app
from booking_engine.schemas.appointment import ClientIdentity
from booking_engine.services import appointment_service, availability_service, catalog_service
from booking_engine.services.availability_service import WorkingHoursInput
from booking_engine.services.events import EventBus
from booking_engine.services.notification_service import NotificationObserver


TZ = ZoneInfo("America/New_York")

# Saturday 2024-06-01 09:00 local
DEFAULT_NOW = datetime(2024, 6, 1, 9, 0, tzinfo=TZ)

# 2024-06-10 is a Monday
MONDAY = DEFAULT_NOW.date() + timedelta(days=9)


# =============================================================================
# Test Doubles
# =============================================================================

class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now


class RecordingGateway:
    """Notification gateway that remembers what it was asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def notify(self, appointment, notification_type) -> None:
        if self.fail:
            raise RuntimeError("gateway unavailable")
        self.sent.append((appointment.id, notification_type))

    def types_for(self, appointment_id):
        return [t for a, t in self.sent if a == appointment_id]


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine(tmp_path):
    """File-backed SQLite database so several connections can share it."""
    engine = build_engine(f"sqlite:///{tmp_path / 'booking.db'}", lock_timeout_seconds=30)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DEFAULT_NOW)


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def events(gateway) -> EventBus:
    return EventBus([NotificationObserver(gateway)])


# =============================================================================
# Seed Data
# =============================================================================

@pytest.fixture
def business_settings(db):
    """Default policy: 48h window, $35 fee, 15 min buffer, 30 min grid."""
    return availability_service.get_business_settings(db)


@pytest.fixture
def working_hours(db, business_settings):
    """Mon-Fri 09:00-18:00, Sat 10:00-16:00, Sunday closed."""
    days = [WorkingHoursInput(day, True, 9 * 60, 18 * 60) for day in range(5)]
    days.append(WorkingHoursInput(5, True, 10 * 60, 16 * 60))
    return availability_service.set_working_hours(db, days)


@pytest.fixture
def service(db):
    return catalog_service.create_service(
        db,
        name="Classic Full Set",
        duration_minutes=90,
        price=Decimal("120.00"),
    )


@pytest.fixture
def add_on(db, service):
    return catalog_service.create_add_on(
        db,
        name="Lash Bath",
        price=Decimal("15.00"),
        duration_minutes=30,
        compatible_service_ids=[service.id],
    )


@pytest.fixture
def client_identity() -> ClientIdentity:
    return ClientIdentity(client_ref="client-001", name="Jane Client", email="jane@example.com")


@pytest.fixture
def book(db, working_hours, service, client_identity, clock):
    """Book an appointment for the seeded service (Monday 10:00 by default)."""
    def _book(day=MONDAY, start="10:00", add_on_ids=(), events=None, service_id=None):
        return appointment_service.create_appointment(
            db,
            appointment_date=day,
            start_time=start,
            service_id=service_id or service.id,
            add_on_ids=add_on_ids,
            client=client_identity,
            now=clock.now(),
            events=events,
        )
    return _book


@pytest.fixture
def auto_confirm(db, business_settings):
    return availability_service.update_business_settings(db, {"auto_confirm_bookings": True})


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(session_factory, clock, gateway, events) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient for the API, one session per request like production.
    """
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    saved_state = (app.state.clock, app.state.events, app.state.notifier)
    app.dependency_overrides[get_db] = override_get_db
    app.state.clock = clock
    app.state.events = events
    app.state.notifier = gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()
    app.state.clock, app.state.events, app.state.notifier = saved_state
