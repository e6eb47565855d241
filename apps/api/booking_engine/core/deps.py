"""FastAPI dependencies for database access, the clock and domain events."""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from booking_engine.core.clock import Clock
from booking_engine.db.session import SessionLocal
from booking_engine.services.events import EventBus
from booking_engine.services.notification_service import NotificationGateway


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock(request: Request) -> Clock:
    """Clock configured on the application (replaced in tests)."""
    return request.app.state.clock


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.events


def get_notification_gateway(request: Request) -> NotificationGateway:
    return request.app.state.notifier
