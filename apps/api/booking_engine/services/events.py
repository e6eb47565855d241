"""Domain events published after appointment state is committed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Union

from booking_engine.db.enums import AppointmentEvent, AppointmentStatus
from booking_engine.schemas.appointment import AppointmentRead


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentCreated:
    appointment: AppointmentRead
    occurred_at: datetime


@dataclass(frozen=True)
class StatusChanged:
    appointment: AppointmentRead
    event: AppointmentEvent
    from_status: AppointmentStatus
    to_status: AppointmentStatus
    occurred_at: datetime
    cancellation_fee: Decimal | None = None
    rescheduled_to: AppointmentRead | None = None


DomainEvent = Union[AppointmentCreated, StatusChanged]
Observer = Callable[[DomainEvent], None]


class EventBus:
    """
    Ordered list of observers called synchronously on publish.

    Observer failures are logged and never reach the publisher: events are
    only published after the change is committed.
    """

    def __init__(self, observers: Iterable[Observer] = ()):
        self._observers: list[Observer] = list(observers)

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def publish(self, event: DomainEvent) -> None:
        for observer in self._observers:
            try:
                observer(event)
            except Exception:
                logger.exception(
                    "Observer %r failed for %s (appointment %s)",
                    observer,
                    type(event).__name__,
                    event.appointment.id,
                )
