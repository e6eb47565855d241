"""Slot generation - candidate start times and the availability listing."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from booking_engine.core.clock import minute_of_day, to_business_time
from booking_engine.db.models import BusinessSettings
from booking_engine.services import availability_service, catalog_service, ledger_service
from booking_engine.services.availability_service import OpenWindow
from booking_engine.services.errors import ValidationError
from booking_engine.utils.time_format import format_minutes


logger = logging.getLogger(__name__)


class SlotAvailability(NamedTuple):
    """Candidate start ("HH:MM") and whether it is free."""
    time: str
    available: bool


def generate_slots(
    window: OpenWindow,
    total_duration_minutes: int,
    granularity_minutes: int,
    earliest_start_minute: int | None = None,
) -> list[int]:
    """
    Candidate start minutes for a window.

    Steps from the window start by ``granularity_minutes`` and keeps every
    start whose appointment ends by closing time. Pure; sorted ascending.
    """
    if total_duration_minutes <= 0:
        raise ValidationError("Duration must be positive")
    if granularity_minutes <= 0:
        raise ValidationError("Slot granularity must be positive")
    if not window.is_open:
        return []

    slots = []
    for start in range(window.start_minute, window.end_minute, granularity_minutes):
        if start + total_duration_minutes > window.end_minute:
            break
        if earliest_start_minute is not None and start < earliest_start_minute:
            continue
        slots.append(start)
    return slots


def _earliest_start_minute(
    day: date,
    now: datetime,
    minimum_lead_minutes: int,
) -> tuple[bool, int | None]:
    """
    Earliest bookable minute on ``day`` given the current time and lead.

    Returns (bookable, earliest). Past dates and dates entirely inside the
    lead time are not bookable.
    """
    local_now = to_business_time(now)
    if day < local_now.date():
        return False, None

    earliest = local_now + timedelta(minutes=minimum_lead_minutes)
    if earliest.date() > day:
        return False, None
    if earliest.date() == day:
        return True, minute_of_day(earliest)
    return True, None


def generate_slots_for_date(
    db: Session,
    day: date,
    total_duration_minutes: int,
    now: datetime,
    business_settings: BusinessSettings | None = None,
) -> list[int]:
    """Offerable start minutes for a date, ignoring existing bookings."""
    if total_duration_minutes <= 0:
        raise ValidationError("Duration must be positive")
    business_settings = business_settings or availability_service.get_business_settings(db)

    bookable, earliest = _earliest_start_minute(day, now, business_settings.minimum_lead_minutes)
    if not bookable:
        return []

    window = availability_service.get_open_window(db, day)
    return generate_slots(
        window,
        total_duration_minutes,
        business_settings.slot_granularity_minutes,
        earliest_start_minute=earliest,
    )


def get_available_slots(
    db: Session,
    day: date,
    total_duration_minutes: int,
    now: datetime,
) -> list[int]:
    """Offerable start minutes that are free in the current ledger snapshot."""
    business_settings = availability_service.get_business_settings(db)
    candidates = generate_slots_for_date(db, day, total_duration_minutes, now, business_settings)
    busy = _busy_flags(db, day, candidates, total_duration_minutes, business_settings.buffer_minutes)
    return [start for start, taken in zip(candidates, busy) if not taken]


def get_availability(
    db: Session,
    day: date,
    service_id: UUID,
    add_on_ids: Iterable[UUID],
    now: datetime,
) -> list[SlotAvailability]:
    """Every candidate start for a service booking, flagged free or busy."""
    quote = catalog_service.quote_booking(db, service_id, add_on_ids)
    business_settings = availability_service.get_business_settings(db)
    candidates = generate_slots_for_date(db, day, quote.duration_minutes, now, business_settings)
    busy = _busy_flags(db, day, candidates, quote.duration_minutes, business_settings.buffer_minutes)

    logger.debug(
        "Availability for %s on %s: %s candidates, %s free",
        service_id,
        day.isoformat(),
        len(candidates),
        busy.count(False),
    )
    return [
        SlotAvailability(time=format_minutes(start), available=not taken)
        for start, taken in zip(candidates, busy)
    ]


def _busy_flags(
    db: Session,
    day: date,
    candidates: list[int],
    duration_minutes: int,
    buffer_minutes: int,
) -> list[bool]:
    """One snapshot read of the day's bookings, then an in-memory overlap check per candidate."""
    if not candidates:
        return []
    existing = ledger_service.list_blocking_appointments(db, day)
    return [
        any(
            ledger_service.intervals_conflict(
                start, duration_minutes, appt.start_minute, appt.duration_minutes, buffer_minutes
            )
            for appt in existing
        )
        for start in candidates
    ]
