"""
Booking ledger - buffered overlap checks and atomic slot reservation.

Serialization happens in the database, never in process memory: every
reservation first bumps the ``ledger_days`` row for its date. On PostgreSQL
that takes a row lock held until commit; on SQLite the first write of the
transaction takes the database write lock. Concurrent reservations for the
same date therefore run their overlap check one at a time.
"""

import logging
from datetime import date
from typing import Iterable, NamedTuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.enums import BLOCKING_STATUSES
from booking_engine.db.models import Appointment, LedgerDay
from booking_engine.services.errors import ConflictError, DuplicateReferenceError, SlotUnavailableError


logger = logging.getLogger(__name__)

_BLOCKING_VALUES = [status.value for status in BLOCKING_STATUSES]


class BufferedInterval(NamedTuple):
    """Occupied range of an existing appointment: [start, start + duration + buffer)."""
    start_minute: int
    end_minute: int

    @classmethod
    def of(cls, start_minute: int, duration_minutes: int, buffer_minutes: int) -> "BufferedInterval":
        return cls(start_minute, start_minute + duration_minutes + buffer_minutes)


def intervals_conflict(
    start_minute: int,
    duration_minutes: int,
    existing_start_minute: int,
    existing_duration_minutes: int,
    buffer_minutes: int,
) -> bool:
    """
    Whether a new interval overlaps an existing appointment plus its buffer.

    Half-open: an interval ending exactly where the other begins is free.
    The buffer trails the existing appointment only.
    """
    occupied = BufferedInterval.of(existing_start_minute, existing_duration_minutes, buffer_minutes)
    return occupied.start_minute < start_minute + duration_minutes and start_minute < occupied.end_minute


# =============================================================================
# Snapshot Reads
# =============================================================================

def list_blocking_appointments(db: Session, day: date) -> list[Appointment]:
    """Appointments occupying time on a date, ordered by start."""
    return (
        db.query(Appointment)
        .filter(
            Appointment.appointment_date == day,
            Appointment.status.in_(_BLOCKING_VALUES),
        )
        .order_by(Appointment.start_minute)
        .all()
    )


def is_free(
    db: Session,
    day: date,
    start_minute: int,
    duration_minutes: int,
    buffer_minutes: int,
    exclude_ids: Iterable[UUID] = (),
) -> bool:
    """Whether the interval is free right now. Advisory only; reserve() re-checks."""
    return _find_conflict(db, day, start_minute, duration_minutes, buffer_minutes, exclude_ids) is None


def _find_conflict(
    db: Session,
    day: date,
    start_minute: int,
    duration_minutes: int,
    buffer_minutes: int,
    exclude_ids: Iterable[UUID] = (),
) -> Appointment | None:
    query = db.query(Appointment).filter(
        Appointment.appointment_date == day,
        Appointment.status.in_(_BLOCKING_VALUES),
        Appointment.start_minute < start_minute + duration_minutes,
        Appointment.start_minute + Appointment.duration_minutes + buffer_minutes > start_minute,
    )
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        query = query.filter(Appointment.id.notin_(exclude_ids))
    return query.order_by(Appointment.start_minute).first()


# =============================================================================
# Reservation
# =============================================================================

def _lock_day(db: Session, day: date) -> None:
    """Create the ledger row for a date if needed and write-lock it."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(LedgerDay).values(day=day, version=0).on_conflict_do_nothing()
        db.execute(stmt)
    elif dialect == "sqlite":
        stmt = sqlite.insert(LedgerDay).values(day=day, version=0).on_conflict_do_nothing()
        db.execute(stmt)
    elif db.get(LedgerDay, day) is None:
        db.add(LedgerDay(day=day, version=0))
        db.flush()

    db.execute(
        update(LedgerDay)
        .where(LedgerDay.day == day)
        .values(version=LedgerDay.version + 1)
        .execution_options(synchronize_session=False)
    )


def reserve(
    db: Session,
    draft: Appointment,
    buffer_minutes: int,
    commit: bool = True,
) -> Appointment:
    """
    Atomically insert an appointment if its interval is still free.

    Lock, check and insert run in one transaction. With ``commit=False`` the
    caller owns the transaction and must commit (work already done in it is
    rolled back together with a failed reservation).

    Raises:
        SlotUnavailableError: the interval overlaps a blocking appointment
        DuplicateReferenceError: the booking reference is already taken
        ConflictError: the insert hit another uniqueness constraint
    """
    day = draft.appointment_date
    _lock_day(db, day)

    conflict = _find_conflict(db, day, draft.start_minute, draft.duration_minutes, buffer_minutes)
    if conflict is not None:
        conflict_id = str(conflict.id)
        db.rollback()
        logger.info(
            "Slot %s+%s on %s overlaps appointment %s",
            draft.start_minute,
            draft.duration_minutes,
            day.isoformat(),
            conflict_id,
            extra=build_log_context(appointment_id=conflict_id),
        )
        raise SlotUnavailableError("Requested time is no longer available")

    db.add(draft)
    try:
        db.flush()
        if commit:
            db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Reservation on %s rejected by constraint: %s", day.isoformat(), exc.orig)
        if "booking_reference" in str(exc.orig):
            raise DuplicateReferenceError("Booking reference already in use") from exc
        raise ConflictError("Requested time conflicts with an existing booking") from exc

    if commit:
        db.refresh(draft)
    return draft
