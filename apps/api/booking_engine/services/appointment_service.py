"""
Appointment lifecycle - booking, status transitions and reads.

Every status change goes through TRANSITIONS and _apply_transition, a
compare-and-swap update that also writes the status history row.
"""

import logging
import secrets
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, NamedTuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from booking_engine.core.clock import appointment_datetime, to_business_time
from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.enums import (
    LATE_CANCELLATION_REASON,
    AppointmentEvent,
    AppointmentStatus,
)
from booking_engine.db.models import Appointment, AppointmentStatusChange, BusinessSettings
from booking_engine.schemas.appointment import AppointmentRead
from booking_engine.services import availability_service, catalog_service, ledger_service, slot_service
from booking_engine.services.errors import (
    ConflictError,
    DuplicateReferenceError,
    InvalidTransitionError,
    NotFoundError,
    TerminalStateError,
    ValidationError,
)
from booking_engine.services.events import AppointmentCreated, EventBus, StatusChanged
from booking_engine.utils.time_format import parse_time_of_day


logger = logging.getLogger(__name__)

BOOKING_REFERENCE_PREFIX = "LBA"
# No 0/O or 1/I, references are read out over the phone
_REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_REFERENCE_LENGTH = 6
_REFERENCE_ATTEMPTS = 3


# =============================================================================
# Types
# =============================================================================

TRANSITIONS: dict[tuple[AppointmentStatus, AppointmentEvent], AppointmentStatus] = {
    (AppointmentStatus.PENDING, AppointmentEvent.APPROVE): AppointmentStatus.CONFIRMED,
    (AppointmentStatus.PENDING, AppointmentEvent.REJECT): AppointmentStatus.CANCELLED,
    (AppointmentStatus.PENDING, AppointmentEvent.CANCEL): AppointmentStatus.CANCELLED,
    (AppointmentStatus.CONFIRMED, AppointmentEvent.START): AppointmentStatus.IN_PROGRESS,
    (AppointmentStatus.CONFIRMED, AppointmentEvent.CANCEL): AppointmentStatus.CANCELLED,
    (AppointmentStatus.CONFIRMED, AppointmentEvent.MARK_NO_SHOW): AppointmentStatus.NO_SHOW,
    (AppointmentStatus.CONFIRMED, AppointmentEvent.RESCHEDULE): AppointmentStatus.RESCHEDULED,
    (AppointmentStatus.IN_PROGRESS, AppointmentEvent.FINISH): AppointmentStatus.COMPLETED,
}


class TransitionResult(NamedTuple):
    """Appointment after a transition, plus its replacement when rescheduled."""
    appointment: Appointment
    rescheduled_to: Appointment | None = None


# =============================================================================
# Transitions
# =============================================================================

def resolve_transition(status: AppointmentStatus, event: AppointmentEvent) -> AppointmentStatus:
    """
    Target status for an event.

    Raises:
        TerminalStateError: the appointment can no longer change
        InvalidTransitionError: the event does not apply to the current status
    """
    status = AppointmentStatus(status)
    event = AppointmentEvent(event)
    if status.is_terminal:
        raise TerminalStateError(f"Appointment is {status.value} and can no longer change")
    target = TRANSITIONS.get((status, event))
    if target is None:
        raise InvalidTransitionError(f"Cannot {event.value} an appointment that is {status.value}")
    return target


def _apply_transition(
    db: Session,
    appointment: Appointment,
    expected: AppointmentStatus,
    target: AppointmentStatus,
    event: AppointmentEvent,
    now: datetime,
    reason: str | None = None,
    values: dict | None = None,
) -> None:
    """
    Compare-and-swap the status and queue the history row. Does not commit.

    Raises:
        ConflictError: the status changed since it was read
    """
    appointment_id = appointment.id
    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == expected.value)
        .values(status=target.value, **(values or {}))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("Appointment was changed by another request, reload and retry")

    db.add(AppointmentStatusChange(
        appointment_id=appointment_id,
        event=event.value,
        from_status=expected.value,
        to_status=target.value,
        reason=reason,
        changed_at=now,
    ))


def compute_cancellation_fee(
    appointment: Appointment,
    status: AppointmentStatus,
    business_settings: BusinessSettings,
    now: datetime,
) -> Decimal | None:
    """
    Late-cancellation fee, or None.

    Only confirmed appointments cancelled less than the cancellation window
    before their start are charged.
    """
    if AppointmentStatus(status) != AppointmentStatus.CONFIRMED:
        return None
    starts_at = appointment_datetime(appointment.appointment_date, appointment.start_minute)
    seconds_until = (
        starts_at.astimezone(timezone.utc) - to_business_time(now).astimezone(timezone.utc)
    ).total_seconds()
    if seconds_until < business_settings.cancellation_window_hours * 3600:
        return business_settings.cancellation_fee_amount
    return None


# =============================================================================
# Booking
# =============================================================================

def generate_booking_reference() -> str:
    return BOOKING_REFERENCE_PREFIX + "".join(
        secrets.choice(_REFERENCE_ALPHABET) for _ in range(_REFERENCE_LENGTH)
    )


def _parse_start(value: str) -> int:
    try:
        return parse_time_of_day(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _require_offered(
    db: Session,
    day: date,
    start_minute: int,
    duration_minutes: int,
    now: datetime,
    business_settings: BusinessSettings,
) -> None:
    candidates = slot_service.generate_slots_for_date(
        db, day, duration_minutes, now, business_settings
    )
    if start_minute not in candidates:
        raise ValidationError("Requested start time is not offered on this date")


def _reserve_with_reference(db: Session, fields: dict, buffer_minutes: int) -> Appointment:
    """Reserve a new appointment, drawing a fresh reference if one collides. Does not commit."""
    for attempt in range(1, _REFERENCE_ATTEMPTS + 1):
        appointment = Appointment(booking_reference=generate_booking_reference(), **fields)
        try:
            return ledger_service.reserve(db, appointment, buffer_minutes, commit=False)
        except DuplicateReferenceError:
            logger.warning("Booking reference collision (attempt %s of %s)", attempt, _REFERENCE_ATTEMPTS)
    raise ConflictError("Could not allocate a booking reference, please retry")


def create_appointment(
    db: Session,
    *,
    appointment_date: date,
    start_time: str,
    service_id: UUID,
    add_on_ids: Iterable[UUID] = (),
    client,
    notes: str | None = None,
    now: datetime,
    events: EventBus | None = None,
) -> Appointment:
    """
    Book an appointment.

    ``client`` carries client_ref plus optional name/email/phone. The start
    must be one of the offered slots for the date; the slot itself is claimed
    atomically by the ledger.

    Raises:
        ValidationError: missing client, bad catalog selection, start not offered
        SlotUnavailableError: interval already taken
        ConflictError: no unused booking reference could be drawn
    """
    client_ref = (getattr(client, "client_ref", None) or "").strip()
    if not client_ref:
        raise ValidationError("Client is required")

    start_minute = _parse_start(start_time)
    add_on_ids = list(add_on_ids)
    quote = catalog_service.quote_booking(db, service_id, add_on_ids)

    # Read once: one booking, one auto-confirm decision
    business_settings = availability_service.get_business_settings(db)
    _require_offered(db, appointment_date, start_minute, quote.duration_minutes, now, business_settings)

    auto_confirm = business_settings.auto_confirm_bookings
    buffer_minutes = business_settings.buffer_minutes
    status = AppointmentStatus.CONFIRMED if auto_confirm else AppointmentStatus.PENDING

    fields = dict(
        service_id=quote.service.id,
        add_on_ids=[str(add_on.id) for add_on in quote.add_ons],
        client_ref=client_ref,
        client_name=getattr(client, "name", None),
        client_email=getattr(client, "email", None),
        client_phone=getattr(client, "phone", None),
        client_notes=notes,
        appointment_date=appointment_date,
        start_minute=start_minute,
        duration_minutes=quote.duration_minutes,
        price=quote.price,
        status=status.value,
        confirmed_at=now if auto_confirm else None,
    )
    appointment = _reserve_with_reference(db, fields, buffer_minutes)
    db.add(AppointmentStatusChange(
        appointment_id=appointment.id,
        event=AppointmentEvent.CREATE.value,
        from_status=None,
        to_status=status.value,
        changed_at=now,
    ))
    db.commit()
    db.refresh(appointment)

    logger.info(
        "Appointment %s booked for %s at %s (%s)",
        appointment.id,
        appointment_date.isoformat(),
        start_time,
        status.value,
        extra=build_log_context(appointment_id=str(appointment.id)),
    )
    if events:
        events.publish(AppointmentCreated(
            appointment=AppointmentRead.from_model(appointment),
            occurred_at=now,
        ))
    return appointment


def transition_appointment(
    db: Session,
    appointment_id: UUID,
    event: AppointmentEvent,
    *,
    reason: str | None = None,
    new_date: date | None = None,
    new_time: str | None = None,
    now: datetime,
    events: EventBus | None = None,
) -> TransitionResult:
    """
    Apply a lifecycle event.

    Cancelling a confirmed appointment inside the cancellation window sets
    the late-cancellation fee. Rescheduling needs ``new_date`` and
    ``new_time`` and returns the replacement appointment.
    """
    event = AppointmentEvent(event)
    appointment = get_appointment(db, appointment_id)
    current = AppointmentStatus(appointment.status)
    target = resolve_transition(current, event)

    if event == AppointmentEvent.RESCHEDULE:
        return _reschedule(db, appointment, new_date, new_time, reason=reason, now=now, events=events)

    values: dict = {}
    fee = None
    if event == AppointmentEvent.APPROVE:
        values["confirmed_at"] = now
    elif event == AppointmentEvent.FINISH:
        values["completed_at"] = now
    elif event in (AppointmentEvent.CANCEL, AppointmentEvent.REJECT):
        values["cancelled_at"] = now
        values["cancellation_reason"] = reason
        if event == AppointmentEvent.CANCEL:
            business_settings = availability_service.get_business_settings(db)
            fee = compute_cancellation_fee(appointment, current, business_settings, now)
            if fee is not None:
                values["cancellation_fee"] = fee
                values["cancellation_reason"] = LATE_CANCELLATION_REASON

    _apply_transition(db, appointment, current, target, event, now, reason=reason, values=values)
    db.commit()
    db.refresh(appointment)

    logger.info(
        "Appointment %s %s -> %s",
        appointment.id,
        current.value,
        target.value,
        extra=build_log_context(appointment_id=str(appointment.id)),
    )
    if events:
        events.publish(StatusChanged(
            appointment=AppointmentRead.from_model(appointment),
            event=event,
            from_status=current,
            to_status=target,
            occurred_at=now,
            cancellation_fee=fee,
        ))
    return TransitionResult(appointment=appointment)


def _reschedule(
    db: Session,
    appointment: Appointment,
    new_date: date | None,
    new_time: str | None,
    reason: str | None,
    now: datetime,
    events: EventBus | None,
) -> TransitionResult:
    """Retire a confirmed appointment and book its replacement in one transaction."""
    if new_date is None or not new_time:
        raise ValidationError("new_date and new_time are required to reschedule")

    start_minute = _parse_start(new_time)
    business_settings = availability_service.get_business_settings(db)
    _require_offered(db, new_date, start_minute, appointment.duration_minutes, now, business_settings)

    auto_confirm = business_settings.auto_confirm_bookings
    buffer_minutes = business_settings.buffer_minutes
    status = AppointmentStatus.CONFIRMED if auto_confirm else AppointmentStatus.PENDING
    replacement = Appointment(
        booking_reference=generate_booking_reference(),
        service_id=appointment.service_id,
        add_on_ids=list(appointment.add_on_ids or []),
        client_ref=appointment.client_ref,
        client_name=appointment.client_name,
        client_email=appointment.client_email,
        client_phone=appointment.client_phone,
        client_notes=appointment.client_notes,
        appointment_date=new_date,
        start_minute=start_minute,
        duration_minutes=appointment.duration_minutes,
        price=appointment.price,
        payment_status=appointment.payment_status,
        status=status.value,
        confirmed_at=now if auto_confirm else None,
        rescheduled_from_id=appointment.id,
    )
    old_reference = appointment.booking_reference

    # Old slot is released by the status change, so the new interval may overlap it
    _apply_transition(
        db,
        appointment,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.RESCHEDULED,
        AppointmentEvent.RESCHEDULE,
        now,
        reason=reason,
    )
    ledger_service.reserve(db, replacement, buffer_minutes, commit=False)
    db.add(AppointmentStatusChange(
        appointment_id=replacement.id,
        event=AppointmentEvent.CREATE.value,
        from_status=None,
        to_status=status.value,
        reason=f"rescheduled from {old_reference}",
        changed_at=now,
    ))
    db.commit()
    db.refresh(appointment)
    db.refresh(replacement)

    logger.info(
        "Appointment %s rescheduled to %s",
        appointment.id,
        replacement.id,
        extra=build_log_context(appointment_id=str(appointment.id)),
    )
    if events:
        events.publish(StatusChanged(
            appointment=AppointmentRead.from_model(appointment),
            event=AppointmentEvent.RESCHEDULE,
            from_status=AppointmentStatus.CONFIRMED,
            to_status=AppointmentStatus.RESCHEDULED,
            occurred_at=now,
            rescheduled_to=AppointmentRead.from_model(replacement),
        ))
    return TransitionResult(appointment=appointment, rescheduled_to=replacement)


# =============================================================================
# Reads
# =============================================================================

def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def get_by_reference(db: Session, booking_reference: str) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.booking_reference == booking_reference.strip().upper()
    ).first()
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def list_appointments(
    db: Session,
    status: AppointmentStatus | None = None,
    date_start: date | None = None,
    date_end: date | None = None,
    client_ref: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Appointment], int]:
    """List appointments in calendar order with a total count."""
    query = db.query(Appointment)
    if status:
        query = query.filter(Appointment.status == AppointmentStatus(status).value)
    if date_start:
        query = query.filter(Appointment.appointment_date >= date_start)
    if date_end:
        query = query.filter(Appointment.appointment_date <= date_end)
    if client_ref:
        query = query.filter(Appointment.client_ref == client_ref)

    total = query.count()
    appointments = query.order_by(
        Appointment.appointment_date,
        Appointment.start_minute,
    ).offset(offset).limit(limit).all()
    return appointments, total


def get_status_history(db: Session, appointment_id: UUID) -> list[AppointmentStatusChange]:
    get_appointment(db, appointment_id)
    return db.query(AppointmentStatusChange).filter(
        AppointmentStatusChange.appointment_id == appointment_id
    ).order_by(AppointmentStatusChange.id).all()
