"""Appointments router - booking, lifecycle transitions and lookups."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.clock import Clock
from booking_engine.core.deps import get_clock, get_db, get_event_bus
from booking_engine.db.enums import AppointmentStatus
from booking_engine.schemas.appointment import (
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentListResponse,
    AppointmentRead,
    StatusChangeRead,
    TransitionRequest,
    TransitionResponse,
)
from booking_engine.services import appointment_service
from booking_engine.services.events import EventBus
from booking_engine.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.post("", response_model=AppointmentCreatedResponse, status_code=201)
def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    events: EventBus = Depends(get_event_bus),
):
    """
    Book an appointment.

    Pending until approved, unless the business auto-confirms bookings.
    """
    appointment = appointment_service.create_appointment(
        db,
        appointment_date=data.appointment_date,
        start_time=data.start_time,
        service_id=data.service_id,
        add_on_ids=data.add_on_ids,
        client=data.client,
        notes=data.notes,
        now=clock.now(),
        events=events,
    )
    return AppointmentCreatedResponse(
        id=appointment.id,
        booking_reference=appointment.booking_reference,
        status=appointment.status,
    )


@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    status: AppointmentStatus | None = Query(None),
    date_start: date | None = Query(None),
    date_end: date | None = Query(None),
    client_ref: str | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    appointments, total = appointment_service.list_appointments(
        db,
        status=status,
        date_start=date_start,
        date_end=date_end,
        client_ref=client_ref,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return AppointmentListResponse(
        items=[AppointmentRead.from_model(a) for a in appointments],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.page_count(total),
    )


@router.get("/by-reference/{booking_reference}", response_model=AppointmentRead)
def get_appointment_by_reference(booking_reference: str, db: Session = Depends(get_db)):
    return AppointmentRead.from_model(appointment_service.get_by_reference(db, booking_reference))


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(appointment_id: UUID, db: Session = Depends(get_db)):
    return AppointmentRead.from_model(appointment_service.get_appointment(db, appointment_id))


@router.get("/{appointment_id}/history", response_model=list[StatusChangeRead])
def get_appointment_history(appointment_id: UUID, db: Session = Depends(get_db)):
    changes = appointment_service.get_status_history(db, appointment_id)
    return [StatusChangeRead.from_model(change) for change in changes]


@router.post("/{appointment_id}/transitions", response_model=TransitionResponse)
def transition_appointment(
    appointment_id: UUID,
    data: TransitionRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    events: EventBus = Depends(get_event_bus),
):
    """
    Apply a lifecycle event (approve, reject, start, finish, cancel,
    mark_no_show, reschedule).
    """
    result = appointment_service.transition_appointment(
        db,
        appointment_id,
        data.event,
        reason=data.reason,
        new_date=data.new_date,
        new_time=data.new_time,
        now=clock.now(),
        events=events,
    )
    return TransitionResponse(
        id=result.appointment.id,
        status=result.appointment.status,
        cancellation_fee=result.appointment.cancellation_fee,
        rescheduled_to_id=result.rescheduled_to.id if result.rescheduled_to else None,
    )
