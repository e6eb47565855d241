"""Appointment schemas - Pydantic models for the booking API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from booking_engine.db.enums import AppointmentEvent
from booking_engine.db.models import Appointment, AppointmentStatusChange
from booking_engine.utils.time_format import format_minutes


TIME_PATTERN = r"^\d{2}:\d{2}$"


# =============================================================================
# Booking
# =============================================================================

class ClientIdentity(BaseModel):
    """Opaque client handle plus a contact snapshot."""
    client_ref: str = Field(..., min_length=1, max_length=255)
    name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment."""
    appointment_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM format")
    service_id: UUID
    add_on_ids: list[UUID] = Field(default_factory=list)
    client: ClientIdentity
    notes: str | None = Field(None, max_length=2000)


class AppointmentCreatedResponse(BaseModel):
    id: UUID
    booking_reference: str
    status: str


class SlotAvailabilityRead(BaseModel):
    """One candidate start time and whether it can still be booked."""
    time: str
    available: bool


# =============================================================================
# Lifecycle
# =============================================================================

class TransitionRequest(BaseModel):
    """Schema for applying a lifecycle event."""
    event: AppointmentEvent
    reason: str | None = Field(None, max_length=500)
    new_date: date | None = None
    new_time: str | None = Field(None, pattern=TIME_PATTERN)


class TransitionResponse(BaseModel):
    id: UUID
    status: str
    cancellation_fee: Decimal | None = None
    rescheduled_to_id: UUID | None = None


# =============================================================================
# Reads
# =============================================================================

class AppointmentRead(BaseModel):
    """Full appointment record."""
    id: UUID
    booking_reference: str
    service_id: UUID
    add_on_ids: list[UUID]
    client_ref: str
    client_name: str | None
    client_email: str | None
    client_phone: str | None
    client_notes: str | None
    appointment_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    price: Decimal
    status: str
    payment_status: str
    cancellation_fee: Decimal | None
    cancellation_reason: str | None
    rescheduled_from_id: UUID | None
    reminder_sent_at: datetime | None
    confirmed_at: datetime | None
    cancelled_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentRead":
        return cls(
            id=appointment.id,
            booking_reference=appointment.booking_reference,
            service_id=appointment.service_id,
            add_on_ids=[UUID(str(add_on_id)) for add_on_id in appointment.add_on_ids or []],
            client_ref=appointment.client_ref,
            client_name=appointment.client_name,
            client_email=appointment.client_email,
            client_phone=appointment.client_phone,
            client_notes=appointment.client_notes,
            appointment_date=appointment.appointment_date,
            start_time=format_minutes(appointment.start_minute),
            end_time=format_minutes(appointment.end_minute),
            duration_minutes=appointment.duration_minutes,
            price=appointment.price,
            status=appointment.status,
            payment_status=appointment.payment_status,
            cancellation_fee=appointment.cancellation_fee,
            cancellation_reason=appointment.cancellation_reason,
            rescheduled_from_id=appointment.rescheduled_from_id,
            reminder_sent_at=appointment.reminder_sent_at,
            confirmed_at=appointment.confirmed_at,
            cancelled_at=appointment.cancelled_at,
            completed_at=appointment.completed_at,
        )


class AppointmentListResponse(BaseModel):
    items: list[AppointmentRead]
    total: int
    page: int
    per_page: int
    pages: int


class StatusChangeRead(BaseModel):
    """One row of an appointment's status history."""
    id: int
    event: str
    from_status: str | None
    to_status: str
    reason: str | None
    changed_at: datetime

    @classmethod
    def from_model(cls, change: AppointmentStatusChange) -> "StatusChangeRead":
        return cls(
            id=change.id,
            event=change.event,
            from_status=change.from_status,
            to_status=change.to_status,
            reason=change.reason,
            changed_at=change.changed_at,
        )
