"""Pydantic schemas for API request/response models."""

from booking_engine.schemas.appointment import (
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentListResponse,
    AppointmentRead,
    ClientIdentity,
    SlotAvailabilityRead,
    StatusChangeRead,
    TransitionRequest,
    TransitionResponse,
)
from booking_engine.schemas.catalog import (
    AddOnCreate,
    AddOnRead,
    AddOnUpdate,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from booking_engine.schemas.settings import (
    BlackoutDateCreate,
    BlackoutDateRead,
    BusinessSettingsRead,
    BusinessSettingsUpdate,
    WorkingHoursDay,
    WorkingHoursSet,
)

__all__ = [
    # Appointments
    "AppointmentCreate",
    "AppointmentCreatedResponse",
    "AppointmentListResponse",
    "AppointmentRead",
    "ClientIdentity",
    "SlotAvailabilityRead",
    "StatusChangeRead",
    "TransitionRequest",
    "TransitionResponse",
    # Catalog
    "AddOnCreate",
    "AddOnRead",
    "AddOnUpdate",
    "ServiceCreate",
    "ServiceRead",
    "ServiceUpdate",
    # Settings
    "BlackoutDateCreate",
    "BlackoutDateRead",
    "BusinessSettingsRead",
    "BusinessSettingsUpdate",
    "WorkingHoursDay",
    "WorkingHoursSet",
]
