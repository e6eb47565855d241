"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from booking_engine.services import availability_service
from booking_engine.services import catalog_service
from booking_engine.services import ledger_service
from booking_engine.services import slot_service
from booking_engine.services import appointment_service
from booking_engine.services import reminder_service

__all__ = [
    "availability_service",
    "catalog_service",
    "ledger_service",
    "slot_service",
    "appointment_service",
    "reminder_service",
]
