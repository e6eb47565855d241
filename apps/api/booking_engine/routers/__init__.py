"""API routers."""

from booking_engine.routers.appointments import router as appointments_router
from booking_engine.routers.availability import router as availability_router
from booking_engine.routers.catalog import router as catalog_router
from booking_engine.routers.internal import router as internal_router
from booking_engine.routers.reminders import router as reminders_router
from booking_engine.routers.settings import router as settings_router

__all__ = [
    "appointments_router",
    "availability_router",
    "catalog_router",
    "internal_router",
    "reminders_router",
    "settings_router",
]
