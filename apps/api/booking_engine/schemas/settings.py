"""Business settings, working hours and blackout date schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from booking_engine.db.enums import BlackoutType


class BusinessSettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_name: str
    cancellation_window_hours: int
    cancellation_fee_amount: Decimal
    buffer_minutes: int
    slot_granularity_minutes: int
    minimum_lead_minutes: int
    reminder_hours: int
    reminders_enabled: bool
    auto_confirm_bookings: bool


class BusinessSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    business_name: str | None = Field(None, min_length=1, max_length=255)
    cancellation_window_hours: int | None = Field(None, ge=0, le=720)
    cancellation_fee_amount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    buffer_minutes: int | None = Field(None, ge=0, le=240)
    slot_granularity_minutes: int | None = Field(None, ge=5, le=240)
    minimum_lead_minutes: int | None = Field(None, ge=0, le=10080)
    reminder_hours: int | None = Field(None, ge=0, le=168)
    reminders_enabled: bool | None = None
    auto_confirm_bookings: bool | None = None


class WorkingHoursDay(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="Monday=0, Sunday=6")
    is_open: bool
    start_time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$", description="HH:MM format")
    end_time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$", description="HH:MM format")


class WorkingHoursSet(BaseModel):
    """Replaces the whole week."""
    days: list[WorkingHoursDay] = Field(..., max_length=7)


class BlackoutDateCreate(BaseModel):
    blackout_date: date
    reason: str = Field(..., min_length=1, max_length=255)
    blackout_type: BlackoutType = BlackoutType.UNAVAILABLE


class BlackoutDateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    blackout_date: date
    reason: str
    blackout_type: str
    created_at: datetime
