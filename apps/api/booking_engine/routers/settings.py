"""Settings router - business policy, working hours and blackout dates."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_db
from booking_engine.schemas.settings import (
    BlackoutDateCreate,
    BlackoutDateRead,
    BusinessSettingsRead,
    BusinessSettingsUpdate,
    WorkingHoursDay,
    WorkingHoursSet,
)
from booking_engine.services import availability_service
from booking_engine.services.availability_service import WorkingHoursInput
from booking_engine.services.errors import ValidationError
from booking_engine.utils.time_format import format_minutes, parse_time_of_day

router = APIRouter()


def _hours_to_read(hours) -> WorkingHoursDay:
    """Convert WorkingHours model to read schema."""
    return WorkingHoursDay(
        day_of_week=hours.day_of_week,
        is_open=hours.is_open,
        start_time=format_minutes(hours.start_minute) if hours.is_open else None,
        end_time=format_minutes(hours.end_minute) if hours.is_open else None,
    )


def _hours_from_input(day: WorkingHoursDay) -> WorkingHoursInput:
    if not day.is_open:
        return WorkingHoursInput(day_of_week=day.day_of_week, is_open=False)
    if not day.start_time or not day.end_time:
        raise ValidationError("Open days need start_time and end_time")
    try:
        start_minute = parse_time_of_day(day.start_time)
        end_minute = parse_time_of_day(day.end_time)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return WorkingHoursInput(
        day_of_week=day.day_of_week,
        is_open=True,
        start_minute=start_minute,
        end_minute=end_minute,
    )


# =============================================================================
# Business Settings
# =============================================================================

@router.get("", response_model=BusinessSettingsRead)
def get_settings(db: Session = Depends(get_db)):
    return availability_service.get_business_settings(db)


@router.patch("", response_model=BusinessSettingsRead)
def update_settings(data: BusinessSettingsUpdate, db: Session = Depends(get_db)):
    return availability_service.update_business_settings(db, data.model_dump(exclude_unset=True))


# =============================================================================
# Working Hours
# =============================================================================

@router.get("/working-hours", response_model=list[WorkingHoursDay])
def list_working_hours(db: Session = Depends(get_db)):
    return [_hours_to_read(h) for h in availability_service.list_working_hours(db)]


@router.put("/working-hours", response_model=list[WorkingHoursDay])
def set_working_hours(data: WorkingHoursSet, db: Session = Depends(get_db)):
    """Replace the weekly schedule. Days not listed are closed."""
    days = [_hours_from_input(day) for day in data.days]
    return [_hours_to_read(h) for h in availability_service.set_working_hours(db, days)]


# =============================================================================
# Blackout Dates
# =============================================================================

@router.get("/blackout-dates", response_model=list[BlackoutDateRead])
def list_blackout_dates(
    date_start: date | None = Query(None),
    date_end: date | None = Query(None),
    db: Session = Depends(get_db),
):
    return availability_service.list_blackout_dates(db, date_start=date_start, date_end=date_end)


@router.post("/blackout-dates", response_model=BlackoutDateRead, status_code=201)
def add_blackout_date(data: BlackoutDateCreate, db: Session = Depends(get_db)):
    return availability_service.add_blackout_date(
        db,
        blackout_date=data.blackout_date,
        reason=data.reason,
        blackout_type=data.blackout_type,
    )


@router.delete("/blackout-dates/{blackout_id}", status_code=204)
def remove_blackout_date(blackout_id: UUID, db: Session = Depends(get_db)):
    availability_service.remove_blackout_date(db, blackout_id)
