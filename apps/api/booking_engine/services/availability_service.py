"""
Availability calendar - open window per date, plus the business settings,
weekly working hours and blackout dates that define it.
"""

import logging
from datetime import date
from typing import Collection, Iterable, NamedTuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_engine.core.config import settings
from booking_engine.db.enums import BlackoutType
from booking_engine.db.models import BlackoutDate, BusinessSettings, WorkingHours
from booking_engine.services.errors import NotFoundError, ValidationError
from booking_engine.utils import holiday_calendar
from booking_engine.utils.time_format import MINUTES_PER_DAY


logger = logging.getLogger(__name__)

BUSINESS_SETTINGS_ID = 1

# Settings fields that may be changed through update_business_settings
_SETTINGS_FIELDS = (
    "business_name",
    "cancellation_window_hours",
    "cancellation_fee_amount",
    "buffer_minutes",
    "slot_granularity_minutes",
    "minimum_lead_minutes",
    "reminder_hours",
    "reminders_enabled",
    "auto_confirm_bookings",
)


class OpenWindow(NamedTuple):
    """Bookable range of a date in minutes since midnight, end exclusive."""
    is_open: bool
    start_minute: int
    end_minute: int


CLOSED = OpenWindow(is_open=False, start_minute=0, end_minute=0)


class WorkingHoursInput(NamedTuple):
    day_of_week: int
    is_open: bool
    start_minute: int = 0
    end_minute: int = 0


# =============================================================================
# Open Window
# =============================================================================

def resolve_open_window(
    day: date,
    working_hours: Iterable[WorkingHours | WorkingHoursInput],
    blackout_dates: Collection[date],
) -> OpenWindow:
    """
    Open window for a date from plain weekly hours and blackout dates.

    A blackout always wins. A weekday without hours is closed.
    """
    if day in blackout_dates:
        return CLOSED

    weekday = day.weekday()
    for hours in working_hours:
        if hours.day_of_week != weekday:
            continue
        if not hours.is_open or hours.start_minute >= hours.end_minute:
            return CLOSED
        return OpenWindow(
            is_open=True,
            start_minute=hours.start_minute,
            end_minute=hours.end_minute,
        )
    return CLOSED


def get_open_window(db: Session, day: date) -> OpenWindow:
    """Open window for a date. Read only."""
    blackouts = {
        row.blackout_date
        for row in db.query(BlackoutDate).filter(BlackoutDate.blackout_date == day).all()
    }
    hours = db.query(WorkingHours).filter(WorkingHours.day_of_week == day.weekday()).all()
    return resolve_open_window(day, hours, blackouts)


# =============================================================================
# Business Settings
# =============================================================================

def get_business_settings(db: Session) -> BusinessSettings:
    """Return the settings row, creating it from configured defaults on first use."""
    row = db.get(BusinessSettings, BUSINESS_SETTINGS_ID)
    if row:
        return row

    row = BusinessSettings(
        id=BUSINESS_SETTINGS_ID,
        business_name=settings.BUSINESS_NAME,
        cancellation_window_hours=settings.DEFAULT_CANCELLATION_WINDOW_HOURS,
        cancellation_fee_amount=settings.DEFAULT_CANCELLATION_FEE,
        buffer_minutes=settings.DEFAULT_BUFFER_MINUTES,
        slot_granularity_minutes=settings.DEFAULT_SLOT_GRANULARITY_MINUTES,
        minimum_lead_minutes=settings.DEFAULT_MINIMUM_LEAD_MINUTES,
        reminder_hours=settings.DEFAULT_REMINDER_HOURS,
        reminders_enabled=True,
        auto_confirm_bookings=settings.DEFAULT_AUTO_CONFIRM_BOOKINGS,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Created by a concurrent request
        db.rollback()
        return db.get(BusinessSettings, BUSINESS_SETTINGS_ID)
    db.refresh(row)
    logger.info("Created default business settings")
    return row


def update_business_settings(db: Session, changes: dict) -> BusinessSettings:
    """Apply a partial settings update. None values are ignored."""
    row = get_business_settings(db)
    merged = {field: getattr(row, field) for field in _SETTINGS_FIELDS}
    merged.update({k: v for k, v in changes.items() if k in merged and v is not None})

    if merged["slot_granularity_minutes"] <= 0:
        raise ValidationError("Slot granularity must be positive")
    if merged["buffer_minutes"] < 0 or merged["minimum_lead_minutes"] < 0:
        raise ValidationError("Buffer and lead time cannot be negative")
    if merged["cancellation_window_hours"] < 0 or merged["reminder_hours"] < 0:
        raise ValidationError("Hours cannot be negative")
    if merged["cancellation_fee_amount"] < 0:
        raise ValidationError("Cancellation fee cannot be negative")

    for field, value in merged.items():
        setattr(row, field, value)

    db.commit()
    db.refresh(row)
    logger.info("Updated business settings: %s", sorted(k for k, v in changes.items() if v is not None))
    return row


# =============================================================================
# Working Hours
# =============================================================================

def set_working_hours(db: Session, days: Iterable[WorkingHoursInput]) -> list[WorkingHours]:
    """
    Replace the weekly schedule.

    Weekdays not listed become closed.
    """
    by_day: dict[int, WorkingHoursInput] = {}
    for entry in days:
        if not 0 <= entry.day_of_week <= 6:
            raise ValidationError("day_of_week must be between 0 (Monday) and 6 (Sunday)")
        if entry.day_of_week in by_day:
            raise ValidationError(f"Day {entry.day_of_week} listed more than once")
        if entry.is_open:
            if not 0 <= entry.start_minute < entry.end_minute <= MINUTES_PER_DAY:
                raise ValidationError("Opening time must be before closing time")
        by_day[entry.day_of_week] = entry

    db.query(WorkingHours).delete()
    for day_of_week in range(7):
        entry = by_day.get(day_of_week)
        if entry and entry.is_open:
            db.add(WorkingHours(
                day_of_week=day_of_week,
                is_open=True,
                start_minute=entry.start_minute,
                end_minute=entry.end_minute,
            ))
        else:
            db.add(WorkingHours(day_of_week=day_of_week, is_open=False, start_minute=0, end_minute=0))

    db.commit()
    logger.info("Replaced working hours (%s open days)", sum(1 for e in by_day.values() if e.is_open))
    return list_working_hours(db)


def list_working_hours(db: Session) -> list[WorkingHours]:
    return db.query(WorkingHours).order_by(WorkingHours.day_of_week).all()


# =============================================================================
# Blackout Dates
# =============================================================================

def add_blackout_date(
    db: Session,
    blackout_date: date,
    reason: str,
    blackout_type: BlackoutType = BlackoutType.UNAVAILABLE,
) -> BlackoutDate:
    """Close a whole date for new bookings. Existing appointments are kept."""
    existing = db.query(BlackoutDate).filter(BlackoutDate.blackout_date == blackout_date).first()
    if existing:
        raise ValidationError(f"{blackout_date.isoformat()} is already blacked out")

    blackout = BlackoutDate(
        blackout_date=blackout_date,
        reason=reason.strip(),
        blackout_type=BlackoutType(blackout_type).value,
    )
    db.add(blackout)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"{blackout_date.isoformat()} is already blacked out") from exc
    db.refresh(blackout)
    logger.info("Added %s blackout on %s", blackout.blackout_type, blackout_date.isoformat())
    return blackout


def remove_blackout_date(db: Session, blackout_id: UUID) -> None:
    blackout = db.get(BlackoutDate, blackout_id)
    if not blackout:
        raise NotFoundError("Blackout date not found")
    blackout_date = blackout.blackout_date
    db.delete(blackout)
    db.commit()
    logger.info("Removed blackout on %s", blackout_date.isoformat())


def list_blackout_dates(
    db: Session,
    date_start: date | None = None,
    date_end: date | None = None,
) -> list[BlackoutDate]:
    query = db.query(BlackoutDate)
    if date_start:
        query = query.filter(BlackoutDate.blackout_date >= date_start)
    if date_end:
        query = query.filter(BlackoutDate.blackout_date <= date_end)
    return query.order_by(BlackoutDate.blackout_date).all()


def import_holiday_blackouts(db: Session, year: int, country: str = "US") -> list[BlackoutDate]:
    """
    Add a holiday blackout for every public holiday of a year.

    Dates that are already blacked out are left alone. Returns the new rows.
    """
    existing = {
        row.blackout_date
        for row in list_blackout_dates(db, date(year, 1, 1), date(year, 12, 31))
    }
    created = []
    for holiday_date, name in holiday_calendar.get_holidays(year, country).items():
        if holiday_date in existing:
            continue
        blackout = BlackoutDate(
            blackout_date=holiday_date,
            reason=name,
            blackout_type=BlackoutType.HOLIDAY.value,
        )
        db.add(blackout)
        created.append(blackout)

    db.commit()
    for blackout in created:
        db.refresh(blackout)
    logger.info("Imported %s %s holiday blackouts for %s", len(created), country, year)
    return created
