"""Injectable clock and business-timezone helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from booking_engine.core.config import settings


def business_timezone() -> ZoneInfo:
    """Return the configured business timezone."""
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


def to_business_time(value: datetime) -> datetime:
    """Normalize a datetime to the business timezone (naive values are taken as local)."""
    tz = business_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def appointment_datetime(appointment_date: date, start_minute: int) -> datetime:
    """Local, timezone-aware start of an appointment."""
    return datetime.combine(appointment_date, time.min, tzinfo=business_timezone()) + timedelta(
        minutes=start_minute
    )


def minute_of_day(value: datetime) -> int:
    """Minutes since midnight, rounded up to the next whole minute."""
    minutes = value.hour * 60 + value.minute
    if value.second or value.microsecond:
        minutes += 1
    return minutes


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the business timezone."""

    def now(self) -> datetime:
        return datetime.now(business_timezone())
