"""
Tests for the availability calendar.

Coverage:
- Open window resolution (weekly hours, blackout override)
- Working hours replacement and validation
- Blackout date administration
- Business settings defaults and updates
- Holiday import
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from booking_engine.db.enums import BlackoutType
from booking_engine.services import availability_service
from booking_engine.services.availability_service import (
    CLOSED,
    OpenWindow,
    WorkingHoursInput,
    resolve_open_window,
)
from booking_engine.services.errors import NotFoundError, ValidationError


MONDAY = date(2024, 6, 10)
WEEK = [WorkingHoursInput(day, True, 540, 1080) for day in range(5)]


# =============================================================================
# Open Window
# =============================================================================

class TestResolveOpenWindow:
    def test_weekday_uses_weekly_hours(self):
        assert resolve_open_window(MONDAY, WEEK, set()) == OpenWindow(True, 540, 1080)

    def test_blackout_closes_the_day(self):
        assert resolve_open_window(MONDAY, WEEK, {MONDAY}) == CLOSED

    def test_missing_weekday_is_closed(self):
        sunday = MONDAY - timedelta(days=1)
        assert resolve_open_window(sunday, WEEK, set()) == CLOSED

    def test_closed_flag_wins_over_times(self):
        hours = [WorkingHoursInput(0, False, 540, 1080)]
        assert resolve_open_window(MONDAY, hours, set()) == CLOSED

    def test_is_idempotent(self):
        first = resolve_open_window(MONDAY, WEEK, set())
        assert resolve_open_window(MONDAY, WEEK, set()) == first


class TestGetOpenWindow:
    def test_reads_weekly_hours(self, db, working_hours):
        assert availability_service.get_open_window(db, MONDAY) == OpenWindow(True, 540, 1080)
        saturday = MONDAY + timedelta(days=5)
        assert availability_service.get_open_window(db, saturday) == OpenWindow(True, 600, 960)

    def test_sunday_closed(self, db, working_hours):
        assert availability_service.get_open_window(db, MONDAY - timedelta(days=1)) == CLOSED

    def test_no_hours_configured_is_closed(self, db):
        assert availability_service.get_open_window(db, MONDAY) == CLOSED

    def test_blackout_closes_open_day(self, db, working_hours):
        availability_service.add_blackout_date(db, MONDAY, "Training day")
        assert availability_service.get_open_window(db, MONDAY) == CLOSED
        assert availability_service.get_open_window(db, MONDAY + timedelta(days=1)).is_open


# =============================================================================
# Working Hours
# =============================================================================

class TestWorkingHours:
    def test_replaces_whole_week(self, db, working_hours):
        rows = availability_service.set_working_hours(db, [WorkingHoursInput(2, True, 600, 900)])
        assert len(rows) == 7
        open_days = [r.day_of_week for r in rows if r.is_open]
        assert open_days == [2]

    def test_rejects_start_after_end(self, db):
        with pytest.raises(ValidationError):
            availability_service.set_working_hours(db, [WorkingHoursInput(0, True, 1080, 540)])

    def test_rejects_duplicate_day(self, db):
        with pytest.raises(ValidationError):
            availability_service.set_working_hours(
                db,
                [WorkingHoursInput(0, True, 540, 600), WorkingHoursInput(0, True, 700, 800)],
            )

    def test_closed_day_ignores_times(self, db):
        rows = availability_service.set_working_hours(db, [WorkingHoursInput(0, False, 900, 100)])
        assert not rows[0].is_open


# =============================================================================
# Blackout Dates
# =============================================================================

class TestBlackoutDates:
    def test_duplicate_date_rejected(self, db):
        availability_service.add_blackout_date(db, MONDAY, "Vacation", BlackoutType.VACATION)
        with pytest.raises(ValidationError):
            availability_service.add_blackout_date(db, MONDAY, "Again")

    def test_remove(self, db):
        blackout = availability_service.add_blackout_date(db, MONDAY, "Closed")
        availability_service.remove_blackout_date(db, blackout.id)
        assert availability_service.list_blackout_dates(db) == []

    def test_remove_unknown(self, db):
        with pytest.raises(NotFoundError):
            availability_service.remove_blackout_date(db, uuid4())

    def test_list_by_range(self, db):
        for offset in range(3):
            availability_service.add_blackout_date(db, MONDAY + timedelta(days=offset), "Closed")
        rows = availability_service.list_blackout_dates(
            db, date_start=MONDAY + timedelta(days=1), date_end=MONDAY + timedelta(days=5)
        )
        assert [r.blackout_date for r in rows] == [MONDAY + timedelta(days=1), MONDAY + timedelta(days=2)]

    def test_import_holidays(self, db):
        created = availability_service.import_holiday_blackouts(db, 2024)
        dates = {b.blackout_date for b in created}
        assert date(2024, 7, 4) in dates
        assert all(b.blackout_type == BlackoutType.HOLIDAY.value for b in created)

        # Second run adds nothing
        assert availability_service.import_holiday_blackouts(db, 2024) == []


# =============================================================================
# Business Settings
# =============================================================================

class TestBusinessSettings:
    def test_defaults_created_once(self, db):
        first = availability_service.get_business_settings(db)
        assert first.cancellation_window_hours == 48
        assert first.cancellation_fee_amount == Decimal("35.00")
        assert first.buffer_minutes == 15
        assert first.slot_granularity_minutes == 30
        assert first.reminder_hours == 24
        assert first.auto_confirm_bookings is False
        assert availability_service.get_business_settings(db).id == first.id

    def test_partial_update(self, db):
        row = availability_service.update_business_settings(
            db, {"buffer_minutes": 0, "auto_confirm_bookings": True, "reminder_hours": None}
        )
        assert row.buffer_minutes == 0
        assert row.auto_confirm_bookings is True
        assert row.reminder_hours == 24

    def test_invalid_granularity_rejected(self, db):
        with pytest.raises(ValidationError):
            availability_service.update_business_settings(db, {"slot_granularity_minutes": 0})
        assert availability_service.get_business_settings(db).slot_granularity_minutes == 30
