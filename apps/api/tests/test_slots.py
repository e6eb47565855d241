"""
Tests for slot generation and the availability listing.

Coverage:
- Pure candidate enumeration
- Buffered overlap filtering
- Lead time and past dates
- Service + add-on durations
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from booking_engine.db.enums import AppointmentEvent
from booking_engine.services import appointment_service, availability_service, catalog_service, slot_service
from booking_engine.services.availability_service import CLOSED, OpenWindow
from booking_engine.services.errors import ValidationError
from booking_engine.utils.time_format import parse_time_of_day


TZ = ZoneInfo("America/New_York")
MONDAY = date(2024, 6, 10)
NINE_TO_SIX = OpenWindow(True, 540, 1080)


def _minutes(*times: str) -> list[int]:
    return [parse_time_of_day(t) for t in times]


# =============================================================================
# Pure Generation
# =============================================================================

class TestGenerateSlots:
    def test_steps_by_granularity_until_close(self):
        slots = slot_service.generate_slots(NINE_TO_SIX, 90, 30)
        assert slots[0] == 540
        assert slots[-1] == 990  # 16:30 + 90 min ends exactly at 18:00
        assert slots == list(range(540, 991, 30))

    def test_every_slot_fits_the_window(self):
        for duration in (15, 45, 90, 135, 540):
            for start in slot_service.generate_slots(NINE_TO_SIX, duration, 15):
                assert NINE_TO_SIX.start_minute <= start
                assert start + duration <= NINE_TO_SIX.end_minute

    def test_closed_window(self):
        assert slot_service.generate_slots(CLOSED, 60, 30) == []

    def test_longer_than_window(self):
        assert slot_service.generate_slots(NINE_TO_SIX, 600, 30) == []

    def test_earliest_start(self):
        slots = slot_service.generate_slots(NINE_TO_SIX, 60, 30, earliest_start_minute=601)
        assert slots[0] == 630

    def test_is_restartable(self):
        assert slot_service.generate_slots(NINE_TO_SIX, 60, 30) == slot_service.generate_slots(
            NINE_TO_SIX, 60, 30
        )

    @pytest.mark.parametrize("duration, granularity", [(0, 30), (-15, 30), (60, 0)])
    def test_rejects_non_positive_values(self, duration, granularity):
        with pytest.raises(ValidationError):
            slot_service.generate_slots(NINE_TO_SIX, duration, granularity)


# =============================================================================
# Slots For A Date
# =============================================================================

class TestGenerateSlotsForDate:
    def test_past_date_is_empty(self, db, working_hours, clock):
        yesterday = clock.now().date() - timedelta(days=1)
        assert slot_service.generate_slots_for_date(db, yesterday, 60, clock.now()) == []

    def test_today_starts_after_now(self, db, working_hours):
        now = datetime(2024, 6, 10, 11, 10, tzinfo=TZ)
        slots = slot_service.generate_slots_for_date(db, MONDAY, 60, now)
        assert slots[0] == parse_time_of_day("11:30")

    def test_minimum_lead_time(self, db, working_hours):
        availability_service.update_business_settings(db, {"minimum_lead_minutes": 120})
        now = datetime(2024, 6, 10, 11, 10, tzinfo=TZ)
        slots = slot_service.generate_slots_for_date(db, MONDAY, 60, now)
        assert slots[0] == parse_time_of_day("13:30")

    def test_lead_time_spilling_into_next_day(self, db, working_hours):
        availability_service.update_business_settings(db, {"minimum_lead_minutes": 24 * 60})
        now = datetime(2024, 6, 9, 12, 0, tzinfo=TZ)
        slots = slot_service.generate_slots_for_date(db, MONDAY, 60, now)
        assert slots[0] == parse_time_of_day("12:00")

    def test_naive_now_is_taken_as_business_time(self, db, working_hours):
        slots = slot_service.generate_slots_for_date(db, MONDAY, 60, datetime(2024, 6, 10, 17, 0))
        assert slots == [parse_time_of_day("17:00")]

    def test_blackout_is_empty(self, db, working_hours, clock):
        availability_service.add_blackout_date(db, MONDAY, "Conference")
        assert slot_service.generate_slots_for_date(db, MONDAY, 60, clock.now()) == []

    def test_idempotent(self, db, working_hours, clock):
        first = slot_service.generate_slots_for_date(db, MONDAY, 60, clock.now())
        assert slot_service.generate_slots_for_date(db, MONDAY, 60, clock.now()) == first


# =============================================================================
# Availability
# =============================================================================

class TestAvailableSlots:
    def test_buffered_overlap_example(self, db, book, auto_confirm, clock):
        """Existing 10:00 for 90 min + 15 min buffer occupies [10:00, 11:45)."""
        book(start="10:00")

        free = slot_service.get_available_slots(db, MONDAY, 60, clock.now())

        assert parse_time_of_day("09:00") in free
        assert parse_time_of_day("12:00") in free
        for blocked in _minutes("09:30", "10:00", "10:30", "11:00", "11:30"):
            assert blocked not in free

    def test_cancelled_appointment_frees_its_slot(self, db, book, clock):
        appointment = book(start="10:00")
        appointment_service.transition_appointment(
            db, appointment.id, AppointmentEvent.CANCEL, now=clock.now()
        )
        assert parse_time_of_day("10:00") in slot_service.get_available_slots(db, MONDAY, 60, clock.now())

    def test_availability_flags_busy_candidates(self, db, book, service, clock):
        book(start="10:00")

        slots = slot_service.get_availability(db, MONDAY, service.id, [], clock.now())
        flags = {slot.time: slot.available for slot in slots}

        assert flags["12:00"] is True
        assert flags["10:00"] is False
        assert list(flags) == sorted(flags)
        assert slots[-1].time == "16:30"

    def test_add_on_lengthens_booking(self, db, working_hours, service, add_on, clock):
        slots = slot_service.get_availability(db, MONDAY, service.id, [add_on.id], clock.now())
        # 90 + 30 minutes must end by 18:00
        assert slots[-1].time == "16:00"

    def test_closed_day_has_no_slots(self, db, working_hours, service, clock):
        sunday = MONDAY - timedelta(days=1)
        assert slot_service.get_availability(db, sunday, service.id, [], clock.now()) == []

    def test_inactive_service_rejected(self, db, working_hours, service, clock):
        catalog_service.update_service(db, service.id, {"is_active": False})
        with pytest.raises(ValidationError):
            slot_service.get_availability(db, MONDAY, service.id, [], clock.now())

    def test_short_service_fills_gap(self, db, book, clock):
        """A 30 minute service fits between 09:00 and a 10:00 booking."""
        short = catalog_service.create_service(db, name="Lash Fill", duration_minutes=30, price=Decimal("45"))
        book(start="10:00")
        slots = slot_service.get_availability(db, MONDAY, short.id, [], clock.now())
        flags = {slot.time: slot.available for slot in slots}
        assert flags["09:00"] and flags["09:30"]
        assert not flags["11:30"]
        assert flags["12:00"]
