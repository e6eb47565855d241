"""Tests for late-cancellation fees."""

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from booking_engine.db.enums import LATE_CANCELLATION_REASON, AppointmentEvent, AppointmentStatus
from booking_engine.services import appointment_service, availability_service
from booking_engine.services.events import EventBus


TZ = ZoneInfo("America/New_York")
MONDAY = date(2024, 6, 10)


@pytest.fixture
def confirmed(db, book, clock):
    """Monday 14:00, approved."""
    appointment = book(start="14:00")
    appointment_service.transition_appointment(
        db, appointment.id, AppointmentEvent.APPROVE, now=clock.now()
    )
    return appointment


def _cancel(db, appointment, now):
    return appointment_service.transition_appointment(
        db, appointment.id, AppointmentEvent.CANCEL, now=now
    ).appointment


class TestCancellationFee:
    def test_inside_window_charges_fee(self, db, confirmed):
        # 46.5 hours before a 48 hour window closes
        cancelled = _cancel(db, confirmed, datetime(2024, 6, 8, 15, 30, tzinfo=TZ))

        assert cancelled.status == AppointmentStatus.CANCELLED.value
        assert cancelled.cancellation_fee == Decimal("35.00")
        assert cancelled.cancellation_reason == LATE_CANCELLATION_REASON

    def test_outside_window_is_free(self, db, confirmed):
        cancelled = _cancel(db, confirmed, datetime(2024, 6, 8, 13, 0, tzinfo=TZ))

        assert cancelled.status == AppointmentStatus.CANCELLED.value
        assert cancelled.cancellation_fee is None
        assert cancelled.cancellation_reason is None

    def test_exactly_at_window_is_free(self, db, confirmed):
        cancelled = _cancel(db, confirmed, datetime(2024, 6, 8, 14, 0, tzinfo=TZ))
        assert cancelled.cancellation_fee is None

    def test_pending_never_charged(self, db, book):
        appointment = book(start="14:00")
        cancelled = _cancel(db, appointment, datetime(2024, 6, 10, 13, 0, tzinfo=TZ))
        assert cancelled.cancellation_fee is None

    def test_fee_follows_settings(self, db, confirmed):
        availability_service.update_business_settings(
            db, {"cancellation_window_hours": 24, "cancellation_fee_amount": Decimal("50.00")}
        )
        assert _cancel(db, confirmed, datetime(2024, 6, 9, 15, 0, tzinfo=TZ)).cancellation_fee == Decimal("50.00")

    def test_utc_now_is_compared_in_absolute_time(self, db, confirmed):
        # 2024-06-08 19:30 UTC is 15:30 in New York
        now = datetime(2024, 6, 8, 19, 30, tzinfo=ZoneInfo("UTC"))
        assert _cancel(db, confirmed, now).cancellation_fee == Decimal("35.00")

    def test_fee_is_reported_to_observers(self, db, confirmed):
        seen = []

        appointment_service.transition_appointment(
            db,
            confirmed.id,
            AppointmentEvent.CANCEL,
            now=datetime(2024, 6, 9, 9, 0, tzinfo=TZ),
            events=EventBus([seen.append]),
        )
        assert seen[0].cancellation_fee == Decimal("35.00")
        assert seen[0].to_status == AppointmentStatus.CANCELLED

    def test_compute_fee_after_start(self, db, confirmed, business_settings):
        """Cancelling after the start time still counts as late."""
        fee = appointment_service.compute_cancellation_fee(
            confirmed,
            AppointmentStatus.CONFIRMED,
            business_settings,
            datetime(2024, 6, 10, 15, 0, tzinfo=TZ),
        )
        assert fee == Decimal("35.00")
