"""
Tests for reminder scheduling.

Coverage:
- Due computation against the reminder lead
- Fire-once claiming
- Processing with a working, failing and disabled gateway
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from booking_engine.db.enums import AppointmentEvent, NotificationType
from booking_engine.services import appointment_service, availability_service, reminder_service


TZ = ZoneInfo("America/New_York")
MONDAY = date(2024, 6, 10)


class FailingGateway:
    def __init__(self):
        self.calls = 0

    def notify(self, appointment, notification_type):
        self.calls += 1
        raise RuntimeError("sms provider down")


@pytest.fixture
def confirmed(db, book, auto_confirm):
    """Monday 10:00, confirmed on booking."""
    return book(start="10:00")


class TestDueReminders:
    def test_not_due_before_lead(self, db, confirmed):
        assert reminder_service.due_reminders(db, datetime(2024, 6, 9, 9, 59, tzinfo=TZ)) == []

    def test_due_at_lead(self, db, confirmed):
        due = reminder_service.due_reminders(db, datetime(2024, 6, 9, 10, 0, tzinfo=TZ))
        assert due == [confirmed.id]

    def test_calendar_order(self, db, book, auto_confirm):
        afternoon = book(start="14:00")
        morning = book(start="09:00")
        due = reminder_service.due_reminders(db, datetime(2024, 6, 10, 8, 0, tzinfo=TZ))
        assert due == [morning.id, afternoon.id]

    def test_pending_not_reminded(self, db, book):
        book(start="10:00")
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 9, 0, tzinfo=TZ)) == []

    def test_cancelled_not_reminded(self, db, confirmed, clock):
        appointment_service.transition_appointment(
            db, confirmed.id, AppointmentEvent.CANCEL, now=clock.now()
        )
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 9, 0, tzinfo=TZ)) == []

    def test_reminder_hours_setting(self, db, confirmed):
        availability_service.update_business_settings(db, {"reminder_hours": 2})
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 7, 59, tzinfo=TZ)) == []
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 8, 0, tzinfo=TZ)) == [confirmed.id]

    def test_started_appointment_not_reminded(self, db, confirmed):
        # worker was down from before the reminder time until after the start
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 9, 59, tzinfo=TZ)) == [confirmed.id]
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 10, 0, tzinfo=TZ)) == []
        assert reminder_service.due_reminders(db, datetime(2024, 6, 10, 11, 0, tzinfo=TZ)) == []

    def test_utc_now(self, db, confirmed):
        # 14:00 UTC on 2024-06-09 is 10:00 in New York
        now = datetime(2024, 6, 9, 14, 0, tzinfo=ZoneInfo("UTC"))
        assert reminder_service.due_reminders(db, now) == [confirmed.id]


class TestMarkReminderFired:
    def test_fires_once(self, db, confirmed):
        now = datetime(2024, 6, 9, 10, 0, tzinfo=TZ)
        assert reminder_service.mark_reminder_fired(db, confirmed.id, now) is True
        assert reminder_service.mark_reminder_fired(db, confirmed.id, now) is False
        assert reminder_service.due_reminders(db, now) == []

    def test_pending_cannot_be_claimed(self, db, book):
        appointment = book()
        now = datetime(2024, 6, 9, 10, 0, tzinfo=TZ)
        assert reminder_service.mark_reminder_fired(db, appointment.id, now) is False


class TestProcessDueReminders:
    def test_sends_each_reminder_once(self, db, confirmed, gateway):
        now = datetime(2024, 6, 9, 12, 0, tzinfo=TZ)

        stats = reminder_service.process_due_reminders(db, gateway, now)
        assert stats == {"checked": 1, "sent": 1, "failed": 0, "skipped": 0}
        assert gateway.types_for(confirmed.id) == [NotificationType.REMINDER]

        again = reminder_service.process_due_reminders(db, gateway, now)
        assert again["sent"] == 0
        assert len(gateway.sent) == 1

    def test_failure_is_counted_and_not_retried(self, db, confirmed):
        failing = FailingGateway()
        now = datetime(2024, 6, 9, 12, 0, tzinfo=TZ)

        stats = reminder_service.process_due_reminders(db, failing, now)
        assert stats["failed"] == 1
        assert stats["sent"] == 0

        reminder_service.process_due_reminders(db, failing, now)
        assert failing.calls == 1

    def test_disabled_sends_nothing(self, db, confirmed, gateway):
        availability_service.update_business_settings(db, {"reminders_enabled": False})
        stats = reminder_service.process_due_reminders(db, gateway, datetime(2024, 6, 9, 12, 0, tzinfo=TZ))
        assert stats["checked"] == 0
        assert gateway.sent == []

    def test_nothing_due(self, db, confirmed, gateway):
        stats = reminder_service.process_due_reminders(db, gateway, datetime(2024, 6, 1, 12, 0, tzinfo=TZ))
        assert stats == {"checked": 0, "sent": 0, "failed": 0, "skipped": 0}
