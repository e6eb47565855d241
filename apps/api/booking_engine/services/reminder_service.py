"""
Reminder scheduling - which confirmed appointments are due a reminder.

The per-appointment ``reminder_sent_at`` column is the fired flag. It is
claimed with a conditional update before the gateway is called, so each
reminder is sent at most once even with several workers polling.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from booking_engine.core.clock import appointment_datetime, to_business_time
from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.enums import AppointmentStatus, NotificationType
from booking_engine.db.models import Appointment
from booking_engine.schemas.appointment import AppointmentRead
from booking_engine.services import availability_service
from booking_engine.services.notification_service import NotificationGateway


logger = logging.getLogger(__name__)


def due_reminders(db: Session, now: datetime) -> list[UUID]:
    """
    Confirmed appointments whose reminder time has passed and that have not
    been reminded yet, in calendar order. Appointments that already started
    are skipped.
    """
    business_settings = availability_service.get_business_settings(db)
    lead = timedelta(hours=business_settings.reminder_hours)
    now_utc = to_business_time(now).astimezone(timezone.utc)

    # Coarse date filter in SQL; one extra day absorbs offset changes
    horizon = (to_business_time(now) + lead).date() + timedelta(days=1)
    candidates = (
        db.query(Appointment)
        .filter(
            Appointment.status == AppointmentStatus.CONFIRMED.value,
            Appointment.reminder_sent_at.is_(None),
            Appointment.appointment_date <= horizon,
        )
        .order_by(Appointment.appointment_date, Appointment.start_minute)
        .all()
    )

    due = []
    for appointment in candidates:
        starts_at = appointment_datetime(appointment.appointment_date, appointment.start_minute)
        starts_at_utc = starts_at.astimezone(timezone.utc)
        # Started appointments get no reminder
        if starts_at_utc - lead <= now_utc < starts_at_utc:
            due.append(appointment.id)
    return due


def mark_reminder_fired(db: Session, appointment_id: UUID, now: datetime) -> bool:
    """
    Claim the reminder for an appointment.

    Returns True only for the first caller; later calls, and calls for
    appointments that are no longer confirmed, return False.
    """
    result = db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.status == AppointmentStatus.CONFIRMED.value,
            Appointment.reminder_sent_at.is_(None),
        )
        .values(reminder_sent_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def process_due_reminders(db: Session, gateway: NotificationGateway, now: datetime) -> dict:
    """
    Send every due reminder once.

    Gateway failures are logged and counted; the reminder stays claimed and
    is not retried.

    Returns stats: {checked, sent, failed, skipped}
    """
    stats = {"checked": 0, "sent": 0, "failed": 0, "skipped": 0}

    business_settings = availability_service.get_business_settings(db)
    if not business_settings.reminders_enabled:
        logger.info("Reminders are disabled, nothing to send")
        return stats

    for appointment_id in due_reminders(db, now):
        stats["checked"] += 1
        if not mark_reminder_fired(db, appointment_id, now):
            stats["skipped"] += 1
            continue

        appointment = db.get(Appointment, appointment_id)
        try:
            gateway.notify(AppointmentRead.from_model(appointment), NotificationType.REMINDER)
        except Exception:
            logger.exception(
                "Reminder for appointment %s failed",
                appointment_id,
                extra=build_log_context(appointment_id=str(appointment_id)),
            )
            stats["failed"] += 1
            continue
        stats["sent"] += 1

    logger.info(
        "Reminders processed: %s checked, %s sent, %s failed, %s skipped",
        stats["checked"],
        stats["sent"],
        stats["failed"],
        stats["skipped"],
    )
    return stats
