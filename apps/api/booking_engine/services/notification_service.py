"""
Notification Service - hands appointment messages to an outbound gateway.

Message content and transport (SMS, email) live behind NotificationGateway.
"""

import logging
from typing import Protocol

from booking_engine.db.enums import AppointmentEvent, AppointmentStatus, NotificationType
from booking_engine.schemas.appointment import AppointmentRead
from booking_engine.services.events import AppointmentCreated, DomainEvent, StatusChanged


logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    def notify(self, appointment: AppointmentRead, notification_type: NotificationType) -> None: ...


class LoggingNotificationGateway:
    """Default gateway: records what would be sent. Identifiers only, no contact details."""

    def notify(self, appointment: AppointmentRead, notification_type: NotificationType) -> None:
        logger.info(
            "Notification %s for appointment %s (%s at %s %s)",
            notification_type.value,
            appointment.id,
            appointment.booking_reference,
            appointment.appointment_date.isoformat(),
            appointment.start_time,
        )


_EVENT_NOTIFICATIONS = {
    AppointmentEvent.APPROVE: NotificationType.CONFIRMED,
    AppointmentEvent.REJECT: NotificationType.REJECTED,
    AppointmentEvent.CANCEL: NotificationType.CANCELLED,
    AppointmentEvent.RESCHEDULE: NotificationType.RESCHEDULED,
}


def notification_for(event: DomainEvent) -> tuple[AppointmentRead, NotificationType] | None:
    """Which appointment snapshot to notify about, and how. None for silent events."""
    if isinstance(event, AppointmentCreated):
        if event.appointment.status == AppointmentStatus.CONFIRMED.value:
            return event.appointment, NotificationType.CONFIRMED
        return event.appointment, NotificationType.REQUEST_RECEIVED

    if isinstance(event, StatusChanged):
        notification_type = _EVENT_NOTIFICATIONS.get(event.event)
        if notification_type is None:
            return None
        if event.rescheduled_to is not None:
            return event.rescheduled_to, notification_type
        return event.appointment, notification_type

    return None


class NotificationObserver:
    """EventBus observer forwarding client-facing events to a gateway."""

    def __init__(self, gateway: NotificationGateway):
        self.gateway = gateway

    def __call__(self, event: DomainEvent) -> None:
        target = notification_for(event)
        if target is None:
            return
        appointment, notification_type = target
        self.gateway.notify(appointment, notification_type)
