"""Enum definitions for appointment scheduling."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: pending → confirmed → in-progress → completed
             ↘ cancelled   ↘ no-show
                           ↘ rescheduled (a new appointment takes the new slot)
    """

    PENDING = "pending"  # Awaiting approval
    CONFIRMED = "confirmed"  # Approved, scheduled
    IN_PROGRESS = "in-progress"  # Client is in the chair
    COMPLETED = "completed"  # Service performed
    NO_SHOW = "no-show"  # Client didn't show up
    CANCELLED = "cancelled"  # Cancelled or rejected
    RESCHEDULED = "rescheduled"  # Moved; superseded by another appointment

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
    }
)

# Statuses that occupy time on the ledger
BLOCKING_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
)


class AppointmentEvent(str, Enum):
    """Lifecycle events accepted by the transition table."""

    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    START = "start"
    FINISH = "finish"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark_no_show"
    RESCHEDULE = "reschedule"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"


class BlackoutType(str, Enum):
    """Why a date is closed for bookings."""

    UNAVAILABLE = "unavailable"
    VACATION = "vacation"
    HOLIDAY = "holiday"


class NotificationType(str, Enum):
    """Messages handed to the notification gateway."""

    REQUEST_RECEIVED = "request_received"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    REMINDER = "reminder"


DEFAULT_PAYMENT_STATUS = PaymentStatus.UNPAID
LATE_CANCELLATION_REASON = "late cancellation"
