"""SQLAlchemy ORM models for the booking ledger, catalog and business settings."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booking_engine.db.base import Base
from booking_engine.db.enums import (
    BLOCKING_STATUSES,
    DEFAULT_PAYMENT_STATUS,
    AppointmentStatus,
    BlackoutType,
)

_BLOCKING_SQL = "status IN ({})".format(", ".join(f"'{s.value}'" for s in BLOCKING_STATUSES))


# =============================================================================
# Catalog
# =============================================================================

add_on_services = Table(
    "add_on_services",
    Base.metadata,
    Column("add_on_id", Uuid, ForeignKey("add_ons.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Uuid, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Service(Base):
    """A bookable treatment (e.g. "Classic Full Set")."""

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
        Index("idx_services_active", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    add_ons: Mapped[list["AddOn"]] = relationship(
        secondary=add_on_services, back_populates="compatible_services"
    )


class AddOn(Base):
    """
    Optional extra performed with a service (e.g. "Lash Bath").

    Only bookable together with one of its compatible services.
    """

    __tablename__ = "add_ons"
    __table_args__ = (
        CheckConstraint("duration_minutes >= 0", name="ck_add_ons_duration_non_negative"),
        CheckConstraint("price >= 0", name="ck_add_ons_price_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    compatible_services: Mapped[list[Service]] = relationship(
        secondary=add_on_services, back_populates="add_ons"
    )

    @property
    def compatible_service_ids(self) -> set[uuid.UUID]:
        return {service.id for service in self.compatible_services}


# =============================================================================
# Business settings
# =============================================================================

class BusinessSettings(Base):
    """
    Single-row booking policy (id is always 1).

    Read once per request; defaults are seeded from environment settings.
    """

    __tablename__ = "business_settings"
    __table_args__ = (
        CheckConstraint("id = 1", name="ck_business_settings_singleton"),
        CheckConstraint("slot_granularity_minutes > 0", name="ck_business_settings_granularity"),
        CheckConstraint("buffer_minutes >= 0", name="ck_business_settings_buffer"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)

    cancellation_window_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    cancellation_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    buffer_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    slot_granularity_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_lead_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    reminder_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    reminders_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    auto_confirm_bookings: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class WorkingHours(Base):
    """
    Weekly opening hours, one row per weekday.

    Uses Python weekday: Monday=0, Sunday=6. Times are minutes since midnight.
    """

    __tablename__ = "working_hours"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_valid_day_of_week"),
        CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1440", name="ck_working_hours_bounds"
        ),
    )

    day_of_week: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    is_open: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class BlackoutDate(Base):
    """A calendar date closed for new bookings (whole day)."""

    __tablename__ = "blackout_dates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    blackout_date: Mapped[date] = mapped_column(Date, unique=True, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    blackout_type: Mapped[str] = mapped_column(
        String(20), default=BlackoutType.UNAVAILABLE.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


# =============================================================================
# Ledger
# =============================================================================

class LedgerDay(Base):
    """
    Lock row for one calendar date.

    Reservations bump ``version`` before checking for overlaps, which
    serializes concurrent writers for the same date across processes.
    """

    __tablename__ = "ledger_days"

    day: Mapped[date] = mapped_column(Date, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Appointment(Base):
    """
    A booked appointment.

    Never deleted: cancellation and rescheduling are terminal statuses.
    ``start_minute`` is minutes since midnight in the business timezone.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointments_duration_positive"),
        CheckConstraint(
            "start_minute >= 0 AND start_minute + duration_minutes <= 1440",
            name="ck_appointments_within_day",
        ),
        Index("idx_appointments_date_status", "appointment_date", "status"),
        Index("idx_appointments_reminders", "status", "reminder_sent_at"),
        # Slot fingerprint: one blocking appointment per (date, start)
        Index(
            "uq_appointments_blocking_fingerprint",
            "appointment_date",
            "start_minute",
            unique=True,
            sqlite_where=text(_BLOCKING_SQL),
            postgresql_where=text(_BLOCKING_SQL),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_reference: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="RESTRICT"), nullable=False
    )
    add_on_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Client identity (opaque handle plus contact snapshot)
    client_ref: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    client_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Slot
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20), default=AppointmentStatus.PENDING.value, nullable=False
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PAYMENT_STATUS.value, nullable=False
    )
    cancellation_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rescheduled_from_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )

    # Reminder fired flag
    reminder_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)

    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    service: Mapped[Service] = relationship()
    status_changes: Mapped[list["AppointmentStatusChange"]] = relationship(
        back_populates="appointment",
        order_by="AppointmentStatusChange.id",
    )

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration_minutes


class AppointmentStatusChange(Base):
    """Audit trail of lifecycle transitions (creation included)."""

    __tablename__ = "appointment_status_changes"
    __table_args__ = (Index("idx_status_changes_appointment", "appointment_id", "changed_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    appointment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False
    )
    event: Mapped[str] = mapped_column(String(20), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(nullable=False)

    appointment: Mapped[Appointment] = relationship(back_populates="status_changes")
