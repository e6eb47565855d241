"""Booking schema - catalog, settings, calendar and appointment ledger.

Revision ID: 0001_booking_schema
Revises:
Create Date: 2026-10-19

Creates:
- services, add_ons, add_on_services
- business_settings (single row)
- working_hours, blackout_dates
- ledger_days
- appointments (with partial unique slot index)
- appointment_status_changes
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_booking_schema'
down_revision = None
branch_labels = None
depends_on = None

BLOCKING_STATUSES_SQL = "status IN ('pending', 'confirmed', 'in-progress', 'completed', 'no-show')"


def upgrade() -> None:
    # ==========================================================================
    # Catalog
    # ==========================================================================
    op.create_table(
        'services',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('price >= 0', name='ck_services_price_non_negative'),
    )
    op.create_index('idx_services_active', 'services', ['is_active'])

    op.create_table(
        'add_ons',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_minutes >= 0', name='ck_add_ons_duration_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_add_ons_price_non_negative'),
    )

    op.create_table(
        'add_on_services',
        sa.Column('add_on_id', sa.Uuid(), sa.ForeignKey('add_ons.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
        sa.PrimaryKeyConstraint('add_on_id', 'service_id'),
    )

    # ==========================================================================
    # Settings and calendar
    # ==========================================================================
    op.create_table(
        'business_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('cancellation_window_hours', sa.Integer(), nullable=False),
        sa.Column('cancellation_fee_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False),
        sa.Column('slot_granularity_minutes', sa.Integer(), nullable=False),
        sa.Column('minimum_lead_minutes', sa.Integer(), nullable=False),
        sa.Column('reminder_hours', sa.Integer(), nullable=False),
        sa.Column('reminders_enabled', sa.Boolean(), nullable=False),
        sa.Column('auto_confirm_bookings', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('id = 1', name='ck_business_settings_singleton'),
        sa.CheckConstraint('slot_granularity_minutes > 0', name='ck_business_settings_granularity'),
        sa.CheckConstraint('buffer_minutes >= 0', name='ck_business_settings_buffer'),
    )

    op.create_table(
        'working_hours',
        sa.Column('day_of_week', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('day_of_week'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_valid_day_of_week'),
        sa.CheckConstraint('start_minute >= 0 AND end_minute <= 1440', name='ck_working_hours_bounds'),
    )

    op.create_table(
        'blackout_dates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('blackout_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(255), nullable=False),
        sa.Column('blackout_type', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blackout_date'),
    )

    # ==========================================================================
    # Ledger
    # ==========================================================================
    op.create_table(
        'ledger_days',
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('day'),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_reference', sa.String(20), nullable=False),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('add_on_ids', sa.JSON(), nullable=False),
        sa.Column('client_ref', sa.String(255), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=True),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('client_phone', sa.String(50), nullable=True),
        sa.Column('client_notes', sa.Text(), nullable=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False),
        sa.Column('cancellation_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('rescheduled_from_id', sa.Uuid(), sa.ForeignKey('appointments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_reference'),
        sa.CheckConstraint('duration_minutes > 0', name='ck_appointments_duration_positive'),
        sa.CheckConstraint(
            'start_minute >= 0 AND start_minute + duration_minutes <= 1440',
            name='ck_appointments_within_day',
        ),
    )
    op.create_index('idx_appointments_date_status', 'appointments', ['appointment_date', 'status'])
    op.create_index('idx_appointments_reminders', 'appointments', ['status', 'reminder_sent_at'])
    op.create_index(
        'uq_appointments_blocking_fingerprint',
        'appointments',
        ['appointment_date', 'start_minute'],
        unique=True,
        sqlite_where=sa.text(BLOCKING_STATUSES_SQL),
        postgresql_where=sa.text(BLOCKING_STATUSES_SQL),
    )

    op.create_table(
        'appointment_status_changes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('appointment_id', sa.Uuid(), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event', sa.String(20), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=True),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_status_changes_appointment',
        'appointment_status_changes',
        ['appointment_id', 'changed_at'],
    )


def downgrade() -> None:
    op.drop_index('idx_status_changes_appointment', table_name='appointment_status_changes')
    op.drop_table('appointment_status_changes')
    op.drop_index('uq_appointments_blocking_fingerprint', table_name='appointments')
    op.drop_index('idx_appointments_reminders', table_name='appointments')
    op.drop_index('idx_appointments_date_status', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('ledger_days')
    op.drop_table('blackout_dates')
    op.drop_table('working_hours')
    op.drop_table('business_settings')
    op.drop_table('add_on_services')
    op.drop_table('add_ons')
    op.drop_index('idx_services_active', table_name='services')
    op.drop_table('services')
