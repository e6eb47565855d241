"""CLI tools for booking administration."""

from datetime import date
from decimal import Decimal

import click

from booking_engine.core.clock import SystemClock
from booking_engine.db.base import Base
from booking_engine.db.session import SessionLocal, engine
from booking_engine.services import availability_service, catalog_service, reminder_service
from booking_engine.services.availability_service import WorkingHoursInput
from booking_engine.services.errors import SchedulingError


# Monday-Friday 09:00-18:00, Saturday 10:00-16:00, Sunday closed
DEFAULT_WORKING_HOURS = [
    WorkingHoursInput(day_of_week=day, is_open=True, start_minute=9 * 60, end_minute=18 * 60)
    for day in range(5)
] + [WorkingHoursInput(day_of_week=5, is_open=True, start_minute=10 * 60, end_minute=16 * 60)]

DEFAULT_SERVICES = [
    ("Classic Lashes", 120, Decimal("120.00")),
    ("Volume Lashes", 150, Decimal("150.00")),
    ("Hybrid Lashes", 135, Decimal("135.00")),
    ("Lash Lift & Tint", 90, Decimal("85.00")),
]


@click.group()
def cli():
    """Booking CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables directly from the models.

    For local development; deployed databases use alembic migrations.
    """
    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database tables created")


@cli.command()
def seed_defaults():
    """
    Seed business settings, weekly hours and the starter service menu.

    Services are only added when the catalog is empty.

    Example:
        python -m booking_engine.cli seed-defaults
    """
    db = SessionLocal()
    try:
        business = availability_service.get_business_settings(db)
        click.echo(f"✓ Business settings ready for {business.business_name}")

        availability_service.set_working_hours(db, DEFAULT_WORKING_HOURS)
        click.echo("✓ Working hours: Mon-Fri 09:00-18:00, Sat 10:00-16:00")

        if catalog_service.list_services(db, active_only=False):
            click.echo("→ Services already exist, skipping menu")
            return
        for name, duration, price in DEFAULT_SERVICES:
            catalog_service.create_service(db, name=name, duration_minutes=duration, price=price)
            click.echo(f"✓ Created service: {name} ({duration} min, ${price})")
    except SchedulingError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--year", type=int, default=None, help="Year to import (defaults to the current year)")
@click.option("--country", default="US", show_default=True, help="Country code understood by the holidays package")
def import_holidays(year: int | None, country: str):
    """Black out every public holiday of a year."""
    year = year or date.today().year
    db = SessionLocal()
    try:
        created = availability_service.import_holiday_blackouts(db, year, country)
        for blackout in created:
            click.echo(f"✓ {blackout.blackout_date.isoformat()} {blackout.reason}")
        click.echo(f"→ {len(created)} holiday blackouts added for {year}")
    finally:
        db.close()


@cli.command()
def due_reminders():
    """List appointments that are due a reminder now."""
    db = SessionLocal()
    try:
        due = reminder_service.due_reminders(db, SystemClock().now())
        for appointment_id in due:
            click.echo(str(appointment_id))
        click.echo(f"→ {len(due)} reminders due")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
