"""Service catalog - treatments, add-ons and booking quotes."""

import logging
from decimal import Decimal
from typing import Iterable, NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from booking_engine.db.models import AddOn, Service
from booking_engine.services.errors import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class BookingQuote(NamedTuple):
    """Total duration and price of a service plus its add-ons."""
    service: Service
    add_ons: list[AddOn]
    duration_minutes: int
    price: Decimal


# =============================================================================
# Services
# =============================================================================

def create_service(
    db: Session,
    name: str,
    duration_minutes: int,
    price: Decimal,
    description: str | None = None,
    is_active: bool = True,
) -> Service:
    """Create a bookable service."""
    _validate_duration(duration_minutes, allow_zero=False)
    _validate_price(price)

    service = Service(
        name=name.strip(),
        description=description,
        duration_minutes=duration_minutes,
        price=price,
        is_active=is_active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info("Created service %s (%s min)", service.id, duration_minutes)
    return service


def update_service(db: Session, service_id: UUID, changes: dict) -> Service:
    """Apply a partial update. Unknown keys are ignored."""
    service = get_service(db, service_id)

    if changes.get("duration_minutes") is not None:
        _validate_duration(changes["duration_minutes"], allow_zero=False)
        service.duration_minutes = changes["duration_minutes"]
    if changes.get("price") is not None:
        _validate_price(changes["price"])
        service.price = changes["price"]
    if changes.get("name") is not None:
        service.name = changes["name"].strip()
    if "description" in changes:
        service.description = changes["description"]
    if changes.get("is_active") is not None:
        service.is_active = changes["is_active"]

    db.commit()
    db.refresh(service)
    return service


def get_service(db: Session, service_id: UUID) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise NotFoundError("Service not found")
    return service


def list_services(db: Session, active_only: bool = True) -> list[Service]:
    query = db.query(Service)
    if active_only:
        query = query.filter(Service.is_active.is_(True))
    return query.order_by(Service.name).all()


# =============================================================================
# Add-ons
# =============================================================================

def create_add_on(
    db: Session,
    name: str,
    price: Decimal,
    duration_minutes: int = 0,
    description: str | None = None,
    compatible_service_ids: Iterable[UUID] = (),
    is_active: bool = True,
) -> AddOn:
    """Create an add-on bookable with the given services."""
    _validate_duration(duration_minutes, allow_zero=True)
    _validate_price(price)

    add_on = AddOn(
        name=name.strip(),
        description=description,
        duration_minutes=duration_minutes,
        price=price,
        is_active=is_active,
    )
    add_on.compatible_services = _load_services(db, compatible_service_ids)
    db.add(add_on)
    db.commit()
    db.refresh(add_on)
    logger.info("Created add-on %s", add_on.id)
    return add_on


def update_add_on(db: Session, add_on_id: UUID, changes: dict) -> AddOn:
    add_on = get_add_on(db, add_on_id)

    if changes.get("duration_minutes") is not None:
        _validate_duration(changes["duration_minutes"], allow_zero=True)
        add_on.duration_minutes = changes["duration_minutes"]
    if changes.get("price") is not None:
        _validate_price(changes["price"])
        add_on.price = changes["price"]
    if changes.get("name") is not None:
        add_on.name = changes["name"].strip()
    if "description" in changes:
        add_on.description = changes["description"]
    if changes.get("is_active") is not None:
        add_on.is_active = changes["is_active"]
    if changes.get("compatible_service_ids") is not None:
        add_on.compatible_services = _load_services(db, changes["compatible_service_ids"])

    db.commit()
    db.refresh(add_on)
    return add_on


def get_add_on(db: Session, add_on_id: UUID) -> AddOn:
    add_on = db.get(AddOn, add_on_id)
    if not add_on:
        raise NotFoundError("Add-on not found")
    return add_on


def list_add_ons(
    db: Session,
    service_id: UUID | None = None,
    active_only: bool = True,
) -> list[AddOn]:
    """List add-ons, optionally only those compatible with a service."""
    query = db.query(AddOn)
    if active_only:
        query = query.filter(AddOn.is_active.is_(True))
    if service_id:
        query = query.filter(AddOn.compatible_services.any(Service.id == service_id))
    return query.order_by(AddOn.name).all()


# =============================================================================
# Quotes
# =============================================================================

def quote_booking(
    db: Session,
    service_id: UUID,
    add_on_ids: Iterable[UUID] = (),
) -> BookingQuote:
    """
    Total duration and price for booking a service with add-ons.

    Raises:
        ValidationError: unknown or inactive service/add-on, add-on listed
            twice, or add-on not compatible with the service
    """
    service = db.get(Service, service_id)
    if not service or not service.is_active:
        raise ValidationError("Service is not available for booking")

    add_on_ids = list(add_on_ids)
    if len(set(add_on_ids)) != len(add_on_ids):
        raise ValidationError("Add-ons must not be repeated")

    add_ons = []
    for add_on_id in add_on_ids:
        add_on = db.get(AddOn, add_on_id)
        if not add_on or not add_on.is_active:
            raise ValidationError(f"Add-on {add_on_id} is not available")
        if service.id not in add_on.compatible_service_ids:
            raise ValidationError(f"Add-on '{add_on.name}' cannot be booked with '{service.name}'")
        add_ons.append(add_on)

    return BookingQuote(
        service=service,
        add_ons=add_ons,
        duration_minutes=service.duration_minutes + sum(a.duration_minutes for a in add_ons),
        price=service.price + sum((a.price for a in add_ons), Decimal("0")),
    )


# =============================================================================
# Helpers
# =============================================================================

def _load_services(db: Session, service_ids: Iterable[UUID]) -> list[Service]:
    services = []
    for service_id in dict.fromkeys(service_ids):
        service = db.get(Service, service_id)
        if not service:
            raise ValidationError(f"Service {service_id} does not exist")
        services.append(service)
    return services


def _validate_duration(minutes: int, allow_zero: bool) -> None:
    if minutes < 0 or (minutes == 0 and not allow_zero):
        raise ValidationError("Duration must be a positive number of minutes")


def _validate_price(price: Decimal) -> None:
    if price < 0:
        raise ValidationError("Price cannot be negative")
