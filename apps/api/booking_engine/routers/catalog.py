"""Catalog router - services and add-ons."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_db
from booking_engine.schemas.catalog import (
    AddOnCreate,
    AddOnRead,
    AddOnUpdate,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from booking_engine.services import catalog_service

router = APIRouter()


def _add_on_to_read(add_on) -> AddOnRead:
    """Convert AddOn model to read schema."""
    return AddOnRead(
        id=add_on.id,
        name=add_on.name,
        description=add_on.description,
        duration_minutes=add_on.duration_minutes,
        price=add_on.price,
        compatible_service_ids=sorted(add_on.compatible_service_ids, key=str),
        is_active=add_on.is_active,
    )


# =============================================================================
# Services
# =============================================================================

@router.get("/services", response_model=list[ServiceRead])
def list_services(
    active_only: bool = Query(True),
    db: Session = Depends(get_db),
):
    return catalog_service.list_services(db, active_only=active_only)


@router.post("/services", response_model=ServiceRead, status_code=201)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    return catalog_service.create_service(
        db,
        name=data.name,
        duration_minutes=data.duration_minutes,
        price=data.price,
        description=data.description,
        is_active=data.is_active,
    )


@router.get("/services/{service_id}", response_model=ServiceRead)
def get_service(service_id: UUID, db: Session = Depends(get_db)):
    return catalog_service.get_service(db, service_id)


@router.patch("/services/{service_id}", response_model=ServiceRead)
def update_service(service_id: UUID, data: ServiceUpdate, db: Session = Depends(get_db)):
    return catalog_service.update_service(db, service_id, data.model_dump(exclude_unset=True))


# =============================================================================
# Add-ons
# =============================================================================

@router.get("/add-ons", response_model=list[AddOnRead])
def list_add_ons(
    service_id: UUID | None = Query(None, description="Only add-ons bookable with this service"),
    active_only: bool = Query(True),
    db: Session = Depends(get_db),
):
    add_ons = catalog_service.list_add_ons(db, service_id=service_id, active_only=active_only)
    return [_add_on_to_read(a) for a in add_ons]


@router.post("/add-ons", response_model=AddOnRead, status_code=201)
def create_add_on(data: AddOnCreate, db: Session = Depends(get_db)):
    add_on = catalog_service.create_add_on(
        db,
        name=data.name,
        price=data.price,
        duration_minutes=data.duration_minutes,
        description=data.description,
        compatible_service_ids=data.compatible_service_ids,
        is_active=data.is_active,
    )
    return _add_on_to_read(add_on)


@router.patch("/add-ons/{add_on_id}", response_model=AddOnRead)
def update_add_on(add_on_id: UUID, data: AddOnUpdate, db: Session = Depends(get_db)):
    add_on = catalog_service.update_add_on(db, add_on_id, data.model_dump(exclude_unset=True))
    return _add_on_to_read(add_on)
