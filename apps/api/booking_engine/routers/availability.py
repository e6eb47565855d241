"""Availability router - offerable start times for a booking."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.clock import Clock
from booking_engine.core.deps import get_clock, get_db
from booking_engine.schemas.appointment import SlotAvailabilityRead
from booking_engine.services import slot_service

router = APIRouter()


@router.get("", response_model=list[SlotAvailabilityRead])
def get_availability(
    day: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    service_id: UUID = Query(...),
    add_on_ids: list[UUID] = Query(default=[]),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Candidate start times for a service (plus add-ons) on a date.

    Each slot is flagged available or taken. Closed and past dates return [].
    """
    slots = slot_service.get_availability(db, day, service_id, add_on_ids, clock.now())
    return [SlotAvailabilityRead(time=slot.time, available=slot.available) for slot in slots]
