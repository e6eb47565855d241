"""Reminders router - inspect due reminders."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.clock import Clock
from booking_engine.core.deps import get_clock, get_db
from booking_engine.services import reminder_service

router = APIRouter()


@router.get("/due", response_model=list[UUID])
def list_due_reminders(
    now: datetime | None = Query(None, description="Evaluate at this instant (defaults to current time)"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return reminder_service.due_reminders(db, now or clock.now())
