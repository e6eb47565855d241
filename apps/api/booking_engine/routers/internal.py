"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from booking_engine.core.clock import Clock
from booking_engine.core.config import settings
from booking_engine.core.deps import get_clock, get_db, get_notification_gateway
from booking_engine.services import reminder_service
from booking_engine.services.notification_service import NotificationGateway


router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)):
    """Verify the internal secret header."""
    if not settings.INTERNAL_SECRET:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != settings.INTERNAL_SECRET:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


class ReminderRunResponse(BaseModel):
    checked: int
    sent: int
    failed: int
    skipped: int


@router.post(
    "/reminders",
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_internal_secret)],
)
def run_reminders(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    """Send every due appointment reminder once."""
    return reminder_service.process_due_reminders(db, gateway, clock.now())
