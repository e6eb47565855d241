"""
Background worker that sends appointment reminders.

Usage:
    python -m booking_engine.worker

Polls every REMINDER_POLL_INTERVAL_SECONDS. Several workers may run at once;
each reminder is claimed before it is sent.
"""

import asyncio
import logging

from booking_engine.core.clock import Clock, SystemClock
from booking_engine.core.config import settings
from booking_engine.core.structured_logging import build_log_context, configure_logging
from booking_engine.db.session import SessionLocal
from booking_engine.services import reminder_service
from booking_engine.services.notification_service import LoggingNotificationGateway, NotificationGateway

logger = logging.getLogger(__name__)


def run_once(clock: Clock, gateway: NotificationGateway) -> dict:
    """One polling pass."""
    with SessionLocal() as db:
        return reminder_service.process_due_reminders(db, gateway, clock.now())


async def worker_loop(
    clock: Clock | None = None,
    gateway: NotificationGateway | None = None,
    poll_interval_seconds: int | None = None,
) -> None:
    """Main worker loop - polls for due reminders and sends them."""
    clock = clock or SystemClock()
    gateway = gateway or LoggingNotificationGateway()
    poll_interval_seconds = poll_interval_seconds or settings.REMINDER_POLL_INTERVAL_SECONDS
    logger.info("Reminder worker starting (poll interval: %ss)", poll_interval_seconds)

    while True:
        try:
            stats = run_once(clock, gateway)
            if stats["checked"]:
                logger.info("Reminder pass: %s", stats)
        except Exception:
            logger.exception(
                "Error in reminder worker loop",
                extra=build_log_context(route="worker", method="background"),
            )
        await asyncio.sleep(poll_interval_seconds)


def main() -> None:
    """Entry point for the worker."""
    configure_logging()
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")


if __name__ == "__main__":
    main()
