"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from booking_engine.core.clock import SystemClock
from booking_engine.core.config import settings
from booking_engine.core.deps import get_db
from booking_engine.core.structured_logging import build_log_context, configure_logging
from booking_engine.services.errors import ConflictError, NotFoundError, SchedulingError, ValidationError
from booking_engine.services.events import EventBus
from booking_engine.services.notification_service import LoggingNotificationGateway, NotificationObserver

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send client contact details to Sentry
    )
    logger.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Booking API",
    description="Appointment scheduling and availability for a single provider",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Collaborators, replaced in tests
notifier = LoggingNotificationGateway()
app.state.clock = SystemClock()
app.state.notifier = notifier
app.state.events = EventBus([NotificationObserver(notifier)])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Internal-Secret"],
)


# ============================================================================
# Error Handlers
# ============================================================================

def _error_response(request: Request, status_code: int, exc: SchedulingError) -> JSONResponse:
    logger.info(
        "%s %s -> %s: %s",
        request.method,
        request.url.path,
        status_code,
        exc,
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(request, 400, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(request, 404, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error_response(request, 409, exc)


# ============================================================================
# Routers
# ============================================================================

from booking_engine.routers import appointments, availability, catalog, internal, reminders
from booking_engine.routers import settings as settings_router

app.include_router(availability.router, prefix="/availability", tags=["availability"])
app.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
app.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
app.include_router(catalog.router, tags=["catalog"])
app.include_router(settings_router.router, prefix="/settings", tags=["settings"])
# Internal endpoints (scheduled/cron jobs - protected by INTERNAL_SECRET)
app.include_router(internal.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    db.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
