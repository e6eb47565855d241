"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from booking_engine.core.config import settings


def build_log_context(
    *,
    appointment_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if appointment_id:
        context["appointment_id"] = appointment_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process or the worker."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
