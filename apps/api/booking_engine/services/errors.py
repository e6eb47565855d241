"""Exceptions raised by the scheduling services.

Routers never catch these individually; ``main.py`` maps the three base
classes to HTTP 400, 404 and 409.
"""


class SchedulingError(Exception):
    """Base exception for scheduling errors."""

    pass


class ValidationError(SchedulingError):
    """Input is malformed or violates a booking rule (HTTP 400)."""

    pass


class NotFoundError(SchedulingError):
    """Referenced entity does not exist (HTTP 404)."""

    pass


class ConflictError(SchedulingError):
    """Request conflicts with current state (HTTP 409)."""

    pass


class SlotUnavailableError(ConflictError):
    """Requested interval overlaps a blocking appointment."""

    pass


class InvalidTransitionError(ConflictError):
    """Event is not allowed from the current status."""

    pass


class PolicyError(ConflictError):
    """Business policy forbids the operation."""

    pass


class TerminalStateError(PolicyError):
    """Appointment is in a terminal status and cannot change."""

    pass


class DuplicateReferenceError(ConflictError):
    """Generated booking reference is already taken."""

    pass
