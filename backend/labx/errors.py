"""Typed failures raised by the service layer.

Services raise these; ``labx.main`` maps each class to an HTTP status. Only
the best-effort calendar sync path catches ``CalendarError`` and carries on.
"""
from typing import Any, Optional


class LabxError(Exception):
    """Base class for every domain failure."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Any:
        return self.message


class ValidationError(LabxError):
    """Malformed or missing required input. Never retried."""

    status_code = 400


class AuthorizationError(LabxError):
    """Actor may not perform the requested transition."""

    status_code = 403


class NotFoundError(LabxError):
    status_code = 404


class StateError(LabxError):
    """Transition attempted from the wrong status."""

    status_code = 409


class ConflictError(LabxError):
    """Overlap or concurrent modification detected."""

    status_code = 409

    def __init__(self, message: str, conflicts: Optional[list[dict]] = None):
        super().__init__(message)
        self.conflicts = conflicts or []

    def to_detail(self) -> Any:
        return {"message": self.message, "conflicts": self.conflicts}


# ── External calendar ──────────────────────────────────────────────
class CalendarError(LabxError):
    status_code = 502


class NetworkError(CalendarError):
    """Transport failure, timeout, or unexpected response from the calendar API."""


class AuthError(CalendarError):
    """Calendar API rejected the supplied credentials."""

    status_code = 401


class UnauthenticatedError(CalendarError):
    """No calendar credentials were supplied at all."""

    status_code = 401
