"""Typed domain errors raised by the core services.

Each error carries a stable ``kind`` and the HTTP status the API layer maps
it to. The websocket layer reports them as ``error`` envelopes instead.
"""

from __future__ import annotations


class WorkshopError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotFound(WorkshopError):
    kind = "not_found"
    status_code = 404


class Unauthorized(WorkshopError):
    """Caller is authenticated but lacks the role or ownership."""

    kind = "unauthorized"
    status_code = 403


class Unauthenticated(WorkshopError):
    kind = "unauthenticated"
    status_code = 401


class InvalidTransition(WorkshopError):
    kind = "invalid_transition"
    status_code = 409


class ValidationError(WorkshopError):
    kind = "validation_error"
    status_code = 422


class Conflict(WorkshopError):
    kind = "conflict"
    status_code = 409
