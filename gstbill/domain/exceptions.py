# gstbill/domain/exceptions.py
"""
Error taxonomy for the tax engine.

Every failure the engine can produce is one of these; each is a local,
caller-recoverable condition. ``status_code`` is used by the HTTP layer.
"""

from __future__ import annotations

from typing import Any


class GSTEngineError(Exception):
    """Base class for all engine errors."""

    code = "gst_engine_error"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class ValidationError(GSTEngineError):
    """Malformed period, negative / non-finite line values, empty line list."""

    code = "validation_error"
    status_code = 422


class DuplicateFilingError(GSTEngineError):
    """A detailed or summary filing already exists for (tenant, period)."""

    code = "duplicate_filing"
    status_code = 409

    def __init__(self, form_type: str, tenant_id: str, period: str) -> None:
        super().__init__(
            f"{form_type} already exists for period {period}",
            {"form_type": form_type, "tenant_id": tenant_id, "period": period},
        )
        self.form_type = form_type
        self.tenant_id = tenant_id
        self.period = period


class MissingPrerequisiteError(GSTEngineError):
    """Summary generation requested before the detailed filing exists."""

    code = "missing_prerequisite"
    status_code = 409


class ConcurrencyConflictError(GSTEngineError):
    """A uniqueness constraint rejected a concurrent write; re-read and decide again."""

    code = "concurrency_conflict"
    status_code = 409


class InvalidFilingTransitionError(GSTEngineError):
    """Raised when a filing status transition is not allowed."""

    code = "invalid_transition"
    status_code = 409
