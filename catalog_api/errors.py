"""Typed failures raised by the service layer.

Every error carries a machine-readable ``kind``, a human ``message`` and an
optional ``detail`` payload. The HTTP layer renders them through a single
error handler registered in ``create_app``.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for all failures the core reports to its caller."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "kind": self.kind}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class ValidationError(ServiceError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = 400


class Unauthorized(ServiceError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404


class Conflict(ServiceError):
    """State change blocked by dependent data or a uniqueness rule."""

    kind = "conflict"
    status_code = 409


class InternalError(ServiceError):
    """Unexpected persistence failure, passed through without retry."""

    kind = "internal_error"
    status_code = 500


class ServiceUnavailable(ServiceError):
    """The database is not reachable."""

    kind = "service_unavailable"
    status_code = 503
