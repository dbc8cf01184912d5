"""
Application error taxonomy.

Every error raised by services, the policy engine or adapters derives from
``AppError`` and carries the HTTP status it maps to. The exception handlers
in ``main.py`` turn them into the uniform envelope::

    {"success": false, "message": "...", "detail": ...}

``retryable`` marks failures a client may retry on idempotent reads
(timeouts and upstream outages). Nothing is retried automatically.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base application error."""

    code = "INTERNAL_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to the API error envelope."""
        return {
            "success": False,
            "message": self.message,
            "detail": self.detail,
        }


class Unauthenticated(AppError):
    """No credential, or the credential is invalid or expired (401)."""

    code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Not authenticated", detail: Optional[Any] = None):
        super().__init__(message, detail)


class Forbidden(AppError):
    """Valid credential, insufficient privilege (403)."""

    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Permission denied", detail: Optional[Any] = None):
        super().__init__(message, detail)


class NotFound(AppError):
    """Referenced entity is absent (404)."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class InvalidReference(NotFound):
    """A write refers to an entity that does not exist."""

    code = "INVALID_REFERENCE"


class InvalidInput(AppError):
    """Malformed filter or body (400)."""

    code = "INVALID_INPUT"
    status_code = 400


class PartialFailure(AppError):
    """A multi-step write could not be applied as a unit."""

    code = "PARTIAL_FAILURE"
    status_code = 500


class UpstreamFailure(AppError):
    """Data store or payment provider failed (502)."""

    code = "UPSTREAM_FAILURE"
    status_code = 502
    retryable = True


class Timeout(AppError):
    """Data store or payment provider did not answer in time (504)."""

    code = "TIMEOUT"
    status_code = 504
    retryable = True
