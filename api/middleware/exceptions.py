"""Errors raised by the API routes, and the JSON they turn into.

Every error leaves the API as:
{
    "error": {
        "code": "NOT_FOUND",
        "message": "Setting 'nope' not found",
        "details": {...}  # only when there is something to add
    }
}

Archive job errors (core.jobs.errors) use lower-case codes; they are
upper-cased on the way out so clients see a single code style.
"""

from typing import Any, Dict, Optional

from core.jobs.errors import ArchiveError, InvalidStateTransition


class APIError(Exception):
    """A request the API refuses, with its HTTP status and error code."""

    status_code = 500
    code = "API_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> Dict[str, Any]:
        return format_error_response(self.code, self.message, self.details)


class ValidationError(APIError):
    """A request body, query parameter or setting value is not acceptable."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class NotFoundError(APIError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} '{identifier}' not found" if identifier else f"{resource} not found"
        super().__init__(message, details={"resource": resource, "identifier": identifier})


class ConflictError(APIError):
    """The archive job's current state does not allow the requested action."""

    status_code = 409
    code = "CONFLICT"

    @classmethod
    def from_transition(cls, error: InvalidStateTransition) -> "ConflictError":
        return cls(error.message, details=error.details)


def archive_error_status(error: ArchiveError) -> int:
    """409 when the job refused an action, 500 when a step failed."""
    return 409 if isinstance(error, InvalidStateTransition) else 500


def format_error_response(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    response = {"error": {"code": code.upper(), "message": message}}
    if details:
        response["error"]["details"] = details
    return response
