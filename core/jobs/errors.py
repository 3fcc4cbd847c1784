"""Archive job error types.

Step functions raise these to fail the current job; the archive
manager catches them at the orchestration boundary, moves the job to
the error state and records the message.
"""

from typing import Any, Dict, Optional


class ArchiveError(Exception):
    """Base class for job-level archive errors."""

    def __init__(
        self,
        message: str,
        code: str = "archive_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class InvalidStateTransition(ArchiveError):
    """An event was applied that the current state does not allow."""

    def __init__(self, state_name: str, event: str):
        super().__init__(
            message=f"Cannot apply '{event}' while the archive is '{state_name}'",
            code="invalid_state_transition",
            details={"state": state_name, "event": event},
        )


class UnexpectedArchiveError(ArchiveError):
    """Something outside the known failure modes went wrong during a step."""

    def __init__(self, cause: Optional[BaseException] = None):
        details = {"cause": repr(cause)} if cause is not None else None
        super().__init__(
            message="An unknown error has occurred",
            code="unexpected_error",
            details=details,
        )
