"""Meeting API error taxonomy.

Every failure a meeting handler reports is one of three kinds, each bound to
an HTTP status and to the JSON key its message is returned under:

- ValidationFailure (400, ``error``): schema violations, rejected writes
- NotFound (404, ``message``): no matching (undeleted) record
- InternalFailure (500, ``error``): store or connectivity errors

The exception handler registered in ``src.app.main`` renders them as
``{key: message}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class MeetingError(Exception):
    """Base class for errors surfaced by the meeting API."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    body_key: str = "error"

    def __init__(self, message: str, *, body_key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if body_key is not None:
            self.body_key = body_key

    def to_body(self) -> dict[str, Any]:
        return {self.body_key: self.message}


class ValidationFailure(MeetingError):
    status_code = status.HTTP_400_BAD_REQUEST
    body_key = "error"


class NotFound(MeetingError):
    status_code = status.HTTP_404_NOT_FOUND
    body_key = "message"


class InternalFailure(MeetingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    body_key = "error"


class NothingDeleted(NotFound):
    """Bulk soft-delete matched no undeleted record."""

    def to_body(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}
