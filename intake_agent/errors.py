"""Errors surfaced to API clients.

Each carries the HTTP status code and the human-readable message that the
server returns in its ``{"error": ..., "timestamp": ...}`` envelope.
"""

from __future__ import annotations


class IntakeError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Failed to process your request"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(IntakeError):
    status_code = 400
    default_message = "Bad request"


class SessionNotFoundError(IntakeError):
    status_code = 404
    default_message = "Session not found"


class SessionConflictError(IntakeError):
    """Raised when a session changed between load and save."""

    status_code = 409
    default_message = "Session was modified by another request. Please retry."


class SessionStoreError(IntakeError):
    """Raised when the session store itself fails."""

    status_code = 500
    default_message = "Failed to access session storage"


class UpstreamError(IntakeError):
    """The completion service failed for a reason we don't map specifically."""

    status_code = 500
    default_message = "Failed to process your request"


class UpstreamAuthError(UpstreamError):
    status_code = 401
    default_message = "Authentication failed. Check your API key."


class UpstreamRateLimitError(UpstreamError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."
