"""Error taxonomy for the blog API and sanitized logging for server-side failures."""

from __future__ import annotations

import uuid

import structlog

log = structlog.get_logger()


class BlogApiError(Exception):
    """Base class for errors surfaced to clients with a status code."""

    status_code = 500
    error = "BlogApiError"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BlogApiError):
    """Missing or malformed request input."""

    status_code = 400
    error = "ValidationError"


class NotFound(BlogApiError):
    """The post id does not resolve to a stored document."""

    status_code = 404
    error = "NotFound"

    def __init__(self, post_id: str) -> None:
        super().__init__(f"post '{post_id}' not found")
        self.post_id = post_id


class StoreError(BlogApiError):
    """Document store connection or query failure."""

    status_code = 500
    error = "StoreError"


def log_and_sanitize_error(error: Exception, context: str) -> tuple[str, str]:
    """Log full error details server-side and return a sanitized client message.

    Returns ``(sanitized_message, error_id)``; the error id correlates the
    client response with the server log entry.
    """
    error_id = uuid.uuid4().hex[:8]
    log.error(
        "request_failed",
        context=context,
        error_id=error_id,
        error_type=type(error).__name__,
        error=str(error),
        exc_info=error,
    )
    return f"{context} failed. Please try again later. (Error ID: {error_id})", error_id
