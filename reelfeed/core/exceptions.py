"""
Exceptions and Handlers

Error taxonomy for the fetch pipeline and playback, plus the FastAPI
exception handler that renders them.
"""

from typing import Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


BLOCKED_MESSAGE = "The video source is blocking requests right now. Please try again later."
GENERIC_MESSAGE = "Couldn't load videos."


class FeedClientException(Exception):
    """Base exception for feed client errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(FeedClientException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class InvalidQueryError(FeedClientException):
    """Query term is empty after normalization."""

    def __init__(self, term: str):
        super().__init__(
            message=f"Invalid query: {term!r}",
            status_code=422
        )


# =========================================================================
# Proxy attempt failures (recovered locally by the fallback chain)
# =========================================================================

class FetchAttemptError(FeedClientException):
    """A single proxy endpoint attempt failed."""

    kind = "attempt"

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(message=f"{endpoint}: {detail}", status_code=502)


class NetworkFault(FetchAttemptError):
    """Transport failure, timeout or non-success status."""

    kind = "network"


class UpstreamBlocked(FetchAttemptError):
    """Relay returned a markup page instead of structured data."""

    kind = "blocked"


class MalformedResponse(FetchAttemptError):
    """Body did not parse or lacked the expected container."""

    kind = "malformed"


class FeedFetchError(FeedClientException):
    """
    Every proxy endpoint failed for one logical fetch.

    ``kind`` is "blocked" when any attempt hit a blocking page, otherwise
    "generic". ``diagnostic`` keeps the most recent attempt's message.
    """

    def __init__(self, kind: str, diagnostic: str):
        self.kind = kind
        self.diagnostic = diagnostic
        message = BLOCKED_MESSAGE if kind == "blocked" else GENERIC_MESSAGE
        super().__init__(message=message, status_code=503)

    @classmethod
    def from_failures(cls, failures: Iterable[FetchAttemptError]) -> "FeedFetchError":
        failures = list(failures)
        blocked = any(isinstance(f, UpstreamBlocked) for f in failures)
        diagnostic = failures[-1].message if failures else "no proxy endpoints configured"
        return cls("blocked" if blocked else "generic", diagnostic)


# =========================================================================
# Playback
# =========================================================================

class AutoplayRejected(FeedClientException):
    """Platform refused a programmatic play request."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(message=reason or "autoplay rejected", status_code=409)


class PlaybackStateError(FeedClientException):
    """Illegal playback state transition."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Illegal playback transition: {current} -> {target}",
            status_code=409
        )


async def feed_exception_handler(
    request: Request,
    exc: FeedClientException
) -> JSONResponse:
    """Handle FeedClientException and return JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "status_code": exc.status_code,
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(FeedClientException, feed_exception_handler)
