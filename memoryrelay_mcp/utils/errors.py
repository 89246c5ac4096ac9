"""
Exception types raised by the MemoryRelay API client.

Messages are sanitized by whoever raises the error; instances are never
rewritten after construction.
"""

from typing import Optional


class MemoryRelayError(Exception):
    """Base class for all client-side failures."""

    status_code: Optional[int] = None
    retryable = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MemoryRelayError):
    """Input failed a local check; raised before any network call."""

    retryable = False


class APIError(MemoryRelayError):
    """The API answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class BadRequestError(APIError):
    """400: treated as a client bug, not a transient condition."""

    retryable = False


class AuthenticationError(APIError):
    """401 or 403."""

    retryable = False


class NotFoundError(APIError):
    """404."""

    retryable = False


class RateLimitError(APIError):
    """429, raised after the Retry-After wait has already been served."""

    def __init__(self, message: str, retry_after: float):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class RequestTimeoutError(MemoryRelayError):
    """No response within the configured timeout."""

    def __init__(self, message: str, timeout_ms: int):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class NetworkError(MemoryRelayError):
    """Transport failure: connection refused, DNS, reset, malformed response."""
    pass


_STATUS_ERRORS = {
    400: BadRequestError,
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
}


def error_for_status(status_code: int, message: str) -> APIError:
    """Build the typed error for a non-success status (other than 429)."""
    error_class = _STATUS_ERRORS.get(status_code, APIError)
    return error_class(message, status_code=status_code)
