"""
Custom exception hierarchy for catalog sync.

Exceptions are categorized as:
- RetryableError: Transient errors the retrying client may retry
- NonRetryableError: Permanent errors that should fail immediately

The retrying client retries only RetryableError subclasses; everything
else propagates to the caller on the first occurrence.
"""
from typing import Any, Optional


class CatalogSyncException(Exception):
    """Base exception for catalog sync."""
    pass


# ============================================
# RETRYABLE ERRORS
# ============================================
class RetryableError(CatalogSyncException):
    """
    Base class for errors that may succeed on retry.

    - HTTP 429 / 5xx responses
    - Timeouts, connection resets, DNS failures
    - GraphQL THROTTLED responses
    """
    pass


class ThrottledError(RetryableError):
    """GraphQL response reported a THROTTLED error inside a 200 body."""

    def __init__(self, errors: list, url: Optional[str] = None):
        self.errors = errors
        self.url = url
        super().__init__(f"GraphQL throttled: {errors}")


# ============================================
# NON-RETRYABLE ERRORS
# ============================================
class NonRetryableError(CatalogSyncException):
    """
    Base class for errors that should NOT be retried.

    - Validation failures returned by a write
    - Malformed responses
    - Configuration / setup problems
    """
    pass


class ResponseDecodeError(NonRetryableError):
    """Response body did not match the expected shape."""

    def __init__(self, what: str, detail: Any = None):
        self.what = what
        self.detail = detail
        message = f"Malformed {what} response"
        if detail is not None:
            message = f"{message}: {detail}"
        super().__init__(message)


class MutationError(NonRetryableError):
    """A write returned userErrors; the item failed, the run continues."""

    def __init__(self, operation: str, user_errors: list):
        self.operation = operation
        self.user_errors = user_errors
        details = ", ".join(
            f"({e.get('field')}) {e.get('message')}" if isinstance(e, dict) else str(e)
            for e in user_errors
        )
        super().__init__(f"{operation} failed: {details}")


class SetupError(NonRetryableError):
    """Fatal setup problem; the run aborts before any item work."""
    pass


# ============================================
# CLIENT ERRORS (carry full request context)
# ============================================
class ClientError(CatalogSyncException):
    """
    Outbound call failed.

    Carries status code, response body (if any), attempt count and URL
    so callers can log the full context.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        attempts: int = 1,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        parts.append(f"attempts={self.attempts}")
        if self.body:
            parts.append(f"body={self.body[:500]}")
        return " | ".join(parts)


class TransientClientError(ClientError, RetryableError):
    """Retryable failure, or the retry budget was exhausted on one."""
    pass


class PermanentClientError(ClientError, NonRetryableError):
    """Failure that retrying cannot fix (4xx other than 429, bad request, ...)."""
    pass


class GraphQLError(PermanentClientError):
    """Non-throttle GraphQL errors embedded in a 200 response."""

    def __init__(self, errors: list, url: Optional[str] = None, attempts: int = 1):
        self.errors = errors
        super().__init__(f"GraphQL errors: {errors}", status_code=200, attempts=attempts, url=url)


class FetchError(CatalogSyncException):
    """The paginated catalog read could not complete."""

    def __init__(self, message: str, pages_fetched: int = 0):
        self.pages_fetched = pages_fetched
        super().__init__(message)
