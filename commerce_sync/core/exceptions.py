"""
Custom exception hierarchy for Commerce Sync.

Exceptions are categorized as:
- RetryableError: Transient errors where a later whole-push retry may succeed
- NonRetryableError: Permanent errors that need a data or configuration fix

The push orchestrator never retries on its own; the split tells the caller
(HTTP client, Celery task, operator) whether re-running a push is worthwhile.
"""
from typing import List, Optional


class CommerceSyncException(Exception):
    """Base exception for Commerce Sync."""
    pass


# ============================================
# RETRYABLE ERRORS
# ============================================
class RetryableError(CommerceSyncException):
    """
    Base class for errors where retrying might succeed:
    - Network timeouts
    - Rate limits that outlasted the gateway backoff
    - Temporary service unavailability
    """
    pass


class ExternalAPIError(RetryableError):
    """
    Error from an external API (Shopify, Supabase).

    Typically transient - the external service might recover.
    """
    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} API error: {message}")


class RateLimitError(RetryableError):
    """Rate limit still exceeded after the gateway backoff budget."""
    def __init__(self, service: str, retry_after: int = 60):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"{service} rate limited. Retry after {retry_after}s")


class ConnectionTimeoutError(RetryableError):
    """Connection or timeout error - typically transient."""
    pass


# ============================================
# NON-RETRYABLE ERRORS
# ============================================
class NonRetryableError(CommerceSyncException):
    """
    Base class for errors where retrying won't help:
    - Validation failures
    - Missing data
    - Authentication errors (need config fix)
    """
    pass


class ValidationError(NonRetryableError):
    """Invalid input data - retrying won't help."""
    pass


class ProductNotFoundError(NonRetryableError):
    """Product not found in the catalog or on the remote store."""
    pass


class StoreNotFoundError(NonRetryableError):
    """Store connection descriptor not found."""
    pass


class AuthenticationError(NonRetryableError):
    """
    API authentication failed or credentials are missing.

    Needs configuration fix, not retry.
    """
    pass


class ShopifyUserError(NonRetryableError):
    """
    Field-level validation errors reported inside a successful response.

    ``errors`` holds the normalised "field.path: message" strings.
    """
    def __init__(self, operation: str, errors: List[str], prefix: Optional[str] = None):
        self.operation = operation
        self.errors = list(errors)
        label = prefix or f"{operation} failed"
        super().__init__(f"{label}: {', '.join(self.errors)}")


class LocationNotFoundError(NonRetryableError):
    """No fulfillment location could be resolved for inventory."""
    pass


class PushStepError(CommerceSyncException):
    """One saga step failed; carries the step number and name."""
    def __init__(self, step: int, name: str, message: str):
        self.step = step
        self.name = name
        super().__init__(f"Step {step} ({name}) failed: {message}")
