"""Exception hierarchy for the Shopify boundary and the retry layer."""

from __future__ import annotations


class VariantSyncError(Exception):
    """Base exception for variant stock sync errors."""


class ShopifyAPIError(VariantSyncError):
    """Shopify answered with an error status or top-level GraphQL errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ThrottledError(ShopifyAPIError):
    """Shopify asked us to slow down.

    ``retry_after`` is the suggested wait in seconds (HTTP 429 with a
    ``Retry-After`` header) or ``None`` for in-band GraphQL throttling.
    """

    def __init__(
        self,
        message: str = "Throttled",
        retry_after: float | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after


class RateLimitExceeded(VariantSyncError):
    """Raised when a call is still throttled after the last retry attempt."""

    def __init__(self, attempts: int, operation: str = "") -> None:
        target = f" for {operation}" if operation else ""
        super().__init__(f"Rate limit still exceeded{target} after {attempts} attempts")
        self.attempts = attempts
        self.operation = operation
