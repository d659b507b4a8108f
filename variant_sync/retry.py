"""Bounded exponential backoff for throttled Shopify calls.

Only throttling is retried: HTTP 429 (honouring ``Retry-After``) and
in-band GraphQL "Throttled" errors. Anything else propagates on the first
failure. When the last attempt is still throttled, ``RateLimitExceeded``
is raised so callers never loop forever.
"""

from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable

from variant_sync.exceptions import RateLimitExceeded, ThrottledError

logger = logging.getLogger(__name__)


def retry_with_backoff(
    max_retries: int = 5,
    base_delay: float = 2.0,
    max_delay: float = 30.0,
    jitter: float = 0.3,
) -> Callable:
    """Decorator: re-issue a throttled call with exponential backoff + jitter.

    Args:
        max_retries: Maximum number of retry attempts after the first call.
        base_delay: Wait before the first retry when Shopify suggests none.
        max_delay: Cap on any single wait, including ``Retry-After``.
        jitter: Jitter factor (0.0-1.0) applied to computed waits.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return fn(*args, **kwargs)
                except ThrottledError as e:
                    if attempt == max_retries:
                        logger.error(
                            "Giving up on %s after %d throttled attempts",
                            fn.__name__,
                            attempt + 1,
                        )
                        raise RateLimitExceeded(attempt + 1, fn.__name__) from e
                    delay = _compute_delay(attempt, base_delay, max_delay, jitter, e.retry_after)
                    logger.warning(
                        "Throttled, retry %d/%d for %s in %.1fs",
                        attempt + 1,
                        max_retries,
                        fn.__name__,
                        delay,
                    )
                    time.sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator


def _compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    jitter: float,
    retry_after: float | None = None,
) -> float:
    """Compute delay with exponential backoff + jitter, preferring Retry-After."""
    if retry_after is not None:
        return max(0.0, min(retry_after, max_delay))

    delay = min(base_delay * (2**attempt), max_delay)
    jitter_amount = delay * jitter
    delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.1, delay)
