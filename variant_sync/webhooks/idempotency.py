"""Webhook delivery dedup backed by Redis.

Shopify re-delivers a webhook until it gets a 2xx, each time with the same
``X-Shopify-Webhook-Id``. Seen ids are kept for 24h under
``webhook:seen:shopify:{id}``. If Redis is down the delivery is allowed
through: syncs are idempotent, so a repeat only costs API calls.
"""

from __future__ import annotations

import logging

import redis

from variant_sync.config import get_settings

logger = logging.getLogger(__name__)

_DEDUP_TTL_SECONDS = 86400
_KEY_PREFIX = "webhook:seen:shopify"
# Seconds; an unreachable Redis must fail open quickly
_SOCKET_TIMEOUT = 2.0


def _get_redis() -> redis.Redis:
    return redis.from_url(
        get_settings().redis_url,
        decode_responses=True,
        socket_connect_timeout=_SOCKET_TIMEOUT,
        socket_timeout=_SOCKET_TIMEOUT,
    )


def is_duplicate(webhook_id: str | None) -> bool:
    """Atomically mark *webhook_id* as seen; True if it was already seen."""
    if not webhook_id:
        return False

    key = f"{_KEY_PREFIX}:{webhook_id}"
    try:
        was_set = _get_redis().set(key, "1", nx=True, ex=_DEDUP_TTL_SECONDS)
    except redis.RedisError:
        logger.warning("Redis unavailable for webhook dedup, allowing %s", webhook_id, exc_info=True)
        return False

    if not was_set:
        logger.info("Duplicate webhook delivery ignored: %s", webhook_id)
        return True
    return False


def release(webhook_id: str | None) -> None:
    """Forget *webhook_id* so Shopify's next re-delivery is processed."""
    if not webhook_id:
        return
    try:
        _get_redis().delete(f"{_KEY_PREFIX}:{webhook_id}")
    except redis.RedisError:
        logger.warning("Failed to release webhook id %s", webhook_id)
