"""Shopify GraphQL Admin API transport.

Posts queries through an ``httpx.Client`` and classifies every response
as data, throttling (``ThrottledError``, retried transparently) or a hard
failure (``ShopifyAPIError``).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from variant_sync.config import Settings, get_settings
from variant_sync.exceptions import ShopifyAPIError, ThrottledError
from variant_sync.retry import retry_with_backoff

logger = logging.getLogger(__name__)

INVENTORY_ITEM_GID = "gid://shopify/InventoryItem/{}"
PRODUCT_VARIANT_GID = "gid://shopify/ProductVariant/{}"


def inventory_item_gid(numeric_id: int | str) -> str:
    """Global ID for a numeric inventory item id from a webhook payload."""
    return INVENTORY_ITEM_GID.format(numeric_id)


def product_variant_gid(numeric_id: int | str) -> str:
    """Global ID for a numeric variant id from a webhook payload."""
    return PRODUCT_VARIANT_GID.format(numeric_id)


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _is_throttle_error(error: dict) -> bool:
    message = str(error.get("message", "")).lower()
    code = str((error.get("extensions") or {}).get("code", "")).upper()
    return "throttled" in message or code == "THROTTLED"


class ShopifyGraphQL:
    """Minimal GraphQL client for one Shopify store."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = "2024-10",
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
        max_attempts: int = 5,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
    ) -> None:
        self.endpoint = f"https://{store_domain}/admin/api/{api_version}/graphql.json"
        self._access_token = access_token
        self._http = http_client or httpx.Client(timeout=timeout)
        self._send = retry_with_backoff(
            max_retries=max(0, max_attempts - 1),
            base_delay=base_delay,
            max_delay=max_delay,
        )(self._send_once)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> ShopifyGraphQL:
        s = settings or get_settings()
        return cls(
            store_domain=s.shopify_store_domain,
            access_token=s.shopify_access_token,
            api_version=s.shopify_api_version,
            timeout=s.http_timeout,
            max_attempts=s.retry_max_attempts,
            base_delay=s.retry_base_delay,
            max_delay=s.retry_max_delay,
            **kwargs,
        )

    def execute(self, query: str, variables: dict | None = None) -> dict:
        """Run *query* and return its ``data`` object.

        Raises:
            RateLimitExceeded: still throttled after the last retry.
            ShopifyAPIError: error status or non-throttling GraphQL errors.
            httpx.HTTPError: transport failure.
        """
        return self._send(query, variables)

    def close(self) -> None:
        self._http.close()

    def _send_once(self, query: str, variables: dict | None = None) -> dict:
        response = self._http.post(
            self.endpoint,
            json={"query": query, "variables": variables or {}},
            headers={
                "X-Shopify-Access-Token": self._access_token,
                "Content-Type": "application/json",
            },
        )

        if response.status_code == 429:
            raise ThrottledError(
                "Shopify API 429",
                retry_after=_parse_retry_after(response),
                status_code=429,
            )

        if response.is_error:
            raise ShopifyAPIError(
                f"Shopify API {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        result = response.json()
        errors = result.get("errors") or []
        if isinstance(errors, (str, dict)):
            errors = [errors if isinstance(errors, dict) else {"message": errors}]
        if errors:
            if any(_is_throttle_error(e) for e in errors):
                raise ThrottledError("Shopify GraphQL: Throttled")
            messages = ", ".join(str(e.get("message", e)) for e in errors)
            raise ShopifyAPIError(f"Shopify GraphQL: {messages}")

        return result.get("data") or {}
