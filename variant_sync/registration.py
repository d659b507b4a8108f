"""Webhook subscription management for the sync endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from variant_sync.exceptions import ShopifyAPIError
from variant_sync.shopify import ShopifyGraphQL

logger = logging.getLogger(__name__)

# Shopify topic -> route path served by variant_sync.webhooks.handlers
WEBHOOK_ROUTES: dict[str, str] = {
    "ORDERS_PAID": "/api/webhooks/orders-paid",
    "ORDERS_CANCELLED": "/api/webhooks/orders-cancelled",
    "REFUNDS_CREATE": "/api/webhooks/refunds-create",
}

LIST_SUBSCRIPTIONS_QUERY = """
query {
  webhookSubscriptions(first: 25) {
    edges {
      node {
        id
        topic
        endpoint {
          ... on WebhookHttpEndpoint {
            callbackUrl
          }
        }
      }
    }
  }
}
"""

DELETE_SUBSCRIPTION_MUTATION = """
mutation del($id: ID!) {
  webhookSubscriptionDelete(id: $id) {
    deletedWebhookSubscriptionId
    userErrors {
      message
    }
  }
}
"""

CREATE_SUBSCRIPTION_MUTATION = """
mutation create($topic: WebhookSubscriptionTopic!, $sub: WebhookSubscriptionInput!) {
  webhookSubscriptionCreate(topic: $topic, webhookSubscription: $sub) {
    webhookSubscription {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""


@dataclass(frozen=True)
class WebhookSubscription:
    id: str
    topic: str
    callback_url: str


def list_subscriptions(graphql: ShopifyGraphQL) -> list[WebhookSubscription]:
    data = graphql.execute(LIST_SUBSCRIPTIONS_QUERY)
    edges = (data.get("webhookSubscriptions") or {}).get("edges") or []
    return [
        WebhookSubscription(
            id=e["node"]["id"],
            topic=e["node"]["topic"],
            callback_url=(e["node"].get("endpoint") or {}).get("callbackUrl") or "",
        )
        for e in edges
    ]


def register_webhooks(graphql: ShopifyGraphQL, app_url: str) -> dict[str, str]:
    """Replace this app's subscriptions with one per topic in ``WEBHOOK_ROUTES``.

    Subscriptions pointing anywhere under *app_url* are deleted first.
    Returns topic -> new subscription id.

    Raises:
        ValueError: *app_url* is empty.
        ShopifyAPIError: Shopify rejected a delete or create.
    """
    if not app_url:
        raise ValueError("APP_URL is required to register webhooks")
    base = app_url.rstrip("/")

    for sub in list_subscriptions(graphql):
        if sub.callback_url.startswith(base):
            logger.info("Removing %s (%s)", sub.topic, sub.id)
            data = graphql.execute(DELETE_SUBSCRIPTION_MUTATION, {"id": sub.id})
            errors = (data.get("webhookSubscriptionDelete") or {}).get("userErrors") or []
            if errors:
                raise ShopifyAPIError(
                    f"Deleting {sub.id} failed: " + ", ".join(e["message"] for e in errors)
                )

    created: dict[str, str] = {}
    for topic, path in WEBHOOK_ROUTES.items():
        callback_url = f"{base}{path}"
        logger.info("Registering %s -> %s", topic, callback_url)
        data = graphql.execute(
            CREATE_SUBSCRIPTION_MUTATION,
            {"topic": topic, "sub": {"callbackUrl": callback_url, "format": "JSON"}},
        )
        result = data.get("webhookSubscriptionCreate") or {}
        errors = result.get("userErrors") or []
        if errors:
            raise ShopifyAPIError(
                f"Registering {topic} failed: " + ", ".join(e["message"] for e in errors)
            )
        created[topic] = (result.get("webhookSubscription") or {}).get("id", "")

    return created
