"""Remote inventory client: the boundary between the sync engine and Shopify.

``InventoryClient`` is the contract the engine depends on;
``ShopifyInventoryClient`` implements it on the GraphQL Admin API.
Throttling is retried inside the transport, so callers only ever see
data, a not-found ``None``, a ``WriteOutcome`` failure, or a terminal
exception (``RateLimitExceeded``, ``ShopifyAPIError``, ``httpx.HTTPError``).
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from variant_sync.models import InventoryLevel, VariantPage, VariantRecord, WriteOutcome
from variant_sync.shopify import ShopifyGraphQL

logger = logging.getLogger(__name__)


@runtime_checkable
class InventoryClient(Protocol):
    """Operations the sync engine needs from the catalog/inventory backend."""

    def search_by_group_prefix(
        self, group_key: str, page_size: int, cursor: str | None = None
    ) -> VariantPage:
        """Return one page of variants whose SKU starts with ``{group_key}-``.

        Matching is by prefix, so a page may contain SKUs of other groups.
        """
        ...

    def read_quantity(self, inventory_item_id: str) -> InventoryLevel | None:
        """Return the available quantity and location, or ``None`` if unreadable."""
        ...

    def write_quantity(
        self, inventory_item_id: str, location_id: str, quantity: int
    ) -> WriteOutcome:
        """Unconditionally set the available quantity (no compare-and-set)."""
        ...

    def resolve_inventory_item_id(self, variant_id: str) -> str | None:
        """Return the inventory item id of a variant, or ``None`` if unknown."""
        ...


SEARCH_VARIANTS_QUERY = """
query searchVariantsBySku($query: String!, $first: Int!, $after: String) {
  productVariants(first: $first, after: $after, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        sku
        inventoryItem {
          id
        }
      }
    }
  }
}
"""

INVENTORY_LEVEL_QUERY = """
query getInventoryLevel($inventoryItemId: ID!) {
  inventoryItem(id: $inventoryItemId) {
    inventoryLevels(first: 5) {
      edges {
        node {
          location {
            id
          }
          quantities(names: ["available"]) {
            name
            quantity
          }
        }
      }
    }
  }
}
"""

SET_QUANTITIES_MUTATION = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup {
      changes {
        name
        delta
        quantityAfterChange
      }
    }
    userErrors {
      field
      code
      message
    }
  }
}
"""

VARIANT_INVENTORY_ITEM_QUERY = """
query getVariant($id: ID!) {
  productVariant(id: $id) {
    inventoryItem {
      id
    }
  }
}
"""


def _variant_from_node(node: dict) -> VariantRecord | None:
    item = node.get("inventoryItem") or {}
    if not item.get("id"):
        return None
    return VariantRecord(
        variant_id=node.get("id", ""),
        sku=node.get("sku") or "",
        inventory_item_id=item["id"],
    )


def _format_user_errors(user_errors: list[dict]) -> str:
    parts = []
    for e in user_errors:
        field = e.get("field")
        if isinstance(field, list):
            field = ".".join(str(f) for f in field)
        parts.append(f"[{e.get('code')}] {field}: {e.get('message')}")
    return ", ".join(parts)


class ShopifyInventoryClient:
    """``InventoryClient`` backed by the Shopify GraphQL Admin API."""

    def __init__(self, graphql: ShopifyGraphQL) -> None:
        self._graphql = graphql

    @classmethod
    def from_settings(cls) -> ShopifyInventoryClient:
        return cls(ShopifyGraphQL.from_settings())

    def search_by_group_prefix(
        self, group_key: str, page_size: int, cursor: str | None = None
    ) -> VariantPage:
        return self._search(f"sku:{group_key}-*", page_size, cursor)

    def find_variant_by_sku(self, sku: str) -> VariantRecord | None:
        """Point lookup of a single variant by its exact SKU (case-insensitive)."""
        wanted = sku.strip().upper()
        page = self._search(f"sku:{sku}", 5, None)
        return next((r for r in page.records if r.sku.strip().upper() == wanted), None)

    def read_quantity(self, inventory_item_id: str) -> InventoryLevel | None:
        data = self._graphql.execute(
            INVENTORY_LEVEL_QUERY, {"inventoryItemId": inventory_item_id}
        )
        item = data.get("inventoryItem") or {}
        edges = (item.get("inventoryLevels") or {}).get("edges") or []
        if not edges:
            return None

        level = edges[0].get("node") or {}
        available = next(
            (q for q in level.get("quantities") or [] if q.get("name") == "available"),
            None,
        )
        location = level.get("location") or {}
        if available is None or not location.get("id"):
            return None

        return InventoryLevel(quantity=int(available["quantity"]), location_id=location["id"])

    def write_quantity(
        self, inventory_item_id: str, location_id: str, quantity: int
    ) -> WriteOutcome:
        data = self._graphql.execute(
            SET_QUANTITIES_MUTATION,
            {
                "input": {
                    "reason": "correction",
                    "name": "available",
                    "ignoreCompareQuantity": True,
                    "quantities": [
                        {
                            "inventoryItemId": inventory_item_id,
                            "locationId": location_id,
                            "quantity": quantity,
                        }
                    ],
                }
            },
        )
        user_errors = (data.get("inventorySetQuantities") or {}).get("userErrors") or []
        if user_errors:
            reason = _format_user_errors(user_errors)
            logger.error("Set inventory error for %s: %s", inventory_item_id, reason)
            return WriteOutcome.failed(reason)
        return WriteOutcome.ok()

    def resolve_inventory_item_id(self, variant_id: str) -> str | None:
        data = self._graphql.execute(VARIANT_INVENTORY_ITEM_QUERY, {"id": variant_id})
        variant = data.get("productVariant") or {}
        return (variant.get("inventoryItem") or {}).get("id")

    def close(self) -> None:
        self._graphql.close()

    def _search(self, query: str, first: int, cursor: str | None) -> VariantPage:
        data = self._graphql.execute(
            SEARCH_VARIANTS_QUERY, {"query": query, "first": first, "after": cursor}
        )
        connection = data.get("productVariants") or {}
        page_info = connection.get("pageInfo") or {}

        records = []
        for edge in connection.get("edges") or []:
            record = _variant_from_node(edge.get("node") or {})
            if record is not None:
                records.append(record)

        return VariantPage(
            records=tuple(records),
            has_next_page=bool(page_info.get("hasNextPage")),
            next_cursor=page_info.get("endCursor"),
        )
