"""Shopify webhook payloads and their translation into sync candidates."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from variant_sync.models import Candidate
from variant_sync.shopify import inventory_item_gid, product_variant_gid

logger = logging.getLogger(__name__)

# Refund line items with this restock type leave stock untouched
NO_RESTOCK = "no_restock"


class LineItem(BaseModel):
    """The fields of an order line item the sync needs."""

    model_config = ConfigDict(extra="ignore")

    sku: str | None = None
    variant_id: int | None = None
    inventory_item_id: int | None = None

    def to_candidate(self) -> Candidate | None:
        if not self.sku:
            return None
        return Candidate(
            sku=self.sku,
            inventory_item_id=(
                inventory_item_gid(self.inventory_item_id) if self.inventory_item_id else None
            ),
            variant_id=product_variant_gid(self.variant_id) if self.variant_id else None,
        )


class OrderPayload(BaseModel):
    """``orders/paid`` and ``orders/cancelled`` body."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str | None = None
    line_items: list[LineItem] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or f"#{self.id}"


class RefundLineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line_item: LineItem | None = None
    restock_type: str | None = None


class RefundPayload(BaseModel):
    """``refunds/create`` body.

    A refund without restock leaves the quantity unchanged; syncing it
    anyway only rewrites siblings with the value they already hold.
    """

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    order_id: int | None = None
    refund_line_items: list[RefundLineItem] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"#{self.order_id}"


def _candidates(items: list[LineItem]) -> list[Candidate]:
    candidates = []
    for item in items:
        candidate = item.to_candidate()
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def order_candidates(order: OrderPayload) -> list[Candidate]:
    """One candidate per order line item that carries a SKU."""
    return _candidates(order.line_items)


def refund_candidates(refund: RefundPayload) -> list[Candidate]:
    """One candidate per refunded line item that carries a SKU.

    Items refunded without restock are still synced; the write is a no-op.
    """
    not_restocked = [
        r.line_item.sku
        for r in refund.refund_line_items
        if r.line_item and r.line_item.sku and r.restock_type == NO_RESTOCK
    ]
    if not_restocked:
        logger.info(
            "Refund %s: %d item(s) not restocked (%s), syncing anyway",
            refund.display_name,
            len(not_restocked),
            ", ".join(not_restocked),
        )
    return _candidates([r.line_item for r in refund.refund_line_items if r.line_item])
