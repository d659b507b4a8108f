"""Batch processor: at most one group sync per SKU group per inbound event.

Candidates are handled in input order and the first candidate of a group
wins. Its sync already sets every other sibling, so later candidates of
the same group would only repeat the same writes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from variant_sync.client import InventoryClient
from variant_sync.engine import sync_group
from variant_sync.models import BatchResult, Candidate, SyncResult
from variant_sync.sku import derive_group_key

logger = logging.getLogger(__name__)


def _lookup_failure(group_key: str, candidate: Candidate) -> SyncResult:
    return SyncResult(
        group_key=group_key,
        source_sku=candidate.sku,
        errors=(f"Could not find inventoryItemId for variant {candidate.variant_id}",),
    )


def _resolve(client: InventoryClient, candidate: Candidate) -> str | None:
    if not candidate.variant_id:
        return None
    try:
        return client.resolve_inventory_item_id(candidate.variant_id)
    except Exception as e:
        logger.warning(
            "Inventory item lookup for variant %s failed: %s", candidate.variant_id, e
        )
        return None


def process_batch(client: InventoryClient, candidates: Iterable[Candidate]) -> BatchResult:
    """Sync each distinct SKU group referenced by *candidates* once.

    Every candidate with an underivable group key gets its own error
    result (``invalid_sku`` set, group key ``UNKNOWN``). Such results never
    take part in group dedup, so a real ``UNKNOWN-<n>`` family still syncs.
    Invalid candidates trigger no remote calls.
    """
    results: list[SyncResult] = []
    seen: set[str] = set()

    for candidate in candidates:
        group_key = derive_group_key(candidate.sku)
        if group_key is None:
            logger.info("Invalid SKU %r, recorded without syncing", candidate.sku)
            results.append(SyncResult.for_invalid_sku(candidate.sku))
            continue

        if group_key in seen:
            logger.debug("Group %s already synced in this batch, skipping %s", group_key, candidate.sku)
            continue
        seen.add(group_key)

        inventory_item_id = candidate.inventory_item_id or _resolve(client, candidate)
        if not inventory_item_id:
            results.append(_lookup_failure(group_key, candidate))
            continue

        results.append(sync_group(client, candidate.sku, inventory_item_id))

    return BatchResult(results=tuple(results))
