"""Sync orchestrator: propagate one variant's available quantity to its siblings.

Flow for one group:

1. Derive the group key from the triggering SKU (no remote calls if invalid).
2. Read the source variant's available quantity and location. An
   unreadable source stops the group: nothing is discovered or written.
3. Discover every sibling of the group.
4. Set each sibling, except the source itself, to the source quantity,
   one write at a time with a fixed pause between writes. A failed write
   is recorded and the loop carries on.

Writes are unconditional sets, so re-running a sync with an unchanged
source quantity converges to the same remote state. Nothing in here
raises: every failure ends up in the returned ``SyncResult``.
"""

from __future__ import annotations

import logging
import time

from variant_sync.client import InventoryClient
from variant_sync.discovery import find_siblings
from variant_sync.models import SyncResult
from variant_sync.sku import derive_group_key

logger = logging.getLogger(__name__)

# Seconds between consecutive sibling writes
WRITE_PACING_INTERVAL = 0.2


def _reason(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


def sync_group(
    client: InventoryClient, source_sku: str, source_inventory_item_id: str
) -> SyncResult:
    """Set every sibling of *source_sku* to the source's available quantity."""
    group_key = derive_group_key(source_sku)
    if group_key is None:
        return SyncResult.for_invalid_sku(source_sku)

    logger.info("Starting sync for group %s (triggered by %s)", group_key, source_sku)

    try:
        level = client.read_quantity(source_inventory_item_id)
    except Exception as e:
        logger.error("Reading inventory for %s failed: %s", source_sku, _reason(e))
        level = None
    if level is None:
        return SyncResult(
            group_key=group_key,
            source_sku=source_sku,
            errors=(f"Could not read inventory for {source_sku}",),
        )

    logger.info(
        "%s: current quantity = %d at %s", group_key, level.quantity, level.location_id
    )

    try:
        siblings = find_siblings(client, group_key)
    except Exception as e:
        logger.error("Sibling discovery for %s failed: %s", group_key, _reason(e))
        return SyncResult(
            group_key=group_key,
            source_sku=source_sku,
            quantity=level.quantity,
            errors=(f"Sibling discovery failed for {group_key}: {_reason(e)}",),
        )

    logger.info("%s: found %d siblings", group_key, len(siblings))

    errors: list[str] = []
    updated = 0
    attempted = 0

    for sibling in siblings:
        if sibling.inventory_item_id == source_inventory_item_id:
            continue

        if attempted:
            time.sleep(WRITE_PACING_INTERVAL)
        attempted += 1

        logger.info(
            "Setting %s (%s) to %d", sibling.sku, sibling.inventory_item_id, level.quantity
        )
        try:
            outcome = client.write_quantity(
                sibling.inventory_item_id, level.location_id, level.quantity
            )
        except Exception as e:
            errors.append(f"{sibling.sku}: {_reason(e)}")
            logger.error("%s write raised: %s", sibling.sku, _reason(e))
            continue

        if outcome.success:
            updated += 1
            logger.info("%s updated", sibling.sku)
        else:
            errors.append(f"{sibling.sku}: {outcome.reason}")
            logger.error("%s failed: %s", sibling.sku, outcome.reason)

    logger.info(
        "%s: updated %d/%d siblings to quantity %d%s",
        group_key,
        updated,
        attempted,
        level.quantity,
        f" ({len(errors)} errors)" if errors else "",
    )

    return SyncResult(
        group_key=group_key,
        source_sku=source_sku,
        quantity=level.quantity,
        siblings_found=len(siblings),
        siblings_updated=updated,
        errors=tuple(errors),
    )
