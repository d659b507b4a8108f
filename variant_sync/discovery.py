"""Sibling discovery: enumerate every variant of a SKU group."""

from __future__ import annotations

import logging
import time

from variant_sync.client import InventoryClient
from variant_sync.models import VariantRecord
from variant_sync.sku import derive_group_key

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

# Seconds between page requests, independent of throttling retries
PAGE_PACING_INTERVAL = 0.2


def find_siblings(client: InventoryClient, group_key: str) -> list[VariantRecord]:
    """Return all variants whose SKU derives exactly to *group_key*.

    Pages through ``search_by_group_prefix`` until the backend reports no
    further page. The backend matches by prefix, so every record is
    re-validated: a search for ``BXAA-*`` must not pull in ``BXAAD-1``.
    """
    siblings: list[VariantRecord] = []
    cursor: str | None = None
    pages = 0

    while True:
        page = client.search_by_group_prefix(group_key, PAGE_SIZE, cursor)
        pages += 1

        for record in page.records:
            if derive_group_key(record.sku) == group_key:
                siblings.append(record)
            else:
                logger.debug("Ignoring %s: not in group %s", record.sku, group_key)

        if not page.has_next_page:
            break
        if page.next_cursor is None:
            logger.warning(
                "Search for %s reported another page without a cursor; stopping after %d pages",
                group_key,
                pages,
            )
            break

        cursor = page.next_cursor
        time.sleep(PAGE_PACING_INTERVAL)

    logger.debug("Group %s: %d siblings across %d pages", group_key, len(siblings), pages)
    return siblings
