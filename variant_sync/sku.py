"""SKU grouping.

A variant SKU is ``<group key>-<ordinal>``: everything before the last
dash names the physical item, the trailing digits number the variant.

    "BXAAA-1"      -> "BXAAA"
    "BXAAD-18"     -> "BXAAD"
    "XXXXX-160-1"  -> "XXXXX-160"
"""

from __future__ import annotations

SEPARATOR = "-"

# Placeholder group key reported for SKUs without a derivable group
UNKNOWN_GROUP = "UNKNOWN"


def derive_group_key(sku: str | None) -> str | None:
    """Return the upper-cased group key of *sku*, or ``None`` if it has none."""
    if not sku or not isinstance(sku, str):
        return None

    normalized = sku.strip().upper()
    cut = normalized.rfind(SEPARATOR)
    if cut <= 0:
        return None

    ordinal = normalized[cut + 1 :]
    # str.isdigit() accepts superscripts and other non-ASCII digits
    if not ordinal or not (ordinal.isascii() and ordinal.isdigit()):
        return None

    return normalized[:cut]
