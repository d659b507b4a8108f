"""Variant stock sync: keeps sibling variants of one SKU group at the same available quantity."""

__version__ = "0.1.0"
