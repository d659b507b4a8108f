"""Shared fixtures for the variant stock sync test suite."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tests.fakes import LOCATION, FakeInventoryClient, variant
from variant_sync.models import InventoryLevel, VariantRecord


@pytest.fixture()
def no_sleep():
    """Pacing and backoff sleeps return immediately; the mock records them."""
    with patch("time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture()
def bxaaa_group() -> list[VariantRecord]:
    """Six variants of group BXAAA plus look-alikes from other groups."""
    return [
        variant("BXAAA-1", 1),
        variant("BXAAA-2", 2),
        variant("BXAAA-3", 3),
        variant("BXAAA-4", 4),
        variant("BXAAA-5", 5),
        variant("BXAAA-6", 6),
        variant("BXAAAB-1", 7),
        variant("BXAAA-X", 8),
    ]


@pytest.fixture()
def fake_client(bxaaa_group) -> FakeInventoryClient:
    return FakeInventoryClient(
        variants=bxaaa_group,
        levels={"gid://shopify/InventoryItem/1": InventoryLevel(quantity=7, location_id=LOCATION)},
    )
