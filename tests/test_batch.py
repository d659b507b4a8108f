"""Tests for per-event batch processing and group dedup."""

from __future__ import annotations

import httpx
import pytest

from tests.fakes import LOCATION, FakeInventoryClient, variant
from variant_sync.batch import process_batch
from variant_sync.models import BatchResult, Candidate, InventoryLevel

pytestmark = pytest.mark.usefixtures("no_sleep")

ITEM_1 = "gid://shopify/InventoryItem/1"


def test_same_group_candidates_sync_once(fake_client):
    batch = process_batch(
        fake_client,
        [Candidate("BXAAA-1", ITEM_1), Candidate("BXAAA-2", "gid://shopify/InventoryItem/2")],
    )

    assert len(batch) == 1
    assert batch.results[0].group_key == "BXAAA"
    assert batch.results[0].source_sku == "BXAAA-1"
    assert fake_client.calls["read"] == [ITEM_1]


def test_dedup_is_case_insensitive(fake_client):
    batch = process_batch(fake_client, [Candidate("BXAAA-1", ITEM_1), Candidate("bxaaa-3", "x")])
    assert [r.group_key for r in batch] == ["BXAAA"]


def test_distinct_groups_processed_in_input_order():
    client = FakeInventoryClient(
        variants=[variant("BXAAA-1", 1), variant("BXAAA-2", 2), variant("BXAAD-1", 3), variant("BXAAD-2", 4)],
        levels={
            ITEM_1: InventoryLevel(5, LOCATION),
            "gid://shopify/InventoryItem/3": InventoryLevel(9, LOCATION),
        },
    )
    batch = process_batch(
        client,
        [
            Candidate("BXAAD-1", "gid://shopify/InventoryItem/3"),
            Candidate("BXAAA-1", ITEM_1),
            Candidate("BXAAD-2", "gid://shopify/InventoryItem/4"),
        ],
    )

    assert [r.group_key for r in batch] == ["BXAAD", "BXAAA"]
    assert client.quantities == {"gid://shopify/InventoryItem/4": 9, "gid://shopify/InventoryItem/2": 5}
    assert batch.status == "ok"


def test_missing_inventory_item_is_resolved(fake_client):
    batch = process_batch(
        fake_client, [Candidate("BXAAA-1", None, "gid://shopify/ProductVariant/1")]
    )
    assert fake_client.calls["resolve"] == ["gid://shopify/ProductVariant/1"]
    assert batch.results[0].siblings_updated == 5


def test_failed_lookup_records_error_without_sync(fake_client):
    batch = process_batch(
        fake_client, [Candidate("BXAAA-1", None, "gid://shopify/ProductVariant/404")]
    )

    result = batch.results[0]
    assert result.group_key == "BXAAA"
    assert result.errors == (
        "Could not find inventoryItemId for variant gid://shopify/ProductVariant/404",
    )
    assert (result.siblings_found, result.siblings_updated) == (0, 0)
    assert fake_client.calls["read"] == []
    assert batch.status == "partial"


def test_lookup_exception_treated_as_not_found(fake_client):
    def boom(variant_id):
        raise httpx.ConnectError("down")

    fake_client.resolve_inventory_item_id = boom
    batch = process_batch(fake_client, [Candidate("BXAAA-1", None, "gid://shopify/ProductVariant/1")])
    assert batch.results[0].errors[0].startswith("Could not find inventoryItemId")


def test_failed_lookup_still_claims_the_group(fake_client):
    batch = process_batch(
        fake_client,
        [
            Candidate("BXAAA-1", None, "gid://shopify/ProductVariant/404"),
            Candidate("BXAAA-2", "gid://shopify/InventoryItem/2"),
        ],
    )
    assert len(batch) == 1
    assert fake_client.calls["write"] == []


def test_invalid_skus_are_recorded(fake_client):
    batch = process_batch(
        fake_client,
        [Candidate("NODASH"), Candidate("BXAAA-1", ITEM_1), Candidate("-5")],
    )

    assert [r.group_key for r in batch] == ["UNKNOWN", "BXAAA", "UNKNOWN"]
    assert batch.results[0].errors == ('Invalid SKU format: "NODASH"',)
    assert batch.results[2].errors == ('Invalid SKU format: "-5"',)
    assert [r.invalid_sku for r in batch] == [True, False, True]
    assert batch.status == "partial"
    assert fake_client.calls["read"] == [ITEM_1]


def test_partial_status_when_a_write_fails(fake_client):
    fake_client.fail_writes["gid://shopify/InventoryItem/4"] = "[ERR] x: y"
    batch = process_batch(fake_client, [Candidate("BXAAA-1", ITEM_1)])

    assert batch.results[0].siblings_updated == 4
    assert len(batch.results[0].errors) == 1
    assert batch.status == "partial"
    assert batch.total_updated == 4


def test_empty_batch_is_ok(fake_client):
    batch = process_batch(fake_client, [])
    assert batch == BatchResult()
    assert batch.status == "ok"
    assert batch.to_dict() == {"status": "ok", "results": []}


def test_batch_report_shape(fake_client):
    report = process_batch(fake_client, [Candidate("BXAAA-1", ITEM_1)]).to_dict()
    assert report["status"] == "ok"
    assert report["results"] == [
        {
            "group_key": "BXAAA",
            "source_sku": "BXAAA-1",
            "quantity": 7,
            "siblings_found": 6,
            "siblings_updated": 5,
            "errors": [],
            "invalid_sku": False,
        }
    ]


def test_invalid_sku_is_told_apart_from_real_unknown_group():
    client = FakeInventoryClient(
        variants=[variant("UNKNOWN-1", 1), variant("UNKNOWN-2", 2)],
        levels={ITEM_1: InventoryLevel(quantity=3, location_id=LOCATION)},
    )
    batch = process_batch(client, [Candidate("NODASH"), Candidate("UNKNOWN-1", ITEM_1)])

    invalid, real = batch.results
    assert invalid.group_key == real.group_key == "UNKNOWN"
    assert invalid.invalid_sku is True
    assert invalid.siblings_found == 0
    assert real.invalid_sku is False
    assert real.errors == ()
    assert real.siblings_updated == 1
    assert client.quantities == {"gid://shopify/InventoryItem/2": 3}
