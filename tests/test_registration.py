"""Tests for webhook registration and the command-line entry point."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from tests.fakes import LOCATION, FakeInventoryClient, variant
from variant_sync import cli
from variant_sync.exceptions import ShopifyAPIError
from variant_sync.models import InventoryLevel
from variant_sync.registration import WEBHOOK_ROUTES, list_subscriptions, register_webhooks

APP_URL = "https://sync.example.com"


def _subscriptions(*subs):
    return {
        "webhookSubscriptions": {
            "edges": [
                {"node": {"id": i, "topic": t, "endpoint": {"callbackUrl": url}}} for i, t, url in subs
            ]
        }
    }


def _graphql(existing=()):
    gql = MagicMock()

    def execute(query, variables=None):
        if "webhookSubscriptionDelete" in query:
            return {"webhookSubscriptionDelete": {"userErrors": []}}
        if "webhookSubscriptionCreate" in query:
            return {
                "webhookSubscriptionCreate": {
                    "webhookSubscription": {"id": f"sub-{variables['topic']}"},
                    "userErrors": [],
                }
            }
        return _subscriptions(*existing)

    gql.execute.side_effect = execute
    return gql


def test_list_subscriptions():
    gql = _graphql([("s1", "ORDERS_PAID", f"{APP_URL}/api/webhooks/orders-paid")])
    subs = list_subscriptions(gql)
    assert [(s.id, s.topic, s.callback_url) for s in subs] == [
        ("s1", "ORDERS_PAID", f"{APP_URL}/api/webhooks/orders-paid")
    ]


def test_register_replaces_own_subscriptions_only():
    gql = _graphql(
        [
            ("mine", "ORDERS_PAID", f"{APP_URL}/api/webhooks/orders-paid"),
            ("theirs", "ORDERS_CREATE", "https://other.example.com/hook"),
        ]
    )
    created = register_webhooks(gql, APP_URL + "/")

    deletes = [c.args[1] for c in gql.execute.call_args_list if "webhookSubscriptionDelete" in c.args[0]]
    assert deletes == [{"id": "mine"}]

    creates = [c.args[1] for c in gql.execute.call_args_list if "webhookSubscriptionCreate" in c.args[0]]
    assert [c["sub"]["callbackUrl"] for c in creates] == [
        f"{APP_URL}{path}" for path in WEBHOOK_ROUTES.values()
    ]
    assert created == {topic: f"sub-{topic}" for topic in WEBHOOK_ROUTES}


def test_register_requires_app_url():
    with pytest.raises(ValueError):
        register_webhooks(_graphql(), "")


def test_register_surfaces_user_errors():
    gql = MagicMock()
    gql.execute.side_effect = [
        _subscriptions(),
        {"webhookSubscriptionCreate": {"userErrors": [{"field": ["callbackUrl"], "message": "invalid"}]}},
    ]
    with pytest.raises(ShopifyAPIError, match="invalid"):
        register_webhooks(gql, APP_URL)


class TestCli:
    @pytest.fixture(autouse=True)
    def _quiet_logging(self):
        with patch("variant_sync.cli.configure_logging"):
            yield

    @pytest.fixture()
    def inventory(self):
        return FakeInventoryClient(
            variants=[variant("BXAAA-1", 1), variant("BXAAA-2", 2)],
            levels={"gid://shopify/InventoryItem/1": InventoryLevel(quantity=2, location_id=LOCATION)},
        )

    def test_sync_prints_report(self, inventory, no_sleep, capsys):
        with patch("variant_sync.cli.ShopifyInventoryClient.from_settings", return_value=inventory):
            code = cli.main(["sync", "--sku", "BXAAA-1"])

        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["status"] == "ok"
        assert report["results"][0]["siblings_updated"] == 1
        assert inventory.quantities == {"gid://shopify/InventoryItem/2": 2}
        assert inventory.closed

    def test_sync_trims_sku(self, inventory, no_sleep, capsys):
        with patch("variant_sync.cli.ShopifyInventoryClient.from_settings", return_value=inventory):
            assert cli.main(["sync", "--sku", " BXAAA-1  "]) == 0

        assert inventory.calls["find"] == ["BXAAA-1"]
        assert json.loads(capsys.readouterr().out)["results"][0]["source_sku"] == "BXAAA-1"

    def test_sync_partial_exits_1(self, inventory, no_sleep):
        inventory.fail_writes["gid://shopify/InventoryItem/2"] = "nope"
        with patch("variant_sync.cli.ShopifyInventoryClient.from_settings", return_value=inventory):
            assert cli.main(["sync", "--sku", "BXAAA-1"]) == 1

    def test_sync_invalid_sku(self, capsys):
        assert cli.main(["sync", "--sku", "NODASH"]) == 2
        assert "Invalid SKU format" in capsys.readouterr().err

    def test_sync_unknown_sku(self, inventory, capsys):
        with patch("variant_sync.cli.ShopifyInventoryClient.from_settings", return_value=inventory):
            assert cli.main(["sync", "--sku", "BXAAA-7"]) == 2
        assert "not found" in capsys.readouterr().err

    def test_register_without_app_url_fails(self, capsys):
        with (
            patch("variant_sync.cli.ShopifyGraphQL.from_settings", return_value=_graphql()),
            patch("variant_sync.cli.get_settings") as mock_settings,
        ):
            mock_settings.return_value.app_url = ""
            assert cli.main(["register-webhooks"]) == 1
        assert "APP_URL" in capsys.readouterr().err

    def test_register_with_flag(self, capsys):
        with (
            patch("variant_sync.cli.ShopifyGraphQL.from_settings", return_value=_graphql()),
            patch("variant_sync.cli.get_settings") as mock_settings,
        ):
            mock_settings.return_value.app_url = ""
            assert cli.main(["register-webhooks", "--app-url", APP_URL]) == 0
        assert "Created: ORDERS_PAID" in capsys.readouterr().out

    def test_network_error_prints_error_line(self, capsys):
        gql = MagicMock()
        gql.execute.side_effect = httpx.ConnectError("connection refused")
        with patch("variant_sync.cli.ShopifyGraphQL.from_settings", return_value=gql):
            assert cli.main(["list-webhooks"]) == 1

        assert "ERROR: connection refused" in capsys.readouterr().err
        gql.close.assert_called_once()

    def test_sync_network_error_closes_client(self, inventory, capsys):
        with (
            patch("variant_sync.cli.ShopifyInventoryClient.from_settings", return_value=inventory),
            patch.object(inventory, "find_variant_by_sku", side_effect=httpx.ReadTimeout("timed out")),
        ):
            assert cli.main(["sync", "--sku", "BXAAA-1"]) == 1

        assert "ERROR: timed out" in capsys.readouterr().err
        assert inventory.closed
