"""Command-line tools for variant stock sync.

Usage:
    variant-sync list-webhooks
    variant-sync register-webhooks [--app-url https://sync.example.com]
    variant-sync sync --sku BXAAA-1
"""

from __future__ import annotations

import argparse
import json
import sys

import httpx

from variant_sync.app import configure_logging
from variant_sync.client import ShopifyInventoryClient
from variant_sync.config import get_settings
from variant_sync.engine import sync_group
from variant_sync.exceptions import VariantSyncError
from variant_sync.models import BatchResult
from variant_sync.registration import list_subscriptions, register_webhooks
from variant_sync.shopify import ShopifyGraphQL
from variant_sync.sku import derive_group_key


def cmd_list_webhooks(args: argparse.Namespace) -> int:
    """Print the store's webhook subscriptions."""
    graphql = ShopifyGraphQL.from_settings()
    try:
        for sub in list_subscriptions(graphql):
            print(f"  {sub.topic} -> {sub.callback_url}")
    finally:
        graphql.close()
    return 0


def cmd_register_webhooks(args: argparse.Namespace) -> int:
    """Point the order and refund webhooks at this service."""
    settings = get_settings()
    app_url = args.app_url or settings.app_url
    print(f"Store: {settings.shopify_store_domain}")
    print(f"App URL: {app_url}")

    graphql = ShopifyGraphQL.from_settings()
    try:
        created = register_webhooks(graphql, app_url)
    finally:
        graphql.close()
    for topic, sub_id in created.items():
        print(f"Created: {topic} ({sub_id})")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Sync the group of one SKU; exit 1 when any error was recorded."""
    sku = args.sku.strip()
    if derive_group_key(sku) is None:
        print(f'ERROR: Invalid SKU format: "{sku}". Expected format: BXAAA-1', file=sys.stderr)
        return 2

    client = ShopifyInventoryClient.from_settings()
    try:
        variant = client.find_variant_by_sku(sku)
        if variant is None:
            print(f'ERROR: Variant with SKU "{sku}" not found in Shopify', file=sys.stderr)
            return 2
        batch = BatchResult(results=(sync_group(client, sku, variant.inventory_item_id),))
    finally:
        client.close()

    print(json.dumps(batch.to_dict(), indent=2))
    return 0 if batch.status == "ok" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="variant-sync", description=__doc__.splitlines()[0])
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list-webhooks", help="List webhook subscriptions")
    p_list.set_defaults(func=cmd_list_webhooks)

    p_register = sub.add_parser("register-webhooks", help="(Re)register sync webhooks")
    p_register.add_argument("--app-url", default=None, help="Public base URL (default: APP_URL)")
    p_register.set_defaults(func=cmd_register_webhooks)

    p_sync = sub.add_parser("sync", help="Sync one SKU group now")
    p_sync.add_argument("--sku", required=True)
    p_sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except (VariantSyncError, httpx.HTTPError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
