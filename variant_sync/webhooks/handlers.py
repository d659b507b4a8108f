"""Webhook HTTP handlers: FastAPI routes that trigger group syncs.

Each webhook handler:
1. Reads the raw body (needed for HMAC verification)
2. Verifies the Shopify signature
3. Parses the payload
4. Drops re-deliveries of an already processed webhook id
5. Runs the batch processor in a worker thread and returns its report

Error responses never include exception details.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from variant_sync.batch import process_batch
from variant_sync.client import ShopifyInventoryClient
from variant_sync.config import Settings, get_settings
from variant_sync.engine import sync_group
from variant_sync.models import BatchResult, Candidate
from variant_sync.sku import derive_group_key
from variant_sync.webhooks.idempotency import is_duplicate, release
from variant_sync.webhooks.payloads import (
    OrderPayload,
    RefundPayload,
    order_candidates,
    refund_candidates,
)
from variant_sync.webhooks.verification import SIGNATURE_HEADER, verify_shopify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

_client: ShopifyInventoryClient | None = None


def get_inventory_client() -> ShopifyInventoryClient:
    """Process-wide Shopify inventory client (overridden in tests)."""
    global _client
    if _client is None:
        _client = ShopifyInventoryClient.from_settings()
    return _client


def _log_webhook(trigger: str, webhook_id: str | None, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info("WEBHOOK_AUDIT topic=%s id=%s status=%s", trigger, webhook_id or "-", status)


def _report(batch: BatchResult, trigger: str, order: str | None, start: float) -> dict:
    duration_ms = int((time.time() - start) * 1000)
    report = {"status": batch.status, "trigger": trigger}
    if order is not None:
        report["order"] = order
    report["duration"] = f"{duration_ms}ms"
    report["results"] = [r.to_dict() for r in batch]
    return report


async def _handle_webhook(
    request: Request,
    trigger: str,
    model: type[BaseModel],
    extract: Callable[..., list[Candidate]],
    client: ShopifyInventoryClient,
    settings: Settings,
) -> JSONResponse:
    start = time.time()
    body = await request.body()
    headers = {k.lower(): v for k, v in request.headers.items()}
    webhook_id = headers.get("x-shopify-webhook-id")

    if not verify_shopify(body, headers.get(SIGNATURE_HEADER), settings.shopify_webhook_secret):
        _log_webhook(trigger, webhook_id, "signature_failed")
        return JSONResponse({"error": "Invalid signature"}, status_code=401)

    try:
        payload = model.model_validate_json(body)
    except ValidationError:
        _log_webhook(trigger, webhook_id, "invalid_payload")
        return JSONResponse({"error": "Invalid payload"}, status_code=400)

    if await asyncio.to_thread(is_duplicate, webhook_id):
        _log_webhook(trigger, webhook_id, "duplicate")
        return JSONResponse({"status": "duplicate"}, status_code=200)

    candidates = extract(payload)
    logger.info(
        "[%s] %s received with %d candidate line items",
        trigger,
        payload.display_name,
        len(candidates),
    )

    try:
        batch = await asyncio.to_thread(process_batch, client, candidates)
    except Exception:
        logger.exception("[%s] %s failed", trigger, payload.display_name)
        await asyncio.to_thread(release, webhook_id)
        _log_webhook(trigger, webhook_id, "failed")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    report = _report(batch, trigger, payload.display_name, start)
    logger.info(
        "[%s] %s done in %s: %d groups, %d variants updated%s",
        trigger,
        payload.display_name,
        report["duration"],
        len(batch),
        batch.total_updated,
        " (with errors)" if batch.status == "partial" else "",
    )
    _log_webhook(trigger, webhook_id, batch.status)
    return JSONResponse(report)


@router.post("/orders-paid")
async def orders_paid(
    request: Request,
    client: ShopifyInventoryClient = Depends(get_inventory_client),
    settings: Settings = Depends(get_settings),
):
    """Sync sibling stock after an order's reservation lowered availability."""
    return await _handle_webhook(request, "orders/paid", OrderPayload, order_candidates, client, settings)


@router.post("/orders-cancelled")
async def orders_cancelled(
    request: Request,
    client: ShopifyInventoryClient = Depends(get_inventory_client),
    settings: Settings = Depends(get_settings),
):
    """Sync sibling stock after a cancellation released reserved units."""
    return await _handle_webhook(
        request, "orders/cancelled", OrderPayload, order_candidates, client, settings
    )


@router.post("/refunds-create")
async def refunds_create(
    request: Request,
    client: ShopifyInventoryClient = Depends(get_inventory_client),
    settings: Settings = Depends(get_settings),
):
    """Sync sibling stock after a refund (restocked or not)."""
    return await _handle_webhook(
        request, "refunds/create", RefundPayload, refund_candidates, client, settings
    )


@router.get("/test-sync")
async def manual_sync(
    sku: str | None = None,
    client: ShopifyInventoryClient = Depends(get_inventory_client),
):
    """Manually sync the group of one SKU, e.g. ``?sku=BXAAA-1``."""
    start = time.time()
    sku = (sku or "").strip()
    if not sku:
        return JSONResponse(
            {"error": "Missing ?sku= parameter. Example: ?sku=BXAAA-1"}, status_code=400
        )
    if derive_group_key(sku) is None:
        return JSONResponse(
            {"error": f'Invalid SKU format: "{sku}". Expected format: BXAAA-1'},
            status_code=400,
        )

    try:
        variant = await asyncio.to_thread(client.find_variant_by_sku, sku)
    except Exception:
        logger.exception("[manual] Variant lookup for %s failed", sku)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    if variant is None:
        return JSONResponse(
            {"error": f'Variant with SKU "{sku}" not found in Shopify'}, status_code=404
        )

    logger.info("[manual] Triggering sync for %s (%s)", sku, variant.inventory_item_id)
    result = await asyncio.to_thread(sync_group, client, sku, variant.inventory_item_id)
    return JSONResponse(_report(BatchResult(results=(result,)), "manual", None, start))
