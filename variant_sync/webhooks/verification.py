"""Shopify webhook signature verification (constant-time HMAC).

Shopify sends ``X-Shopify-Hmac-SHA256``: base64 HMAC-SHA256 of the raw
body keyed with the app's webhook secret. A missing secret or header
always fails (fail-closed).
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-shopify-hmac-sha256"


def verify_shopify(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Return True if *signature_header* is the HMAC of *body* under *secret*."""
    if not secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET not set, rejecting webhook")
        return False
    if not signature_header:
        return False

    computed = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    computed_b64 = base64.b64encode(computed).decode("utf-8")

    return hmac.compare_digest(computed_b64, signature_header)
