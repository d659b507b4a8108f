"""Inbound triggers: Shopify order/refund webhooks and the manual sync endpoint.

Each webhook is signature-verified, deduplicated by delivery id, turned
into sync candidates and handed to the batch processor.
"""
