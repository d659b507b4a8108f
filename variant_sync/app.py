"""ASGI application.

Run with ``uvicorn variant_sync.app:app`` or ``python -m variant_sync.app``.
Importing the module configures the root logger from ``LOG_LEVEL``.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from variant_sync import __version__
from variant_sync.config import get_settings
from variant_sync.webhooks.handlers import router as webhook_router


def configure_logging(level: str | None = None) -> None:
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # basicConfig is a no-op once handlers exist; an explicit level still applies
    logging.getLogger().setLevel(level)


def create_app() -> FastAPI:
    """Build the FastAPI app with the webhook routes and a health check."""
    app = FastAPI(title="Variant Stock Sync", version=__version__)
    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
