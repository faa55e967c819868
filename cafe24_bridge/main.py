"""
FastAPI application entrypoint for the Cafe24 token bridge.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cafe24_bridge.api.external import router as external_router
from cafe24_bridge.api.routes import SERVICE_VERSION
from cafe24_bridge.api.routes import router as api_router
from cafe24_bridge.core.config import ensure_required_settings, get_settings
from cafe24_bridge.core.logging import configure_logging
from cafe24_bridge.dependencies import get_token_scheduler, get_token_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    await get_token_store().cleanup_invalid_token_data()

    scheduler = None
    if settings.scheduler_should_run:
        scheduler = get_token_scheduler()
        try:
            scheduler.start()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Token scheduler failed to start")
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    ensure_required_settings(settings)

    app = FastAPI(
        title="Cafe24 Token Bridge",
        version=SERVICE_VERSION,
        description=(
            "Brokers Cafe24 OAuth credentials and relays admin API calls for "
            "storefront skin scripts."
        ),
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    app.include_router(api_router, prefix="/api")
    app.include_router(external_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
