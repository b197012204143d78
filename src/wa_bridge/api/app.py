"""
wa_bridge.api.app

FastAPI app factory for the bridge.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Run storage initialization once, before the app serves requests.
- Close the storage handle on shutdown.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wa_bridge import __version__
from wa_bridge.api.routers.health import router as health_router
from wa_bridge.api.routers.status import router as status_router
from wa_bridge.db.adapter import DatabaseAdapter
from wa_bridge.observability.logging import configure_logging, get_logger
from wa_bridge.observability.middleware import RequestContextMiddleware
from wa_bridge.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, adapter: DatabaseAdapter | None = None) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)
    db_adapter = adapter or DatabaseAdapter.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        app.state.adapter = db_adapter
        # Fatal storage errors propagate and abort startup.
        result = await db_adapter.initialize()
        app.state.store = result.store
        try:
            yield
        finally:
            await result.store.close()
            log.info("shutdown")

    app = FastAPI(
        title="WhatsApp Bridge",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(status_router, tags=["status"])
    return app


# --- Module Notes -----------------------------------------------------------
# QR pairing pages, login and webhook alerting live outside this package; they
# consume `app.state.store` and the status mapping from `/api/db/status`.
