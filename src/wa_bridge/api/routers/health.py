"""
wa_bridge.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with DB connectivity validation.
- Provide `/api/health`, polled by the external watchdog.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from wa_bridge.api.deps import storage_handle
from wa_bridge.db.store import StorageHandle

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(store: StorageHandle = Depends(storage_handle)) -> dict[str, str]:
    await store.query("SELECT 1")
    return {"status": "ready"}


@router.get("/api/health")
async def api_health(store: StorageHandle = Depends(storage_handle)) -> dict[str, Any]:
    await store.query("SELECT 1")
    return {"status": "ok", "database": store.config.driver_kind.value}
