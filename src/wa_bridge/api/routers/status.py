"""
wa_bridge.api.routers.status

Database status endpoint.

Responsibilities:
- Expose the redacted connection description and initialization diagnostics.
- Never expose the raw connection string.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from wa_bridge.api.deps import database_adapter
from wa_bridge.db.adapter import DatabaseAdapter

router = APIRouter(prefix="/api/db")


@router.get("/status")
async def db_status(adapter: DatabaseAdapter = Depends(database_adapter)) -> dict[str, Any]:
    status = adapter.connection_info().to_status()
    status["diagnostics"] = adapter.diagnostics()
    return status


# --- Module Notes -----------------------------------------------------------
# `diagnostics.remote_failure` tells an operator why the process is on the
# local store after a fallback.
