"""
wa_bridge.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Encapsulate app.state access patterns (adapter/storage handle).
"""

from __future__ import annotations

from fastapi import Request

from wa_bridge.db.adapter import DatabaseAdapter
from wa_bridge.db.store import StorageHandle


def storage_handle(request: Request) -> StorageHandle:
    # Set by the lifespan in `wa_bridge.api.app.create_app`.
    return request.app.state.store  # type: ignore[attr-defined]


def database_adapter(request: Request) -> DatabaseAdapter:
    return request.app.state.adapter  # type: ignore[attr-defined]
