"""
wa_bridge.db.init_db

Embedded-store schema bootstrap.

Responsibilities:
- Create the session-state tables on the local SQLite store.
- Keep the remote workflow separate (tables come from Alembic migrations).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from wa_bridge.db import models  # noqa: F401  # register tables on Base.metadata
from wa_bridge.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if they don't exist."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
