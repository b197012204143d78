"""
wa_bridge.db.store

Long-lived storage handle shared by the rest of the process.

Responsibilities:
- Allocate the pooled engine for the chosen backend.
- Create the embedded store's tables; trust migrations on the remote store.
- Expose a small query/execute/session/close surface to collaborators.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from wa_bridge.db.config import DatabaseConfig
from wa_bridge.db.engine import build_engine, create_sessionmaker
from wa_bridge.db.errors import StoreCreationError
from wa_bridge.db.init_db import init_db
from wa_bridge.observability.logging import get_logger

log = get_logger(__name__)

Params = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None


class StorageHandle:
    """
    One per successful initialization. Safe to share across tasks: each call
    checks a connection out of the engine pool.
    """

    def __init__(self, *, config: DatabaseConfig, engine: AsyncEngine) -> None:
        self.config = config
        self.engine = engine
        self.sessionmaker = create_sessionmaker(engine)

    async def query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings().all()]

    async def execute(self, sql: str, params: Params = None) -> int:
        async with self.engine.begin() as conn:
            result = await conn.execute(text(sql), params or {})
            return result.rowcount

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.sessionmaker() as session:
            yield session

    async def close(self) -> None:
        await self.engine.dispose()


class StoreFactory:
    def __init__(self, *, engine_factory: Callable[[DatabaseConfig], AsyncEngine] = build_engine) -> None:
        self._engine_factory = engine_factory

    async def create(self, config: DatabaseConfig) -> StorageHandle:
        try:
            engine = self._engine_factory(config)
        except (SQLAlchemyError, ValueError) as e:
            raise StoreCreationError(f"cannot create {config.driver_kind.value} engine: {e}") from e

        try:
            if config.is_remote:
                # Remote tables come from migrations; only confirm the pool works.
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                log.info("db.store.remote_ready", migrations=config.migrations_location)
            else:
                await init_db(engine)
                log.info("db.store.local_ready", path=config.connection_address)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise StoreCreationError(f"{config.driver_kind.value} store unusable: {e}") from e

        return StorageHandle(config=config, engine=engine)


# --- Module Notes -----------------------------------------------------------
# Handlers obtain the handle through `wa_bridge.api.deps.storage_handle`.
