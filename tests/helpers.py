"""
tests.helpers

Shared helpers for storage tests.

Responsibilities:
- Stand in for the remote store with SQLite files so no network is needed.
- Record which backends the adapter probed, in order.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from wa_bridge.db.config import DatabaseConfig, DriverKind
from wa_bridge.db.engine import build_engine, build_probe_engine
from wa_bridge.db.probe import ConnectionProbeResult, ConnectionTester

EngineFactory = Callable[[DatabaseConfig], AsyncEngine]


def remote_standin(path: Path, *, pooled: bool = False) -> EngineFactory:
    """Route remote configs to a SQLite file; local configs behave normally."""

    def factory(config: DatabaseConfig) -> AsyncEngine:
        if config.is_remote:
            kwargs: dict[str, Any] = {} if pooled else {"poolclass": NullPool}
            return create_async_engine(f"sqlite+aiosqlite:///{path}", **kwargs)
        return build_engine(config) if pooled else build_probe_engine(config)

    return factory


async def create_device_table(path: Path, columns: str = "jid TEXT PRIMARY KEY") -> None:
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")
    async with engine.begin() as conn:
        await conn.execute(text(f"CREATE TABLE whatsmeow_device ({columns})"))
    await engine.dispose()


async def device_columns(path: Path) -> list[str]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")
    async with engine.connect() as conn:
        columns = await conn.run_sync(lambda c: inspect(c).get_columns("whatsmeow_device"))
    await engine.dispose()
    return [c["name"] for c in columns]


class RecordingTester(ConnectionTester):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.probed: list[DriverKind] = []

    async def test(self, config: DatabaseConfig) -> ConnectionProbeResult:
        self.probed.append(config.driver_kind)
        return await super().test(config)
