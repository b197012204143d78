"""
wa_bridge.db.engine

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Map a `DatabaseConfig` onto a driver URL (asyncpg / aiosqlite).
- Create short-lived probe engines and the long-lived pooled engine.
- Create the async sessionmaker with safe defaults.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from wa_bridge.db.config import DatabaseConfig, parse_remote_address, remote_driver_options

REMOTE_DRIVER = "postgresql+asyncpg"
LOCAL_DRIVER = "sqlite+aiosqlite"


def driver_name(config: DatabaseConfig) -> str:
    return REMOTE_DRIVER if config.is_remote else LOCAL_DRIVER


def sqlalchemy_url(config: DatabaseConfig) -> URL:
    if not config.is_remote:
        return URL.create(LOCAL_DRIVER, database=config.connection_address)

    url = parse_remote_address(config.connection_address)
    query, _ = remote_driver_options(url)
    return url.set(drivername=REMOTE_DRIVER, query=query)


def connect_args(config: DatabaseConfig) -> dict[str, Any]:
    # libpq parameters asyncpg only takes as keyword arguments (server_settings, timeout).
    if not config.is_remote:
        return {}
    _, args = remote_driver_options(parse_remote_address(config.connection_address))
    return args


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(config: DatabaseConfig, *, pooled: bool = True) -> AsyncEngine:
    """
    Probe engines (`pooled=False`) use NullPool so disposing them closes the
    connection immediately; the process-wide engine keeps a pool with pre-ping.
    """

    kwargs: dict[str, Any] = {"pool_pre_ping": True} if pooled else {"poolclass": NullPool}
    args = connect_args(config)
    if args:
        kwargs["connect_args"] = args
    engine = create_async_engine(sqlalchemy_url(config), **kwargs)
    if not config.is_remote:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_probe_engine(config: DatabaseConfig) -> AsyncEngine:
    return build_engine(config, pooled=False)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False avoids surprising lazy loads after commits.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


# --- Module Notes -----------------------------------------------------------
# Connection pooling and concurrent-access safety are left to the engine pool
# and the database itself; nothing in `wa_bridge.db` adds locks on top.
