"""
alembic.env

Alembic migration environment for the remote session store.

Responsibilities:
- Provide metadata discovery for autogeneration.
- Configure offline/online migration execution against DATABASE_URL.

Notes:
- This module is executed by Alembic, not imported by the bridge runtime.
- Online migrations run through the same asyncpg URL mapping the bridge uses.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from wa_bridge.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from wa_bridge.db.base import Base
from wa_bridge.db.config import ConfigResolver, DatabaseConfig
from wa_bridge.db.engine import connect_args, sqlalchemy_url
from wa_bridge.settings import Settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _get_database_config() -> DatabaseConfig:
    db_config = ConfigResolver.from_settings(Settings()).resolve()
    if not db_config.is_remote:
        raise RuntimeError("DATABASE_URL must point at the remote store to run migrations")
    return db_config


def run_migrations_offline() -> None:
    # Offline: emit SQL scripts without a DB connection.
    url = sqlalchemy_url(_get_database_config())
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    db_config = _get_database_config()
    connectable = create_async_engine(
        sqlalchemy_url(db_config),
        poolclass=NullPool,
        connect_args=connect_args(db_config),
    )
    async with connectable.connect() as connection:
        await connection.run_sync(_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())


# --- Module Notes -----------------------------------------------------------
# Keep this file aligned with SQLAlchemy metadata definitions in `wa_bridge.db.models`.
