"""
wa_bridge.db.info

Redacted description of the active connection.

Responsibilities:
- Mask passwords (and optionally usernames) in connection addresses.
- Derive host/port/user/database details with a structured URL parser.
- Produce the status mapping consumed by the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from wa_bridge.db.config import DatabaseConfig, DriverKind, normalize_address
from wa_bridge.db.engine import driver_name

PASSWORD_MASK = "***"
QUERY_SECRET_MASK = "redacted"
_SECRET_QUERY_KEYS = frozenset({"password", "sslpassword", "sslkey"})

DEFAULT_PG_PORT = 5432
DEFAULT_PG_DATABASE = "postgres"


def redact_address(address: str, *, hide_username: bool = False) -> str:
    try:
        url = make_url(normalize_address(address))
    except (ArgumentError, ValueError):
        # Unparseable strings may still hold a secret; show nothing of them.
        return PASSWORD_MASK

    if url.host and "@" in url.host:
        return PASSWORD_MASK
    if hide_username:
        url = url.set(username=None, password=None)
    if any(k.lower() in _SECRET_QUERY_KEYS for k in url.query):
        url = url.set(
            query={k: (QUERY_SECRET_MASK if k.lower() in _SECRET_QUERY_KEYS else v) for k, v in url.query.items()}
        )
    return url.render_as_string(hide_password=True)


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    backend_kind: DriverKind | None
    host_redacted: str | None
    is_remote: bool
    storage_path: str | None
    driver: str | None = None
    migrations_path: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    database: str | None = None

    @property
    def initialized(self) -> bool:
        return self.backend_kind is not None

    def to_status(self) -> dict[str, Any]:
        if self.backend_kind is None:
            return {"type": "uninitialized", "is_remote": False, "initialized": False}

        status: dict[str, Any] = {
            "type": self.backend_kind.value,
            "is_remote": self.is_remote,
            "initialized": True,
            "driver": self.driver,
            "migrations_path": self.migrations_path,
        }
        if self.is_remote:
            status.update(
                url=self.host_redacted,
                host=self.host,
                port=self.port,
                user=self.user,
                database=self.database,
            )
        else:
            status["path"] = self.storage_path
        return status


NOT_INITIALIZED = ConnectionInfo(backend_kind=None, host_redacted=None, is_remote=False, storage_path=None)


class ConnectionInfoReporter:
    def __init__(self, *, hide_username: bool = False) -> None:
        self._hide_username = hide_username

    def report(self, config: DatabaseConfig | None) -> ConnectionInfo:
        if config is None:
            return NOT_INITIALIZED
        if not config.is_remote:
            return ConnectionInfo(
                backend_kind=DriverKind.local,
                host_redacted=None,
                is_remote=False,
                storage_path=config.connection_address,
                driver=driver_name(config),
                migrations_path=config.migrations_location,
            )
        return self._report_remote(config)

    def _report_remote(self, config: DatabaseConfig) -> ConnectionInfo:
        redacted = redact_address(config.connection_address, hide_username=self._hide_username)
        try:
            url = make_url(normalize_address(config.connection_address))
        except (ArgumentError, ValueError):
            url = None

        return ConnectionInfo(
            backend_kind=DriverKind.remote,
            host_redacted=redacted,
            is_remote=True,
            storage_path=None,
            driver=driver_name(config),
            migrations_path=config.migrations_location,
            host=(url.host if url is not None else None) or "localhost",
            port=(url.port if url is not None else None) or DEFAULT_PG_PORT,
            user=None if self._hide_username or url is None else url.username,
            database=(url.database if url is not None else None) or DEFAULT_PG_DATABASE,
        )


# --- Module Notes -----------------------------------------------------------
# Reports are recomputed from the adapter's current config on every call, so a
# fallback is reflected immediately.
