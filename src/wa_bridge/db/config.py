"""
wa_bridge.db.config

Connection configuration and its resolution from settings.

Responsibilities:
- Define the immutable `DatabaseConfig` value used for one connection attempt.
- Decide between the remote and the local store with no network I/O.
- Ensure the local storage directory exists before the embedded store is used.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from wa_bridge.db.errors import ConfigurationError
from wa_bridge.settings import Settings

REMOTE_SCHEMES = frozenset({"postgres", "postgresql"})

REMOTE_MIGRATIONS_LOCATION = "alembic"
LOCAL_MIGRATIONS_LOCATION = "sqlalchemy:create_all"

LOCAL_DIR_MODE = 0o755


class DriverKind(enum.StrEnum):
    remote = "remote"
    local = "local"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    driver_kind: DriverKind
    # Credential-bearing URL for remote, filesystem path for local.
    connection_address: str = field(repr=False)
    migrations_location: str

    def __post_init__(self) -> None:
        if self.driver_kind is DriverKind.local and "://" in self.connection_address:
            raise ValueError("local configs carry a filesystem path, not a URL")

    @property
    def is_remote(self) -> bool:
        return self.driver_kind is DriverKind.remote


# libpq query keys and what asyncpg calls them. Anything else is rejected up
# front instead of surfacing as a driver TypeError during the probe.
_QUERY_PASSTHROUGH = frozenset({"ssl", "password", "target_session_attrs", "krbsrvname", "gsslib"})
_QUERY_TRANSLATED = frozenset({"sslmode", "application_name", "options", "connect_timeout"})
SUPPORTED_QUERY_KEYS = _QUERY_PASSTHROUGH | _QUERY_TRANSLATED


def normalize_address(address: str) -> str:
    """
    Percent-encode `@` inside the userinfo so credentials split at the last `@`,
    the way libpq and lib/pq read them.
    """

    scheme, sep, rest = address.partition("://")
    if not sep:
        return address
    head = rest.split("?", 1)[0]
    at = head.rfind("@")
    if at <= 0 or "@" not in head[:at]:
        return address
    return f"{scheme}://{rest[:at].replace('@', '%40')}{rest[at:]}"


def _parse_options(raw: str) -> dict[str, str]:
    # libpq `options`: "-c key=value" or "--key=value" pairs.
    settings: dict[str, str] = {}
    tokens = raw.split()
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "-c" and i + 1 < len(tokens):
            pair = tokens[i + 1]
            i += 2
        elif token.startswith("-c") and len(token) > 2:
            pair = token[2:]
            i += 1
        elif token.startswith("--"):
            pair = token[2:]
            i += 1
        else:
            raise ConfigurationError(f"unsupported DATABASE_URL options token {token!r}")
        key, eq, value = pair.partition("=")
        if not eq or not key:
            raise ConfigurationError(f"unsupported DATABASE_URL options token {pair!r}")
        settings[key.replace("-", "_")] = value
    return settings


def remote_driver_options(url: URL) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Split libpq query parameters into (URL query, asyncpg connect args).
    """

    query: dict[str, Any] = {}
    connect_args: dict[str, Any] = {}
    server_settings: dict[str, str] = {}
    for key, value in url.query.items():
        if isinstance(value, tuple):
            value = value[-1]
        if key in _QUERY_PASSTHROUGH:
            query[key] = value
        elif key == "sslmode":
            # asyncpg spells libpq's `sslmode` as `ssl`.
            query.setdefault("ssl", value)
        elif key == "application_name":
            server_settings["application_name"] = value
        elif key == "options":
            server_settings.update(_parse_options(value))
        elif key == "connect_timeout":
            try:
                connect_args["timeout"] = float(value)
            except ValueError as e:
                raise ConfigurationError(f"invalid connect_timeout {value!r} in DATABASE_URL") from e
        else:
            raise ConfigurationError(
                f"unsupported DATABASE_URL parameter {key!r}; supported: {', '.join(sorted(SUPPORTED_QUERY_KEYS))}"
            )
    if server_settings:
        connect_args["server_settings"] = server_settings
    return query, connect_args


def parse_remote_address(address: str) -> URL:
    """
    Parse a remote connection string into a structured URL.

    Raises ConfigurationError for malformed strings, for any scheme other
    than `postgres://` / `postgresql://`, and for query parameters the
    driver cannot honor.
    """

    try:
        url = make_url(normalize_address(address))
    except (ArgumentError, ValueError) as e:
        raise ConfigurationError(f"malformed DATABASE_URL: {e}") from e
    if url.drivername not in REMOTE_SCHEMES:
        raise ConfigurationError(
            f"unsupported DATABASE_URL scheme {url.drivername!r}; expected postgres:// or postgresql://"
        )
    if url.host and "@" in url.host:
        raise ConfigurationError("malformed DATABASE_URL: host contains '@'")
    remote_driver_options(url)
    return url


class ConfigResolver:
    def __init__(
        self,
        *,
        database_url: str | None,
        local_dir: str | Path = "store",
        local_file: str = "whatsmeow.db",
    ) -> None:
        self._database_url = (database_url or "").strip()
        self._local_dir = Path(local_dir)
        self._local_file = local_file

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfigResolver:
        return cls(
            database_url=settings.database_url,
            local_dir=settings.local_store_dir,
            local_file=settings.local_store_file,
        )

    @property
    def remote_requested(self) -> bool:
        return bool(self._database_url)

    def resolve(self) -> DatabaseConfig:
        if not self._database_url:
            return self.resolve_local()
        # Validate eagerly so a bad scheme fails before any connection attempt.
        parse_remote_address(self._database_url)
        return DatabaseConfig(
            driver_kind=DriverKind.remote,
            connection_address=self._database_url,
            migrations_location=REMOTE_MIGRATIONS_LOCATION,
        )

    def resolve_local(self) -> DatabaseConfig:
        # Independent of DATABASE_URL: this is also the fallback target.
        try:
            self._local_dir.mkdir(mode=LOCAL_DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"cannot create local store directory {str(self._local_dir)!r}: {e}") from e
        return DatabaseConfig(
            driver_kind=DriverKind.local,
            connection_address=str(self._local_dir / self._local_file),
            migrations_location=LOCAL_MIGRATIONS_LOCATION,
        )


# --- Module Notes -----------------------------------------------------------
# The resolver never opens a connection; probing is `wa_bridge.db.probe`.
