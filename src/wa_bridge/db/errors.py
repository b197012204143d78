"""
wa_bridge.db.errors

Error taxonomy for storage initialization.

Responsibilities:
- Distinguish configuration mistakes from connectivity failures.
- Carry both remote and local causes when the fallback also fails.
"""

from __future__ import annotations


class DatabaseAdapterError(Exception):
    pass


class ConfigurationError(DatabaseAdapterError):
    """Malformed connection string or unusable local storage directory."""


class ConnectivityError(DatabaseAdapterError):
    """No backend could be reached."""

    def __init__(self, message: str, *, remote_detail: str | None = None, local_detail: str | None = None) -> None:
        super().__init__(message)
        self.remote_detail = remote_detail
        self.local_detail = local_detail

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.remote_detail:
            parts.append(f"remote: {self.remote_detail}")
        if self.local_detail:
            parts.append(f"local: {self.local_detail}")
        return "; ".join(parts)


class StoreCreationError(DatabaseAdapterError):
    """The engine could not allocate the long-lived handle after a successful probe."""


class SchemaDriftWarning(UserWarning):
    # Recorded in the reconciliation report, never raised.
    def __init__(self, table: str, column: str, detail: str) -> None:
        super().__init__(f"{table}.{column}: {detail}")
        self.table = table
        self.column = column
        self.detail = detail


# --- Module Notes -----------------------------------------------------------
# Only ConfigurationError, ConnectivityError and StoreCreationError escape
# `DatabaseAdapter.initialize`; probe failures are values, not exceptions.
