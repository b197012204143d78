"""
wa_bridge.db.probe

Bounded-time liveness and shape checks.

Responsibilities:
- Open a short-lived connection for one `DatabaseConfig` and ping it.
- On the remote store, check that the table the messaging client needs exists.
- Turn every failure (including timeouts) into a negative probe result.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from wa_bridge.db.config import DatabaseConfig, normalize_address
from wa_bridge.db.engine import build_probe_engine
from wa_bridge.db.info import PASSWORD_MASK, redact_address
from wa_bridge.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_REQUIRED_TABLE = "whatsmeow_device"

EngineFactory = Callable[[DatabaseConfig], AsyncEngine]


@dataclass(frozen=True, slots=True)
class ConnectionProbeResult:
    reachable: bool
    expected_schema_present: bool
    error_detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.reachable and self.expected_schema_present


def _scrub(detail: str, config: DatabaseConfig) -> str:
    # Driver errors sometimes echo the DSN back; never let the password through.
    if not config.is_remote:
        return detail
    address = config.connection_address
    detail = detail.replace(address, redact_address(address))
    try:
        url = make_url(normalize_address(address))
    except (ArgumentError, ValueError):
        return detail
    if url.password:
        rendered = url.render_as_string(hide_password=False)
        detail = detail.replace(rendered, redact_address(address))
        # Standalone occurrences only, so short passwords don't mangle words.
        detail = re.sub(rf"(?<![\w]){re.escape(url.password)}(?![\w])", PASSWORD_MASK, detail)
    return detail


class ConnectionTester:
    def __init__(
        self,
        *,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        required_table: str = DEFAULT_REQUIRED_TABLE,
        engine_factory: EngineFactory = build_probe_engine,
    ) -> None:
        self._timeout = timeout
        self._required_table = required_table
        self._engine_factory = engine_factory

    async def test(self, config: DatabaseConfig) -> ConnectionProbeResult:
        engine: AsyncEngine | None = None
        try:
            engine = self._engine_factory(config)
            result = await asyncio.wait_for(self._probe(engine, config), timeout=self._timeout)
        except TimeoutError:
            result = ConnectionProbeResult(
                reachable=False,
                expected_schema_present=False,
                error_detail=f"probe timed out after {self._timeout:g}s",
            )
        except Exception as e:
            # Bad addresses, auth failures and driver errors all become negative results.
            result = ConnectionProbeResult(
                reachable=False,
                expected_schema_present=False,
                error_detail=_scrub(f"{type(e).__name__}: {e}", config),
            )
        finally:
            if engine is not None:
                await engine.dispose()

        log.info(
            "db.probe",
            backend=config.driver_kind.value,
            reachable=result.reachable,
            schema_present=result.expected_schema_present,
            error=result.error_detail,
        )
        return result

    async def _probe(self, engine: AsyncEngine, config: DatabaseConfig) -> ConnectionProbeResult:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            if not config.is_remote:
                # The embedded store creates its own tables after the probe.
                return ConnectionProbeResult(reachable=True, expected_schema_present=True)
            present = await self._has_required_table(conn)

        if not present:
            return ConnectionProbeResult(
                reachable=True,
                expected_schema_present=False,
                error_detail=f"table {self._required_table!r} not found, run migrations first",
            )
        return ConnectionProbeResult(reachable=True, expected_schema_present=True)

    async def _has_required_table(self, conn: AsyncConnection) -> bool:
        table = self._required_table
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table))


# --- Module Notes -----------------------------------------------------------
# A timed-out probe is abandoned, not resumed: `asyncio.wait_for` cancels the
# pending connect and the engine is disposed before the caller moves on.
