"""
wa_bridge.db.adapter

Storage initialization state machine.

Responsibilities:
- Resolve the configured backend, probe it, and fall back to the embedded
  store once if the remote store is unreachable or not migrated.
- Reconcile the remote schema before handing out the storage handle.
- Keep the outcome (config, fallback cause, reconciliation report) on an
  owned object instead of module globals.

States:
    UNCONFIGURED -> PROBING_REMOTE -> SCHEMA_RECONCILING -> READY
    UNCONFIGURED -> PROBING_REMOTE -> PROBING_LOCAL -> READY | FATAL
    UNCONFIGURED -> PROBING_LOCAL -> READY | FATAL
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from wa_bridge.db.config import ConfigResolver, DatabaseConfig
from wa_bridge.db.engine import build_probe_engine
from wa_bridge.db.errors import ConfigurationError, ConnectivityError, StoreCreationError
from wa_bridge.db.info import ConnectionInfo, ConnectionInfoReporter, redact_address
from wa_bridge.db.probe import ConnectionTester
from wa_bridge.db.reconcile import ReconcileReport, SchemaReconciler
from wa_bridge.db.store import StorageHandle, StoreFactory
from wa_bridge.observability.logging import get_logger
from wa_bridge.settings import Settings

log = get_logger(__name__)

DEFAULT_RECONCILE_TIMEOUT = 30.0


class AdapterState(enum.StrEnum):
    unconfigured = "UNCONFIGURED"
    probing_remote = "PROBING_REMOTE"
    schema_reconciling = "SCHEMA_RECONCILING"
    probing_local = "PROBING_LOCAL"
    ready = "READY"
    fatal = "FATAL"


@dataclass(frozen=True, slots=True)
class InitResult:
    store: StorageHandle
    config: DatabaseConfig
    remote_failure: str | None
    reconcile_report: ReconcileReport | None


class DatabaseAdapter:
    def __init__(
        self,
        *,
        resolver: ConfigResolver,
        tester: ConnectionTester | None = None,
        reconciler: SchemaReconciler | None = None,
        factory: StoreFactory | None = None,
        reporter: ConnectionInfoReporter | None = None,
        reconcile_engine_factory: Callable[[DatabaseConfig], AsyncEngine] = build_probe_engine,
        reconcile_timeout: float = DEFAULT_RECONCILE_TIMEOUT,
    ) -> None:
        self._resolver = resolver
        self._tester = tester or ConnectionTester()
        self._reconciler = reconciler or SchemaReconciler()
        self._factory = factory or StoreFactory()
        self._reporter = reporter or ConnectionInfoReporter()
        self._reconcile_engine_factory = reconcile_engine_factory
        self._reconcile_timeout = reconcile_timeout

        self._state = AdapterState.unconfigured
        self._transitions: list[AdapterState] = [self._state]
        self._config: DatabaseConfig | None = None
        self._remote_failure: str | None = None
        self._reconcile_report: ReconcileReport | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseAdapter:
        return cls(
            resolver=ConfigResolver.from_settings(settings),
            tester=ConnectionTester(
                timeout=settings.probe_timeout_seconds,
                required_table=settings.required_table,
            ),
            reporter=ConnectionInfoReporter(hide_username=settings.status_hide_username),
        )

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def transitions(self) -> tuple[AdapterState, ...]:
        return tuple(self._transitions)

    @property
    def config(self) -> DatabaseConfig | None:
        return self._config

    @property
    def remote_failure(self) -> str | None:
        return self._remote_failure

    @property
    def reconcile_report(self) -> ReconcileReport | None:
        return self._reconcile_report

    async def initialize(self) -> InitResult:
        if self._state is not AdapterState.unconfigured:
            raise RuntimeError(f"adapter already initialized (state={self._state})")

        try:
            config = self._resolver.resolve()
        except ConfigurationError as e:
            self._fail("configuration", e)
            raise

        if config.is_remote:
            config = await self._connect_remote(config)
        else:
            config = await self._connect_local(remote_detail=None)

        try:
            store = await self._factory.create(config)
        except StoreCreationError as e:
            self._fail("store_creation", e)
            raise

        self._transition(AdapterState.ready, backend=config.driver_kind.value)
        return InitResult(
            store=store,
            config=config,
            remote_failure=self._remote_failure,
            reconcile_report=self._reconcile_report,
        )

    def connection_info(self) -> ConnectionInfo:
        return self._reporter.report(self._config)

    def diagnostics(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "transitions": [s.value for s in self._transitions],
            "remote_failure": self._remote_failure,
            "schema": self._reconcile_report.as_dict() if self._reconcile_report else None,
        }

    async def _connect_remote(self, config: DatabaseConfig) -> DatabaseConfig:
        self._transition(AdapterState.probing_remote, url=redact_address(config.connection_address))
        probe = await self._tester.test(config)
        if not probe.ok:
            # Remote is not retried; the local store serves this process from here on.
            self._remote_failure = probe.error_detail or "remote probe failed"
            log.warning("db.fallback", reason=self._remote_failure)
            return await self._connect_local(remote_detail=self._remote_failure)

        self._config = config
        self._transition(AdapterState.schema_reconciling)
        self._reconcile_report = await self._reconcile(config)
        return config

    async def _connect_local(self, *, remote_detail: str | None) -> DatabaseConfig:
        self._transition(AdapterState.probing_local)
        try:
            config = self._resolver.resolve_local()
        except ConfigurationError as e:
            self._fail("configuration", e)
            raise

        probe = await self._tester.test(config)
        if not probe.ok:
            error = ConnectivityError(
                "no usable database backend" if remote_detail else "local store unreachable",
                remote_detail=remote_detail,
                local_detail=probe.error_detail or "local probe failed",
            )
            self._fail("connectivity", error)
            raise error

        self._config = config
        return config

    async def _reconcile(self, config: DatabaseConfig) -> ReconcileReport:
        # Owned here so steps finished before a timeout keep their outcome.
        report = self._reconciler.new_report()
        engine: AsyncEngine | None = None
        try:
            engine = self._reconcile_engine_factory(config)
            async with asyncio.timeout(self._reconcile_timeout):
                async with engine.connect() as conn:
                    return await self._reconciler.reconcile(conn, report)
        except Exception as e:
            # Best-effort step: losing the connection here must not block startup.
            detail = "timed out" if isinstance(e, TimeoutError) else f"{type(e).__name__}: {e}"
            log.warning("db.reconcile.unfinished", error=detail, completed=sorted(report.outcomes))
            return self._reconciler.fail_remaining(report, detail)
        finally:
            if engine is not None:
                await engine.dispose()

    def _transition(self, state: AdapterState, **fields: Any) -> None:
        log.info("db.state", previous=self._state.value, state=state.value, **fields)
        self._state = state
        self._transitions.append(state)

    def _fail(self, kind: str, error: Exception) -> None:
        self._transition(AdapterState.fatal, error_kind=kind, error=str(error))


# --- Module Notes -----------------------------------------------------------
# Initialization runs once, before the HTTP app serves traffic (see
# `wa_bridge.api.app`). There is no concurrent caller, so no locking here.
