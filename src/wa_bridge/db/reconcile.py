"""
wa_bridge.db.reconcile

Additive, idempotent schema corrections for the remote store.

Responsibilities:
- Declare the versioned list of columns existing remote stores may lack.
- Apply each missing column with `ALTER TABLE ... ADD COLUMN`, one step at a time.
- Report what was applied, what was already there and what failed.

Notes:
- Reconciliation is best-effort: a failed step is logged and reported, and the
  remaining steps still run.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from wa_bridge.db.errors import SchemaDriftWarning
from wa_bridge.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SchemaColumnRequirement:
    table: str
    column: str
    sql_type: str
    default_expression: str | None = None

    @property
    def key(self) -> str:
        return f"{self.table}.{self.column}"

    def add_column_sql(self, dialect: Dialect) -> str:
        quote = dialect.identifier_preparer.quote
        ddl = f"ALTER TABLE {quote(self.table)} ADD COLUMN {quote(self.column)} {self.sql_type}"
        if self.default_expression is not None:
            ddl += f" DEFAULT {self.default_expression}"
        return ddl


# Append only; bump the version whenever an entry is added.
SCHEMA_REQUIREMENTS_VERSION = 1
SCHEMA_REQUIREMENTS: tuple[SchemaColumnRequirement, ...] = (
    SchemaColumnRequirement("whatsmeow_device", "facebook_uuid", "TEXT"),
    SchemaColumnRequirement("whatsmeow_device", "lid_migration_ts", "BIGINT", "0"),
)


class StepOutcome(enum.StrEnum):
    present = "present"
    added = "added"
    failed = "failed"


@dataclass(slots=True)
class ReconcileReport:
    version: int
    outcomes: dict[str, StepOutcome] = field(default_factory=dict)
    failures: list[SchemaDriftWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def added(self) -> list[str]:
        return [k for k, v in self.outcomes.items() if v is StepOutcome.added]

    def as_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "steps": {k: v.value for k, v in self.outcomes.items()},
            "failures": [str(w) for w in self.failures],
        }


class SchemaReconciler:
    def __init__(
        self,
        requirements: Sequence[SchemaColumnRequirement] = SCHEMA_REQUIREMENTS,
        *,
        version: int = SCHEMA_REQUIREMENTS_VERSION,
    ) -> None:
        self._requirements = tuple(requirements)
        self._version = version

    @property
    def version(self) -> int:
        return self._version

    def new_report(self) -> ReconcileReport:
        return ReconcileReport(version=self._version)

    async def reconcile(self, conn: AsyncConnection, report: ReconcileReport | None = None) -> ReconcileReport:
        """
        Apply every requirement in order. When `report` is given it is filled
        in as each step finishes, so a caller that abandons the run (timeout,
        lost connection) still sees the steps that completed.
        """

        if report is None:
            report = self.new_report()
        for req in self._requirements:
            outcome = await self._apply(conn, req, report)
            report.outcomes[req.key] = outcome
        log.info("db.reconcile.done", **report.as_dict())
        return report

    def fail_remaining(self, report: ReconcileReport, detail: str) -> ReconcileReport:
        """Mark steps that never got an outcome as failed; finished steps keep theirs."""

        for req in self._requirements:
            if req.key in report.outcomes:
                continue
            report.outcomes[req.key] = StepOutcome.failed
            report.failures.append(SchemaDriftWarning(req.table, req.column, detail))
        return report

    async def _apply(
        self, conn: AsyncConnection, req: SchemaColumnRequirement, report: ReconcileReport
    ) -> StepOutcome:
        try:
            if await self._column_exists(conn, req):
                return StepOutcome.present
            log.info("db.reconcile.add_column", table=req.table, column=req.column)
            await conn.execute(text(req.add_column_sql(conn.dialect)))
            await conn.commit()
            return StepOutcome.added
        except SQLAlchemyError as e:
            await conn.rollback()
            # Another writer may have added it between our check and ALTER.
            if await self._column_exists_quietly(conn, req):
                return StepOutcome.present
            warning = SchemaDriftWarning(req.table, req.column, str(e).splitlines()[0])
            report.failures.append(warning)
            log.warning("db.reconcile.failed", table=req.table, column=req.column, error=warning.detail)
            return StepOutcome.failed

    async def _column_exists(self, conn: AsyncConnection, req: SchemaColumnRequirement) -> bool:
        # Fresh inspector per check; Inspector caches reflection results.
        def _check(sync_conn: Any) -> bool:
            columns = inspect(sync_conn).get_columns(req.table)
            return any(c["name"] == req.column for c in columns)

        exists = await conn.run_sync(_check)
        # End the implicit transaction the reflection queries opened.
        await conn.commit()
        return exists

    async def _column_exists_quietly(self, conn: AsyncConnection, req: SchemaColumnRequirement) -> bool:
        try:
            return await self._column_exists(conn, req)
        except SQLAlchemyError:
            await conn.rollback()
            return False


# --- Module Notes -----------------------------------------------------------
# New requirements are data: add a `SchemaColumnRequirement` above and mirror
# the column on the ORM model in `db.models`. Nothing is ever dropped or renamed.
