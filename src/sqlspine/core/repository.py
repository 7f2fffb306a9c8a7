"""Per-model operations on top of the compiler, differ and a gateway.

Provides :class:`ModelAdapter`, which pairs one :class:`ModelSchema` with a
:class:`~sqlspine.core.protocols.ConnectionGateway` and exposes the
operations the ORM layer calls: find, create, upsert, count, bulk update,
delete and migrate.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                          ModelAdapter                              │
    │                                                                    │
    │   model: ModelSchema        ← declared schema (explicit context)   │
    │   gateway: ConnectionGateway ← MySQLGateway or a test fake         │
    │   codec: ValueCodec          ← literal encoding / row hydration    │
    │                                                                    │
    │   find(filter)          → list[dict]       compile_select          │
    │   find_by_id(id)        → dict | None                              │
    │   exists(id)            → bool             compile_count           │
    │   create(data)          → dict             compile_insert          │
    │   update_or_create(data)→ dict             compile_upsert          │
    │   count(where)          → int              compile_count           │
    │   update(specs)         → Result[list]     compile_bulk_update     │
    │   destroy_all(where)    → int              compile_delete          │
    │   check_migration()     → MigrationPlan    diff (no execution)     │
    │   migrate()             → MigrationPlan    diff + execute          │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> adapter = ModelAdapter(gateway, person)
    >>> adapter.find({"where": {"age": {"gt": 18}}, "order": "name"})
    [{'id': 1, 'name': 'Ada', 'age': 36}]

Tags:
    repository, model, orm, bulk-update, migration
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from sqlspine.core.codec import CODEC, ValueCodec
from sqlspine.core.compiler import (
    compile_bulk_update,
    compile_count,
    compile_delete,
    compile_insert,
    compile_select,
    compile_upsert,
)
from sqlspine.core.differ import MigrationPlan, diff
from sqlspine.core.errors import BatchItemError, BulkUpdateError, SqlSpineError
from sqlspine.core.logging import LogContext, get_logger
from sqlspine.core.models.filters import Filter
from sqlspine.core.models.introspection import IntrospectedTable
from sqlspine.core.models.properties import IdMode, ModelSchema
from sqlspine.core.protocols import ConnectionGateway, ExecutionResult
from sqlspine.core.result import Err, Ok, Result

logger = get_logger(__name__)


def _default_id_factory(mode: IdMode) -> Callable[[], str] | None:
    if mode is IdMode.V1:
        return lambda: str(uuid.uuid1())
    if mode is IdMode.V4:
        return lambda: str(uuid.uuid4())
    return None


class ModelAdapter:
    """Operations for one model against one gateway.

    Parameters:
        gateway: Anything satisfying :class:`ConnectionGateway`.
        model: The declared model.
        codec: Value codec; the default uses the MySQL dialect.
        max_workers: ``update()`` runs its statements on a thread pool of
            this size when greater than 1, sequentially otherwise.
        id_factory: Produces ids for opaque id modes; defaults to uuid1/uuid4.
    """

    def __init__(
        self,
        gateway: ConnectionGateway,
        model: ModelSchema,
        *,
        codec: ValueCodec = CODEC,
        max_workers: int = 1,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.gateway = gateway
        self.model = model
        self.codec = codec
        self.max_workers = max(1, max_workers)
        self._id_factory = id_factory or _default_id_factory(model.id_mode)

    # -- reads -------------------------------------------------------------

    def find(self, filter: Filter | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Rows matching ``filter``; projected reads come back undecoded."""
        f = Filter.parse(filter)
        with LogContext(model=self.model.name, operation="find"):
            result = self.gateway.execute(compile_select(self.model, f, codec=self.codec))
        if f.attributes:
            return result.rows
        return [self.codec.decode_row(self.model, row) for row in result.rows]

    def find_by_id(self, id: Any) -> dict[str, Any] | None:
        rows = self.find({"where": {"id": id}, "limit": 1})
        return rows[0] if rows else None

    def exists(self, id: Any) -> bool:
        return self.count({"id": id}) > 0

    def count(self, where: Mapping[str, Any] | None = None) -> int:
        with LogContext(model=self.model.name, operation="count"):
            result = self.gateway.execute(compile_count(self.model, where, codec=self.codec))
        if not result.rows:
            return 0
        return int(result.rows[0]["cnt"])

    # -- writes ------------------------------------------------------------

    def _with_id(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = dict(data)
        if self._id_factory is not None and row.get("id") is None:
            row["id"] = self._id_factory()
        return row

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert one row; returns ``data`` with its id filled in."""
        row = self._with_id(data)
        with LogContext(model=self.model.name, operation="create"):
            result = self.gateway.execute(compile_insert(self.model, row, codec=self.codec))
        if not self.model.id_mode.is_opaque and result.last_insert_id:
            row["id"] = result.last_insert_id
        return row

    def update_or_create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert, or reassign every non-id column when the key exists."""
        row = self._with_id(data)
        with LogContext(model=self.model.name, operation="update_or_create"):
            result = self.gateway.execute(compile_upsert(self.model, row, codec=self.codec))
        if not self.model.id_mode.is_opaque and result.last_insert_id:
            row["id"] = result.last_insert_id
        return row

    def update(self, specs: Sequence[Mapping[str, Any]]) -> Result[list[ExecutionResult | None]]:
        """Run one ``UPDATE`` per ``{where, update}`` spec.

        Returns ``Ok(results)`` when every spec succeeded, otherwise
        ``Err(BulkUpdateError)`` whose ``errors`` and ``results`` lists are
        parallel to ``specs``.
        """
        compiled = compile_bulk_update(self.model, specs, codec=self.codec)
        errors: list[SqlSpineError | None] = [None] * len(compiled)
        results: list[ExecutionResult | None] = [None] * len(compiled)

        def run(index: int, item: Result[str]) -> None:
            match item:
                case Ok(sql):
                    try:
                        results[index] = self.gateway.execute(sql)
                    except SqlSpineError as e:
                        errors[index] = BatchItemError(e.message, index=index, cause=e)
                case Err(error):
                    errors[index] = error

        with LogContext(model=self.model.name, operation="update"):
            if self.max_workers > 1 and len(compiled) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    for future in [pool.submit(run, i, item) for i, item in enumerate(compiled)]:
                        future.result()
            else:
                for i, item in enumerate(compiled):
                    run(i, item)

            failed = sum(1 for e in errors if e is not None)
            if failed:
                error = BulkUpdateError(errors, results).with_context(
                    model=self.model.name, table=self.model.table_name, operation="update"
                )
                logger.warning("bulk_update_failed", failed=failed, total=len(compiled))
                return Err(error)
            return Ok(results)

    def destroy_all(self, where: Mapping[str, Any] | None = None) -> int:
        """Delete matching rows (every row without a tree); returns the count."""
        with LogContext(model=self.model.name, operation="destroy_all"):
            result = self.gateway.execute(compile_delete(self.model, where, codec=self.codec))
        return result.affected_rows

    # -- schema ------------------------------------------------------------

    def introspect(self) -> IntrospectedTable:
        table = self.model.table_name
        fields = self.gateway.introspect_fields(table)
        if not fields:
            return IntrospectedTable()
        return IntrospectedTable(fields, self.gateway.introspect_indexes(table))

    def check_migration(self) -> MigrationPlan:
        """Plan the DDL for this model without running it."""
        with LogContext(model=self.model.name, operation="check_migration"):
            plan = diff(self.model, self.introspect(), codec=self.codec)
            logger.info(
                "migration_checked",
                table=plan.table,
                create=plan.create,
                changes_required=plan.changes_required,
                statements=len(plan.statements),
            )
        return plan

    def migrate(self) -> MigrationPlan:
        """Plan and run the DDL for this model."""
        plan = self.check_migration()
        if plan.changes_required:
            with LogContext(model=self.model.name, operation="migrate"):
                self.gateway.execute(plan.sql)
                logger.info("migration_applied", table=plan.table, sql=plan.sql)
        return plan


def migrate_models(
    gateway: ConnectionGateway,
    models: Iterable[ModelSchema],
    *,
    check_only: bool = False,
) -> list[MigrationPlan]:
    """Check or migrate several models, in order."""
    plans = []
    for model in models:
        adapter = ModelAdapter(gateway, model)
        plans.append(adapter.check_migration() if check_only else adapter.migrate())
    return plans


__all__ = [
    "ModelAdapter",
    "migrate_models",
]
