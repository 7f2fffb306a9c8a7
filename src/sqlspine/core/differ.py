"""
Schema differ: declared model vs. live table → DDL plan.

Given a :class:`ModelSchema` and the :class:`IntrospectedTable` read from the
server, :func:`diff` returns the ordered statements that reconcile the table
with the model, or a full ``CREATE TABLE`` when the table does not exist.
Running the plan and diffing again yields an empty plan.

Manifesto:
    A migration that silently drops or rewrites the wrong column loses data
    nobody can get back.  The differ therefore only touches what the model
    names, and every change it decides on is visible as a statement in the
    plan before anything runs.

    - **Additive first:** ADD/CHANGE for declared columns, DROP only for
      columns the model no longer declares
    - **Order matters:** an index whose columns are reordered is dropped and
      re-added, never treated as a match
    - **Reviewable:** ``check_migration`` returns the plan without running it

Architecture:
    ::

        diff(model, introspected)
          table missing? ──────────────────────────► CREATE TABLE ...
          │
          ├─ 1. id column type          CHANGE COLUMN `id` `id` ...
          ├─ 2. declared columns        ADD COLUMN / CHANGE COLUMN
          ├─ 3. undeclared columns      DROP COLUMN
          ├─ 4. stale indexes           DROP INDEX
          ├─ 5. missing single indexes  ADD [KIND ]INDEX `p` (`p`)
          └─ 6. missing multi indexes   ADD [KIND ]INDEX `n` (`a`, `b`)
                    │
                    ▼
          ALTER TABLE `t` s1,
           s2

Examples:
    >>> model = ModelSchema.from_dict({"name": "person", "id_mode": "v4"})
    >>> live = IntrospectedTable([Field("id", "varchar(100)", False)])
    >>> diff(model, live).statements
    ('CHANGE COLUMN `id` `id` CHAR(36) NOT NULL',)

Tags:
    differ, migration, ddl, alter-table, schema, mysql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlspine.core.codec import CODEC, ValueCodec
from sqlspine.core.models.introspection import Field, IntrospectedTable
from sqlspine.core.models.properties import IndexDef, ModelSchema, PropertyDef, PropertyType


_UNINDEXABLE = frozenset({PropertyType.JSON, PropertyType.ARRAY})

# MySQL 8.0.19+ reports integer types without a display width.
_INTEGER_WIDTH = re.compile(r"^(tinyint|smallint|mediumint|int|integer|bigint)\(\d+\)")


@dataclass(frozen=True, slots=True)
class ColumnMismatch:
    """Why a ``CHANGE COLUMN`` was planned."""

    column: str
    stored_type: str
    stored_nullable: bool
    declared_type: str
    declared_nullable: bool | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "stored": f"{self.stored_type} {'NULL' if self.stored_nullable else 'NOT NULL'}",
            "declared": self.declared_type
            + ("" if self.declared_nullable is None else (" NULL" if self.declared_nullable else " NOT NULL")),
        }


@dataclass(frozen=True, slots=True)
class MigrationPlan:
    """Ordered DDL needed to reconcile one table."""

    table: str
    statements: tuple[str, ...] = ()
    create: bool = False
    sql: str = ""
    mismatches: tuple[ColumnMismatch, ...] = ()

    @property
    def changes_required(self) -> bool:
        return bool(self.statements)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "create": self.create,
            "changes_required": self.changes_required,
            "statements": list(self.statements),
            "sql": self.sql,
            "mismatches": [m.to_dict() for m in self.mismatches],
        }


# ----------------------------------------------------------------------
# id column
# ----------------------------------------------------------------------


def expected_id_type(model: ModelSchema) -> str:
    """Stored type the ``id`` column must have for the model's id mode."""
    if model.id_mode.is_opaque:
        return "CHAR(36)"
    id_prop = model.id_property
    if id_prop is not None and id_prop.type is PropertyType.STRING:
        return "VARCHAR(100)"
    return "INT(11)"


def id_column_ddl(model: ModelSchema, codec: ValueCodec = CODEC) -> str:
    expected = expected_id_type(model)
    if expected == "INT(11)":
        return codec.dialect.auto_increment()
    return f"{expected} NOT NULL"


# ----------------------------------------------------------------------
# index clauses
# ----------------------------------------------------------------------


def _index_clause(
    name: str,
    columns: tuple[str, ...],
    kind: str | None,
    method: str | None,
    codec: ValueCodec,
) -> str:
    q = codec.dialect.quote_name
    clause = f"{kind + ' ' if kind else ''}INDEX {q(name)} ({', '.join(q(c) for c in columns)})"
    if method:
        clause += f" USING {method}"
    return clause


def _single_indexes(model: ModelSchema) -> dict[str, PropertyDef]:
    """Properties that declare their own single-column index."""
    return {
        name: prop
        for name, prop in model.properties.items()
        if prop.index is not None and prop.type not in _UNINDEXABLE
    }


def _single_index_clause(prop: PropertyDef, codec: ValueCodec) -> str:
    return _index_clause(prop.name, (prop.name,), prop.index.kind, prop.index.method, codec)


def _multi_index_clause(index: IndexDef, codec: ValueCodec) -> str:
    return _index_clause(index.name, index.columns, index.kind, index.method, codec)


# ----------------------------------------------------------------------
# CREATE TABLE
# ----------------------------------------------------------------------


def create_table_sql(model: ModelSchema, *, codec: ValueCodec = CODEC) -> str:
    """Full ``CREATE TABLE`` for ``model``."""
    q = codec.dialect.quote_name
    lines = [f"{q('id')} {id_column_ddl(model, codec)} PRIMARY KEY"]
    lines += [f"{q(name)} {codec.column_ddl(model.properties[name])}" for name in model.columns()]
    lines += [_single_index_clause(prop, codec) for prop in _single_indexes(model).values()]
    lines += [_multi_index_clause(index, codec) for index in model.indexes.values()]

    sql = f"CREATE TABLE {q(model.table_name)} (\n  " + ",\n  ".join(lines) + "\n)"
    if model.engine:
        sql += f" ENGINE={model.engine}"
    return sql


# ----------------------------------------------------------------------
# ALTER TABLE
# ----------------------------------------------------------------------


def _normalize_type(text: str) -> str:
    return " ".join(text.lower().split())


def _type_changed(stored: str, declared: str) -> bool:
    stored_n, declared_n = _normalize_type(stored), _normalize_type(declared)
    if stored_n == declared_n:
        return False
    if not _INTEGER_WIDTH.match(stored_n):
        return _INTEGER_WIDTH.sub(r"\1", declared_n) != stored_n
    return True


def _nullability_changed(stored_nullable: bool, declared: bool | None) -> bool:
    if stored_nullable:
        return declared is False
    # NOT NULL in the table; anything but an explicit False loosens it
    return declared is not False


def _column_mismatch(prop: PropertyDef, stored: Field, codec: ValueCodec) -> ColumnMismatch | None:
    declared_type = codec.column_type(prop, charset=False)
    if _nullability_changed(stored.nullable, prop.nullable) or _type_changed(stored.raw_type, declared_type):
        return ColumnMismatch(
            column=prop.name,
            stored_type=stored.raw_type,
            stored_nullable=stored.nullable,
            declared_type=declared_type,
            declared_nullable=prop.nullable,
        )
    return None


def alter_statements(
    model: ModelSchema,
    table: IntrospectedTable,
    *,
    codec: ValueCodec = CODEC,
) -> tuple[list[str], list[ColumnMismatch]]:
    """Statements reconciling an existing table, in execution order."""
    q = codec.dialect.quote_name
    statements: list[str] = []
    mismatches: list[ColumnMismatch] = []

    stored_id = table.field("id")
    if stored_id is not None and _type_changed(stored_id.raw_type, expected_id_type(model)):
        statements.append(f"CHANGE COLUMN {q('id')} {q('id')} {id_column_ddl(model, codec)}")

    for name in model.columns():
        prop = model.properties[name]
        stored = table.field(name)
        if stored is None:
            statements.append(f"ADD COLUMN {q(name)} {codec.column_ddl(prop)}")
            continue
        mismatch = _column_mismatch(prop, stored, codec)
        if mismatch is not None:
            mismatches.append(mismatch)
            statements.append(f"CHANGE COLUMN {q(name)} {q(name)} {codec.column_ddl(prop)}")

    for stored in table.fields:
        if stored.name != "id" and stored.name not in model.properties:
            statements.append(f"DROP COLUMN {q(stored.name)}")

    single = _single_indexes(model)
    live_indexes = table.index_columns()
    for index_name, columns in list(live_indexes.items()):
        if index_name in (codec.dialect.PRIMARY_INDEX, "id"):
            continue
        if index_name in model.indexes:
            wanted = list(model.indexes[index_name].columns)
        elif index_name in single:
            wanted = [index_name]
        else:
            wanted = None
        if columns != wanted:
            statements.append(f"DROP INDEX {q(index_name)}")
            del live_indexes[index_name]

    for name, prop in single.items():
        if name not in live_indexes and name not in model.indexes:
            statements.append(f"ADD {_single_index_clause(prop, codec)}")
    for name, index in model.indexes.items():
        if name not in live_indexes:
            statements.append(f"ADD {_multi_index_clause(index, codec)}")

    return statements, mismatches


def diff(model: ModelSchema, table: IntrospectedTable | None, *, codec: ValueCodec = CODEC) -> MigrationPlan:
    """Plan the DDL that brings ``table`` in line with ``model``.

    ``None`` or a table without columns means the table does not exist.
    """
    if table is None or not table.exists:
        sql = create_table_sql(model, codec=codec)
        return MigrationPlan(table=model.table_name, statements=(sql,), create=True, sql=sql)

    statements, mismatches = alter_statements(model, table, codec=codec)
    sql = ""
    if statements:
        sql = f"ALTER TABLE {codec.dialect.quote_name(model.table_name)} " + ",\n ".join(statements)
    return MigrationPlan(
        table=model.table_name,
        statements=tuple(statements),
        sql=sql,
        mismatches=tuple(mismatches),
    )


__all__ = [
    "ColumnMismatch",
    "MigrationPlan",
    "expected_id_type",
    "id_column_ddl",
    "create_table_sql",
    "alter_statements",
    "diff",
]
