"""Live table description as reported by ``SHOW FIELDS`` / ``SHOW INDEXES``.

Index entries arrive flat, one row per (index, column).  :meth:`index_columns`
rebuilds one ordered column list per index name by dropping each column into
the slot named by its ``Seq_in_index``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Field:
    """One introspected column."""

    name: str
    raw_type: str
    nullable: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Field:
        return cls(
            name=_text(row["Field"]),
            raw_type=_text(row["Type"]),
            nullable=_text(row.get("Null", "YES")).upper() == "YES",
        )


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """One (index, column) pair; ``sequence`` is 1-based."""

    index_name: str
    column_name: str
    sequence: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> IndexEntry:
        return cls(
            index_name=_text(row["Key_name"]),
            column_name=_text(row["Column_name"]),
            sequence=int(row["Seq_in_index"]),
        )


def _text(value: Any) -> str:
    # older servers hand back bytearray for SHOW results
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


@dataclass(frozen=True, init=False)
class IntrospectedTable:
    """Read-only snapshot of a table's columns and indexes."""

    fields: tuple[Field, ...] = ()
    indexes: tuple[IndexEntry, ...] = ()

    def __init__(self, fields: Iterable[Field] = (), indexes: Iterable[IndexEntry] = ()):
        object.__setattr__(self, "fields", tuple(fields))
        object.__setattr__(self, "indexes", tuple(indexes))

    @classmethod
    def from_rows(
        cls,
        field_rows: Iterable[Mapping[str, Any]],
        index_rows: Iterable[Mapping[str, Any]] = (),
    ) -> IntrospectedTable:
        return cls(
            fields=[Field.from_row(r) for r in field_rows],
            indexes=[IndexEntry.from_row(r) for r in index_rows],
        )

    @property
    def exists(self) -> bool:
        """A table with no columns is treated as missing."""
        return bool(self.fields)

    def field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def index_columns(self) -> dict[str, list[str]]:
        """Index name → columns ordered by sequence position."""
        slots: dict[str, dict[int, str]] = {}
        for entry in self.indexes:
            slots.setdefault(entry.index_name, {})[entry.sequence] = entry.column_name
        return {
            name: [columns[seq] for seq in sorted(columns)]
            for name, columns in slots.items()
        }


__all__ = [
    "Field",
    "IndexEntry",
    "IntrospectedTable",
]
