"""Model schema definitions: property types, properties, indexes, models.

Manifesto:
    The compiler, codec and differ all read the same declared model.  It
    is an immutable snapshot: frozen dataclasses with read-only mappings, so
    a schema handed to a compile or diff call cannot change underneath it.

    Models are usually declared in a YAML/JSON file and turned into a
    :class:`ModelSchema` by :meth:`ModelSchema.from_dict`.  Unknown types,
    empty index column lists and unnamed models are reported as
    :class:`~sqlspine.core.errors.ConfigError`.

Examples:
    >>> person = ModelSchema.from_dict({
    ...     "name": "person",
    ...     "properties": {"name": "string", "age": {"type": "number"}},
    ... })
    >>> person.table_name
    'person'
    >>> person.properties["age"].type
    <PropertyType.NUMBER: 'Number'>

Tags:
    models, schema, dataclasses, properties, indexes

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from sqlspine.core.errors import ConfigError


class PropertyType(str, Enum):
    """Semantic type of a model property."""

    STRING = "String"
    TEXT = "Text"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    JSON = "JSON"
    ENUM = "Enum"
    POINT = "Point"
    ARRAY = "Array"

    @classmethod
    def parse(cls, value: Any) -> PropertyType:
        """Resolve a declared type name, case-insensitively."""
        if isinstance(value, PropertyType):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        alias = _TYPE_ALIASES.get(key)
        if alias is None:
            raise ConfigError(f"Unknown property type: {value!r}")
        return alias


_TYPE_ALIASES = {
    "str": PropertyType.STRING,
    "int": PropertyType.NUMBER,
    "integer": PropertyType.NUMBER,
    "float": PropertyType.NUMBER,
    "bool": PropertyType.BOOLEAN,
    "datetime": PropertyType.DATE,
    "object": PropertyType.JSON,
    "list": PropertyType.ARRAY,
}


class IdMode(str, Enum):
    """Primary key strategy: auto-increment/declared id, or opaque UUIDs."""

    NONE = "none"
    V1 = "v1"
    V4 = "v4"

    @property
    def is_opaque(self) -> bool:
        return self is not IdMode.NONE


@dataclass(frozen=True, slots=True)
class Point:
    """A geometry point stored in a MySQL ``POINT`` column."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class IndexSpec:
    """Single-column index declared on a property."""

    kind: str | None = None
    method: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> IndexSpec | None:
        """``True`` → plain index; a mapping → kind/method; falsy → none."""
        if not value:
            return None
        if isinstance(value, Mapping):
            kind = value.get("kind")
            if kind is None and value.get("unique"):
                kind = "UNIQUE"
            method = value.get("method", value.get("type"))
            return cls(
                kind=str(kind).upper() if kind else None,
                method=str(method).upper() if method else None,
            )
        return cls()


@dataclass(frozen=True, slots=True)
class PropertyDef:
    """One declared property and its column facets.

    ``nullable`` is tri-state: ``True``/``False`` when declared, ``None``
    when the model says nothing.
    """

    name: str
    type: PropertyType = PropertyType.STRING
    nullable: bool | None = None
    length: int | None = None
    limit: int | None = None
    display: int | None = None
    precision: int | None = None
    scale: int | None = None
    unsigned: bool = False
    charset: str | None = None
    collation: str | None = None
    data_type: str | None = None
    index: IndexSpec | None = None
    enum_values: tuple[str, ...] = ()
    item_type: PropertyType | None = None

    @classmethod
    def from_dict(cls, name: str, spec: Any) -> PropertyDef:
        """Build from ``"string"``, ``["number"]`` or a facet mapping."""
        if isinstance(spec, PropertyDef):
            return spec
        if isinstance(spec, (str, PropertyType)):
            return cls(name=name, type=PropertyType.parse(spec))
        if isinstance(spec, list):
            return cls(name=name, type=PropertyType.ARRAY, item_type=_item_type(spec))
        if not isinstance(spec, Mapping):
            raise ConfigError(f"Property {name!r} must be a type name or a mapping")

        raw_type = spec.get("type", PropertyType.STRING)
        item_type = None
        if isinstance(raw_type, list):
            ptype, item_type = PropertyType.ARRAY, _item_type(raw_type)
        else:
            ptype = PropertyType.parse(raw_type)
            if ptype is PropertyType.ARRAY and spec.get("item_type"):
                item_type = PropertyType.parse(spec["item_type"])

        nullable = spec.get("nullable", spec.get("allow_null", spec.get("null")))
        data_type = spec.get("data_type", spec.get("dataType"))
        enum_values = spec.get("enum_values", spec.get("values", ()))
        if ptype is PropertyType.ENUM and not enum_values:
            raise ConfigError(f"Enum property {name!r} declares no values")

        return cls(
            name=name,
            type=ptype,
            nullable=None if nullable is None else bool(nullable),
            length=_int_or_none(spec.get("length")),
            limit=_int_or_none(spec.get("limit")),
            display=_int_or_none(spec.get("display")),
            precision=_int_or_none(spec.get("precision")),
            scale=_int_or_none(spec.get("scale")),
            unsigned=bool(spec.get("unsigned", False)),
            charset=spec.get("charset"),
            collation=spec.get("collation"),
            data_type=str(data_type).upper() if data_type else None,
            index=IndexSpec.from_value(spec.get("index")),
            enum_values=tuple(str(v) for v in enum_values),
            item_type=item_type,
        )


def _item_type(declared: list[Any]) -> PropertyType | None:
    return PropertyType.parse(declared[0]) if declared else None


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Expected an integer facet, got {value!r}", cause=e) from e


@dataclass(frozen=True, slots=True)
class IndexDef:
    """A named (possibly multi-column) index declared on the model."""

    name: str
    columns: tuple[str, ...]
    kind: str | None = None
    method: str | None = None

    def __post_init__(self) -> None:
        if not self.columns:
            raise ConfigError(f"Index {self.name!r} has no columns")

    @classmethod
    def from_dict(cls, name: str, spec: Any) -> IndexDef:
        """Columns may be a list or a comma separated string."""
        if isinstance(spec, IndexDef):
            return spec
        if isinstance(spec, (str, list, tuple)):
            spec = {"columns": spec}
        if not isinstance(spec, Mapping):
            raise ConfigError(f"Index {name!r} must be a mapping")
        columns = spec.get("columns", spec.get("keys", ()))
        if isinstance(columns, str):
            columns = [c.strip() for c in columns.split(",")]
        elif isinstance(columns, Mapping):
            columns = list(columns)
        kind = spec.get("kind")
        method = spec.get("method", spec.get("type"))
        return cls(
            name=name,
            columns=tuple(c for c in columns if c),
            kind=str(kind).upper() if kind else None,
            method=str(method).upper() if method else None,
        )


_OPAQUE_ID = PropertyDef(name="id", type=PropertyType.STRING)


@dataclass(frozen=True)
class ModelSchema:
    """A declared model: the context every compile and diff call receives."""

    name: str
    properties: Mapping[str, PropertyDef] = field(default_factory=dict)
    indexes: Mapping[str, IndexDef] = field(default_factory=dict)
    table: str | None = None
    engine: str | None = None
    id_mode: IdMode = IdMode.NONE

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("Model name is required")
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "indexes", MappingProxyType(dict(self.indexes)))

    @property
    def table_name(self) -> str:
        return self.table or self.name

    @property
    def id_property(self) -> PropertyDef | None:
        """The declared ``id`` property, if any."""
        return self.properties.get("id")

    def property_for(self, name: str) -> PropertyDef | None:
        """Property used to encode values of column ``name``.

        Under an opaque id mode ``id`` is always a string, whatever the
        declaration says.
        """
        if name == "id" and self.id_mode.is_opaque:
            return _OPAQUE_ID
        return self.properties.get(name)

    def columns(self) -> list[str]:
        """Declared column names except ``id``, in declaration order."""
        return [name for name in self.properties if name != "id"]

    def is_known(self, name: str) -> bool:
        return name == "id" or name in self.properties

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelSchema:
        """Build a schema from a plain mapping (as loaded from YAML/JSON)."""
        name = data.get("name")
        if not name:
            raise ConfigError("Model definition is missing 'name'")
        properties = {
            prop_name: PropertyDef.from_dict(prop_name, spec)
            for prop_name, spec in (data.get("properties") or {}).items()
        }
        indexes = {
            index_name: IndexDef.from_dict(index_name, spec)
            for index_name, spec in (data.get("indexes") or {}).items()
        }
        raw_mode = data.get("id_mode", data.get("uuid")) or IdMode.NONE
        try:
            id_mode = IdMode(str(getattr(raw_mode, "value", raw_mode)).lower())
        except ValueError as e:
            raise ConfigError(f"Unknown id mode {raw_mode!r} for model {name!r}", cause=e) from e
        return cls(
            name=name,
            properties=properties,
            indexes=indexes,
            table=data.get("table"),
            engine=data.get("engine"),
            id_mode=id_mode,
        )


__all__ = [
    "PropertyType",
    "IdMode",
    "Point",
    "IndexSpec",
    "PropertyDef",
    "IndexDef",
    "ModelSchema",
]
