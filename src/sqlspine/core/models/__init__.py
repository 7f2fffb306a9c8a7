"""Typed models shared by the codec, compiler, differ and gateway.

Modules
-------
properties
    PropertyType, PropertyDef, IndexDef, IdMode, Point and ModelSchema:
    the declared side of a model.
filters
    Filter: pydantic-validated read filter (where/order/group/limit/skip).
introspection
    Field, IndexEntry and IntrospectedTable: the live side of a table.

Tags:
    models, dataclasses, pydantic, schema-mapping

Doc-Types:
    package-overview, module-index
"""

from sqlspine.core.models.filters import Filter
from sqlspine.core.models.introspection import Field, IndexEntry, IntrospectedTable
from sqlspine.core.models.properties import (
    IdMode,
    IndexDef,
    IndexSpec,
    ModelSchema,
    Point,
    PropertyDef,
    PropertyType,
)

__all__ = [
    # Declared schema
    "PropertyType",
    "PropertyDef",
    "IndexSpec",
    "IndexDef",
    "IdMode",
    "Point",
    "ModelSchema",
    # Filters
    "Filter",
    # Introspection
    "Field",
    "IndexEntry",
    "IntrospectedTable",
]
