"""Declared schema: models, sources, and foreign-key tuple index.

Provides the schema value types (``TableDef``, ``KeyDef``), the
``SchemaIndex`` that derives foreign-key tuples, and two schema sources:
a declaration file (``FileSchemaSource``) and live PostgreSQL
introspection (``IntrospectedSchemaSource``).

Usage:
    from dbgc.schema import SchemaIndex, FileSchemaSource
"""

from dbgc.schema.index import SchemaIndex, SchemaSource, StaticSchemaSource, foreign_key_tuples
from dbgc.schema.introspector import IntrospectedSchemaSource, SchemaIntrospector
from dbgc.schema.loader import FileSchemaSource, load_schema_file
from dbgc.schema.models import (
    FieldDef,
    ForeignKeyTuple,
    KeyDef,
    KeyType,
    SchemaDef,
    TableDef,
)

__all__ = [
    "SchemaIndex",
    "SchemaSource",
    "StaticSchemaSource",
    "foreign_key_tuples",
    "FileSchemaSource",
    "load_schema_file",
    "IntrospectedSchemaSource",
    "SchemaIntrospector",
    "FieldDef",
    "ForeignKeyTuple",
    "KeyDef",
    "KeyType",
    "SchemaDef",
    "TableDef",
]
