"""Pydantic models for the declared schema.

This module contains the schema-domain value types:
- FieldDef, KeyDef, TableDef, SchemaDef: the declared schema snapshot
- KeyType: key kinds, of which only foreign keys matter here
- ForeignKeyTuple: a derived (table, key) pairing

Field lists on keys are not cross-validated here.  A key with mismatched
field lists is still loadable; ``OrphanQueryBuilder`` rejects it so that
only that key's tuple fails.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Schema Declaration Models
# ============================================================================


class KeyType(str, Enum):
    """Kind of a declared key."""

    PRIMARY = "primary"
    UNIQUE = "unique"
    FOREIGN = "foreign"
    FOREIGN_UNIQUE = "foreign-unique"

    @property
    def is_foreign(self) -> bool:
        """True for keys that reference another table."""
        return self in (KeyType.FOREIGN, KeyType.FOREIGN_UNIQUE)


class FieldDef(BaseModel):
    """A table column, identified by name only."""

    model_config = ConfigDict(frozen=True)

    name: str


class KeyDef(BaseModel):
    """A declared key on a table.

    Example:
        >>> key = KeyDef(name="author", type="foreign", fields=["author_id"],
        ...              reftable="users", reffields=["id"])
        >>> key.type.is_foreign
        True
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: KeyType
    fields: tuple[str, ...] = ()  # local columns, in order
    reftable: str | None = None
    reffields: tuple[str, ...] = ()  # positional counterparts of fields


class TableDef(BaseModel):
    """A declared table with its ordered fields and keys.

    Fields may be given as plain names in schema files; they are
    normalized to ``FieldDef``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[FieldDef, ...] = ()
    keys: tuple[KeyDef, ...] = ()

    @field_validator("fields", mode="before")
    @classmethod
    def _coerce_field_names(cls, value):
        if isinstance(value, (list, tuple)):
            return tuple(
                {"name": item} if isinstance(item, str) else item for item in value
            )
        return value

    @property
    def field_names(self) -> list[str]:
        """Field names in declaration order."""
        return [f.name for f in self.fields]


class SchemaDef(BaseModel):
    """Complete declared schema, tables in declaration order."""

    tables: list[TableDef] = Field(default_factory=list)

    @field_validator("tables")
    @classmethod
    def _unique_table_names(cls, tables: list[TableDef]) -> list[TableDef]:
        seen: set[str] = set()
        for table in tables:
            if table.name in seen:
                raise ValueError(f"Duplicate table name in schema: {table.name}")
            seen.add(table.name)
        return tables


# ============================================================================
# Derived Models
# ============================================================================


class ForeignKeyTuple(BaseModel):
    """A (table, foreign key) pairing derived from the schema."""

    model_config = ConfigDict(frozen=True)

    table: TableDef
    key: KeyDef

    @property
    def label(self) -> str:
        """Human-readable ``table.key -> reftable`` label for logs."""
        return f"{self.table.name}.{self.key.name} -> {self.key.reftable}"
