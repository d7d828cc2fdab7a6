"""Schema index: derives foreign-key tuples from a schema source.

Usage:
    from dbgc.schema.index import SchemaIndex, StaticSchemaSource

    index = SchemaIndex(StaticSchemaSource(schema))
    for fk in index.tuples():
        print(fk.label)
"""

from typing import Protocol

from dbgc.schema.models import ForeignKeyTuple, SchemaDef, TableDef


class SchemaSource(Protocol):
    """Read-only schema metadata store.

    ``list_tables()`` must return tables in declaration order, each with
    its fields and keys in declaration order.
    """

    def list_tables(self) -> list[TableDef]:
        """Return the current table declarations."""
        ...


class StaticSchemaSource:
    """Schema source backed by an in-memory ``SchemaDef``."""

    def __init__(self, schema: SchemaDef):
        self._schema = schema

    def list_tables(self) -> list[TableDef]:
        return list(self._schema.tables)


def foreign_key_tuples(tables: list[TableDef]) -> list[ForeignKeyTuple]:
    """Pair every table with each of its foreign keys.

    Pure filter over the declarations: order follows tables, then keys,
    as declared.  Keys of other kinds are ignored.
    """
    return [
        ForeignKeyTuple(table=table, key=key)
        for table in tables
        for key in table.keys
        if key.type.is_foreign
    ]


class SchemaIndex:
    """Exposes the foreign-key tuples of a schema source.

    Nothing is cached: every call re-reads the source so a schema change
    between two runs is picked up.
    """

    def __init__(self, source: SchemaSource):
        self._source = source

    def tables(self) -> list[TableDef]:
        return self._source.list_tables()

    def tuples(self) -> list[ForeignKeyTuple]:
        """Return all foreign-key tuples in declaration order."""
        return foreign_key_tuples(self.tables())

    def find(
        self, table_name: str, key_name: str | None = None
    ) -> list[ForeignKeyTuple]:
        """Return the tuples of one table, optionally of one key only.

        Args:
            table_name: Table whose foreign keys to return.
            key_name: Optional key name to narrow to a single tuple.

        Returns:
            Matching tuples in declaration order; empty if none match.
        """
        return [
            fk
            for fk in self.tuples()
            if fk.table.name == table_name
            and (key_name is None or fk.key.name == key_name)
        ]
