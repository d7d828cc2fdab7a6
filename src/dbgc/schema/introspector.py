"""PostgreSQL schema introspection via pg_catalog.

Builds a ``SchemaDef`` from a live database:
- Tables (base tables only, alphabetical)
- Columns in ordinal order
- Primary key, unique and foreign key constraints, with composite
  columns kept in constraint order

A foreign key whose column set is also covered by a unique or primary
key constraint is reported as ``foreign-unique``.

Uses psycopg (v3) for PostgreSQL connections.
"""

import psycopg
from psycopg import Connection

from dbgc.errors import StorageError
from dbgc.schema.models import FieldDef, KeyDef, KeyType, SchemaDef, TableDef


_CONSTRAINT_TYPES = {
    "p": KeyType.PRIMARY,
    "u": KeyType.UNIQUE,
    "f": KeyType.FOREIGN,
}


class SchemaIntrospector:
    """Introspects PostgreSQL tables, columns and key constraints.

    Usage:
        with SchemaIntrospector(database_url) as introspector:
            schema = introspector.introspect()
    """

    # Tables to exclude from introspection (system tables)
    EXCLUDED_TABLES = {
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(self, database_url: str):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
        """
        self._database_url = database_url
        self._conn: Connection | None = None

    def __enter__(self) -> "SchemaIntrospector":
        """Context manager entry - opens connection."""
        url = self._database_url
        if "connect_timeout" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}connect_timeout=10"

        self._conn = psycopg.connect(url)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def introspect(self, schema_name: str = "public") -> SchemaDef:
        """Introspect tables and keys of one PostgreSQL schema.

        Args:
            schema_name: PostgreSQL schema to introspect (default: public)

        Returns:
            SchemaDef with tables in alphabetical order.
        """
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use with statement.")

        tables = []
        for table_name in self._get_tables(schema_name):
            if table_name in self.EXCLUDED_TABLES:
                continue
            tables.append(
                TableDef(
                    name=table_name,
                    fields=tuple(
                        FieldDef(name=c) for c in self._get_columns(schema_name, table_name)
                    ),
                    keys=tuple(self._get_keys(schema_name, table_name)),
                )
            )
        return SchemaDef(tables=tables)

    def _get_tables(self, schema_name: str) -> list[str]:
        """Get all table names in schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        with self._conn.cursor() as cur:
            cur.execute(query, (schema_name,))
            return [row[0] for row in cur.fetchall()]

    def _get_columns(self, schema_name: str, table_name: str) -> list[str]:
        """Get column names for a table in ordinal order."""
        query = """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
        """
        with self._conn.cursor() as cur:
            cur.execute(query, (schema_name, table_name))
            return [row[0] for row in cur.fetchall()]

    def _get_keys(self, schema_name: str, table_name: str) -> list[KeyDef]:
        """Get primary, unique and foreign keys for a table.

        information_schema.constraint_column_usage loses the positional
        pairing of composite foreign keys, so conkey/confkey are unnested
        with their ordinality instead.
        """
        query = """
            SELECT
                c.conname,
                c.contype,
                ARRAY(
                    SELECT a.attname
                    FROM unnest(c.conkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a
                        ON a.attrelid = c.conrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ) AS columns,
                rt.relname AS references_table,
                ARRAY(
                    SELECT a.attname
                    FROM unnest(c.confkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a
                        ON a.attrelid = c.confrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ) AS references_columns
            FROM pg_constraint c
            JOIN pg_class t ON t.oid = c.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            LEFT JOIN pg_class rt ON rt.oid = c.confrelid
            WHERE n.nspname = %s
              AND t.relname = %s
              AND c.contype IN ('p', 'u', 'f')
            ORDER BY c.conname
        """
        with self._conn.cursor() as cur:
            cur.execute(query, (schema_name, table_name))
            rows = cur.fetchall()

        unique_sets = {
            frozenset(columns)
            for _, contype, columns, _, _ in rows
            if contype in ("p", "u")
        }

        keys = []
        for name, contype, columns, ref_table, ref_columns in rows:
            key_type = _CONSTRAINT_TYPES[contype]
            if key_type is KeyType.FOREIGN and frozenset(columns) in unique_sets:
                key_type = KeyType.FOREIGN_UNIQUE
            keys.append(
                KeyDef(
                    name=name,
                    type=key_type,
                    fields=tuple(columns),
                    reftable=ref_table if key_type.is_foreign else None,
                    reffields=tuple(ref_columns or ()),
                )
            )
        return keys


class IntrospectedSchemaSource:
    """Schema source that introspects a live PostgreSQL database.

    A new connection is opened for each ``list_tables()`` call, so the
    result always reflects the current catalog.

    Args:
        database_url: PostgreSQL connection URL.
        schema_name: PostgreSQL schema to read (default: public).
    """

    def __init__(self, database_url: str, schema_name: str = "public"):
        self._database_url = database_url
        self._schema_name = schema_name

    def list_tables(self) -> list[TableDef]:
        try:
            with SchemaIntrospector(self._database_url) as introspector:
                return introspector.introspect(self._schema_name).tables
        except psycopg.Error as e:
            raise StorageError(f"Failed to introspect schema: {e}") from e
