"""Tests for PostgreSQL schema introspection.

psycopg is mocked; the tests check how catalog rows become tables and
keys, not the catalog queries themselves.
"""

from unittest.mock import MagicMock, patch

import psycopg
import pytest

from dbgc.errors import StorageError
from dbgc.schema.introspector import IntrospectedSchemaSource, SchemaIntrospector
from dbgc.schema.models import KeyType


def _mock_connection(fetchall_results: list) -> MagicMock:
    """Connection whose cursor returns ``fetchall_results`` in order."""
    cursor = MagicMock()
    cursor.fetchall.side_effect = fetchall_results
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


POSTS_KEYS = [
    ("posts_author_fkey", "f", ["author_id"], "users", ["id"]),
    ("posts_editor_fkey", "f", ["editor_id"], "users", ["id"]),
    ("posts_editor_key", "u", ["editor_id"], None, []),
    ("posts_pkey", "p", ["id"], None, []),
]


class TestSchemaIntrospector:
    """Catalog rows to SchemaDef."""

    def test_tables_columns_and_keys(self) -> None:
        conn = _mock_connection([
            [("posts",), ("schema_migrations",)],
            [("id",), ("author_id",), ("editor_id",)],
            POSTS_KEYS,
        ])
        with patch("dbgc.schema.introspector.psycopg.connect", return_value=conn):
            with SchemaIntrospector("postgresql://u@h/db") as introspector:
                schema = introspector.introspect()

        assert [t.name for t in schema.tables] == ["posts"]
        posts = schema.tables[0]
        assert posts.field_names == ["id", "author_id", "editor_id"]

        keys = {k.name: k for k in posts.keys}
        assert keys["posts_author_fkey"].type is KeyType.FOREIGN
        assert keys["posts_author_fkey"].reftable == "users"
        assert keys["posts_author_fkey"].reffields == ("id",)
        assert keys["posts_pkey"].type is KeyType.PRIMARY
        assert keys["posts_pkey"].reftable is None

    def test_foreign_unique_detected(self) -> None:
        """A foreign key on a uniquely constrained column set is foreign-unique."""
        conn = _mock_connection([[("posts",)], [("id",)], POSTS_KEYS])
        with patch("dbgc.schema.introspector.psycopg.connect", return_value=conn):
            with SchemaIntrospector("postgresql://u@h/db") as introspector:
                keys = {k.name: k for k in introspector.introspect().tables[0].keys}

        assert keys["posts_editor_fkey"].type is KeyType.FOREIGN_UNIQUE

    def test_composite_key_order_kept(self) -> None:
        rows = [("e_group_fkey", "f", ["course_id", "group_id"], "cohorts", ["course", "id"])]
        conn = _mock_connection([[("enrolments",)], [("id",)], rows])
        with patch("dbgc.schema.introspector.psycopg.connect", return_value=conn):
            with SchemaIntrospector("postgresql://u@h/db") as introspector:
                key = introspector.introspect().tables[0].keys[0]

        assert key.fields == ("course_id", "group_id")
        assert key.reffields == ("course", "id")

    def test_connect_timeout_added(self) -> None:
        conn = _mock_connection([[]])
        with patch("dbgc.schema.introspector.psycopg.connect", return_value=conn) as connect:
            with SchemaIntrospector("postgresql://u@h/db") as introspector:
                introspector.introspect("app")

        connect.assert_called_once_with("postgresql://u@h/db?connect_timeout=10")
        conn.close.assert_called_once()

    def test_requires_connection(self) -> None:
        with pytest.raises(RuntimeError, match="not connected"):
            SchemaIntrospector("postgresql://u@h/db").introspect()


class TestIntrospectedSchemaSource:
    def test_list_tables(self) -> None:
        conn = _mock_connection([[("posts",)], [("id",)], POSTS_KEYS])
        with patch("dbgc.schema.introspector.psycopg.connect", return_value=conn):
            tables = IntrospectedSchemaSource("postgresql://u@h/db").list_tables()
        assert [t.name for t in tables] == ["posts"]

    def test_connection_error_wrapped(self) -> None:
        with patch(
            "dbgc.schema.introspector.psycopg.connect",
            side_effect=psycopg.OperationalError("connection refused"),
        ):
            with pytest.raises(StorageError, match="Failed to introspect schema"):
                IntrospectedSchemaSource("postgresql://u@h/db").list_tables()
