"""Tests for BatchExecutor and the SqlStorage adapter.

BatchExecutor is tested against a MagicMock storage; SqlStorage against
a real SQLite database through SQLAlchemy.
"""

from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest
from psycopg.types.string import TextLoader
from sqlalchemy import create_engine, event, text
from sqlalchemy.dialects import mysql

from dbgc.adapters.sql import SqlStorage, load_json_as_text, normalize_url
from dbgc.errors import DeleteError, StorageError
from dbgc.executor import BatchExecutor
from dbgc.query import OrphanQuery, QueryMode


def _query(mode: QueryMode) -> OrphanQuery:
    return OrphanQuery(sql="SELECT ...", mode=mode, table_name="posts")


def _sqlite_storage(tmp_path: Path, rows: int = 5) -> SqlStorage:
    """SQLite database with an ``items`` table of ``rows`` rows."""
    url = f"sqlite:///{tmp_path / 'items.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text('CREATE TABLE "items" (id INTEGER PRIMARY KEY, name TEXT)'))
        for i in range(1, rows + 1):
            conn.execute(text('INSERT INTO "items" (id, name) VALUES (:i, :n)'), {"i": i, "n": f"n{i}"})
    engine.dispose()
    return SqlStorage(url)


# ------------------------------------------------------------------
# BatchExecutor
# ------------------------------------------------------------------


class TestBatchExecutor:
    """Result shape per mode and delete semantics."""

    def test_count_returns_int(self) -> None:
        storage = MagicMock()
        storage.fetch_scalar.return_value = 7
        assert BatchExecutor(storage).execute(_query(QueryMode.COUNT)) == 7

    def test_count_none_is_zero(self) -> None:
        storage = MagicMock()
        storage.fetch_scalar.return_value = None
        assert BatchExecutor(storage).execute(_query(QueryMode.COUNT)) == 0

    def test_ids_returns_set(self) -> None:
        storage = MagicMock()
        storage.fetch_all.return_value = [{"id": 3}, {"id": 5}, {"id": 3}]
        assert BatchExecutor(storage).execute(_query(QueryMode.IDS)) == {3, 5}

    def test_data_returns_rows(self) -> None:
        rows = [{"id": 1, "author_id": 9}]
        storage = MagicMock()
        storage.fetch_all.return_value = rows
        assert BatchExecutor(storage).execute(_query(QueryMode.DATA)) == rows

    def test_query_errors_propagate(self) -> None:
        storage = MagicMock()
        storage.fetch_all.side_effect = StorageError("boom")
        with pytest.raises(StorageError, match="boom"):
            BatchExecutor(storage).execute(_query(QueryMode.DATA))

    def test_delete_empty_is_noop(self) -> None:
        storage = MagicMock()
        assert BatchExecutor(storage).delete("posts", []) == 0
        storage.delete_ids.assert_not_called()

    def test_delete_by_identifier(self) -> None:
        storage = MagicMock()
        storage.delete_ids.return_value = 2
        executor = BatchExecutor(storage, id_field="pk")

        assert executor.delete("posts", {5, 7}) == 2
        table, id_field, ids = storage.delete_ids.call_args[0]
        assert (table, id_field) == ("posts", "pk")
        assert sorted(ids) == [5, 7]

    def test_delete_failure_is_delete_error(self) -> None:
        storage = MagicMock()
        storage.delete_ids.side_effect = StorageError("locked")
        with pytest.raises(DeleteError, match="locked"):
            BatchExecutor(storage).delete("posts", [1])


# ------------------------------------------------------------------
# SqlStorage
# ------------------------------------------------------------------


class TestNormalizeUrl:
    """URL normalization for SQLAlchemy."""

    def test_postgres_alias(self) -> None:
        assert normalize_url("postgres://u@h/db") == (
            "postgresql+psycopg://u@h/db?connect_timeout=5"
        )

    def test_postgresql_with_query(self) -> None:
        assert normalize_url("postgresql://u@h/db?sslmode=require") == (
            "postgresql+psycopg://u@h/db?sslmode=require&connect_timeout=5"
        )

    def test_existing_timeout_kept(self) -> None:
        url = "postgresql+psycopg://u@h/db?connect_timeout=30"
        assert normalize_url(url) == url

    def test_sqlite_unchanged(self) -> None:
        assert normalize_url("sqlite:///x.db") == "sqlite:///x.db"


class TestSqlStorage:
    """SqlStorage on SQLite."""

    def test_requires_url_or_engine(self) -> None:
        with pytest.raises(ValueError):
            SqlStorage()

    def test_dialect(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert storage.dialect == "sqlite"
        storage.close()

    def test_fetch_scalar(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert storage.fetch_scalar('SELECT COUNT(*) FROM "items"') == 5
        storage.close()

    def test_fetch_all(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path, rows=2)
        rows = storage.fetch_all('SELECT * FROM "items" ORDER BY id')
        assert rows == [{"id": 1, "name": "n1"}, {"id": 2, "name": "n2"}]
        storage.close()

    def test_delete_ids(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert storage.delete_ids("items", "id", [2, 4, 99]) == 2
        remaining = storage.fetch_all('SELECT id FROM "items" ORDER BY id')
        assert [r["id"] for r in remaining] == [1, 3, 5]
        storage.close()

    def test_delete_ids_chunked(self, tmp_path: Path) -> None:
        """Large id lists are split across several statements."""
        storage = _sqlite_storage(tmp_path, rows=10)
        with patch("dbgc.adapters.sql.DELETE_CHUNK_SIZE", 3):
            assert storage.delete_ids("items", "id", list(range(1, 11))) == 10
        assert storage.fetch_scalar('SELECT COUNT(*) FROM "items"') == 0
        storage.close()

    def test_delete_empty(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert storage.delete_ids("items", "id", []) == 0
        storage.close()

    def test_errors_wrapped(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        with pytest.raises(StorageError, match="Query failed"):
            storage.fetch_all('SELECT * FROM "missing"')
        with pytest.raises(StorageError, match="Query failed"):
            storage.fetch_scalar('SELECT COUNT(*) FROM "missing"')
        with pytest.raises(StorageError, match="Delete from missing failed"):
            storage.delete_ids("missing", "id", [1])
        storage.close()


def _mysql_storage() -> tuple[SqlStorage, MagicMock]:
    """SqlStorage over a mocked engine carrying the MySQL dialect."""
    engine = MagicMock()
    engine.dialect = mysql.dialect()
    conn = engine.begin.return_value.__enter__.return_value
    conn.execute.return_value.rowcount = 2
    return SqlStorage(engine=engine), conn


class TestIdentifierQuoting:
    """Names are quoted by the engine's own identifier preparer."""

    def test_sqlite_double_quotes(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert storage.quote("items") == '"items"'
        assert storage.quote('we"ird') == '"we""ird"'
        storage.close()

    def test_mysql_backticks(self) -> None:
        storage, _ = _mysql_storage()
        assert storage.quote("posts") == "`posts`"

    def test_mysql_delete_uses_backticks(self) -> None:
        storage, conn = _mysql_storage()
        assert storage.delete_ids("posts", "id", [1, 2]) == 2
        statement = conn.execute.call_args.args[0]
        assert statement.text == "DELETE FROM `posts` WHERE `id` IN :ids"


class TestJsonLoader:
    """psycopg engines load json/jsonb columns as text."""

    def test_registers_text_loader(self) -> None:
        dbapi_connection = MagicMock()
        load_json_as_text(dbapi_connection, None)
        dbapi_connection.adapters.register_loader.assert_has_calls(
            [call("json", TextLoader), call("jsonb", TextLoader)]
        )

    def test_listener_on_psycopg_engine(self) -> None:
        storage = SqlStorage("postgresql://u@h/db")
        assert event.contains(storage._engine, "connect", load_json_as_text)
        storage.close()

    def test_no_listener_on_sqlite(self, tmp_path: Path) -> None:
        storage = _sqlite_storage(tmp_path)
        assert not event.contains(storage._engine, "connect", load_json_as_text)
        storage.close()
