"""Storage client protocol definition.

Defines the ``StorageClient`` Protocol that storage backends implement.
All methods are blocking; the sweep runs one statement at a time.

Usage:
    from dbgc.adapters.base import StorageClient

    def count_rows(client: StorageClient) -> int:
        return client.fetch_scalar('SELECT COUNT(*) FROM "users"')
"""

from typing import Any, Protocol


class StorageClient(Protocol):
    """Storage interface consumed by ``BatchExecutor``.

    Implementations raise ``dbgc.errors.StorageError`` for any failure of
    the underlying driver.
    """

    @property
    def dialect(self) -> str:
        """Database dialect name (e.g. ``"postgresql"``, ``"sqlite"``)."""
        ...

    def quote(self, name: str) -> str:
        """Quote a table or column name for this engine."""
        ...

    def fetch_scalar(self, sql: str, params: dict | None = None) -> Any:
        """Run a query and return the first column of the first row.

        Returns:
            The scalar value, or ``None`` if the query returned no rows.
        """
        ...

    def fetch_all(self, sql: str, params: dict | None = None) -> list[dict]:
        """Run a query and return every row as a dict.

        Returns:
            List of dicts keyed by column name.  Empty list if no rows.
        """
        ...

    def delete_ids(self, table: str, id_field: str, ids: list[Any]) -> int:
        """Delete rows of ``table`` whose ``id_field`` is in ``ids``.

        All rows are deleted in one transaction.

        Returns:
            Number of rows deleted.
        """
        ...

    def close(self) -> None:
        """Release the connection pool."""
        ...
