"""Batch executor: runs orphan queries and deletes by identifier."""

import logging
from collections.abc import Iterable
from typing import Any

from dbgc.adapters.base import StorageClient
from dbgc.errors import DeleteError, StorageError
from dbgc.query import OrphanQuery, QueryMode

logger = logging.getLogger(__name__)


class BatchExecutor:
    """Executes orphan queries against a storage client.

    Args:
        storage: Storage backend implementing ``StorageClient``.
        id_field: Primary identifier column used for IDS results and
            deletes.
    """

    def __init__(self, storage: StorageClient, id_field: str = "id"):
        self.storage = storage
        self.id_field = id_field

    def execute(self, query: OrphanQuery) -> int | set | list[dict]:
        """Run an orphan query.

        Returns:
            ``int`` for COUNT queries, a ``set`` of identifiers for IDS
            queries, a ``list`` of row dicts for DATA queries.

        Raises:
            StorageError: If the query fails.
        """
        logger.debug(f"Executing {query.mode.value} query on {query.table_name}: {query.sql}")

        if query.mode is QueryMode.COUNT:
            return int(self.storage.fetch_scalar(query.sql) or 0)

        rows = self.storage.fetch_all(query.sql)
        if query.mode is QueryMode.IDS:
            return {next(iter(row.values())) for row in rows}
        return rows

    def delete(self, table_name: str, identifiers: Iterable[Any]) -> int:
        """Delete rows of ``table_name`` by primary identifier.

        Never deletes by foreign-key value: a row that regained a valid
        reference since it was queried is still deleted by its id.

        Args:
            table_name: Physical table name.
            identifiers: Identifiers to delete.  Empty input is a no-op.

        Returns:
            Number of rows deleted.

        Raises:
            DeleteError: If the storage layer fails.
        """
        ids = list(identifiers)
        if not ids:
            return 0
        try:
            return self.storage.delete_ids(table_name, self.id_field, ids)
        except StorageError as e:
            raise DeleteError(str(e)) from e
