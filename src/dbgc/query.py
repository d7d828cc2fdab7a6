"""Orphan query construction.

Builds the set-difference query that finds rows of a source table whose
foreign key has no counterpart in the referenced table:

    SELECT <target>
    FROM "posts" t
    LEFT OUTER JOIN "users" r ON t."author_id" = r."id"
    WHERE r."id" IS NULL AND t."author_id" <> 0
    LIMIT 32768

A zero foreign-key value means "no reference" and is never an orphan.
For composite keys every pair must match for a row to be referenced, and
every local field must be non-zero for it to be considered at all.

Table and field names come from the trusted schema declaration and are
interpolated as quoted identifiers; no row values appear in the SQL.

Usage:
    from dbgc.query import OrphanQueryBuilder, QueryMode

    builder = OrphanQueryBuilder(table_prefix="mdl_")
    query = builder.build(table, key, QueryMode.DATA, page_size=1000)
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from dbgc.errors import ConfigurationError
from dbgc.schema.models import KeyDef, TableDef


class QueryMode(Enum):
    """What an orphan query selects."""

    COUNT = "count"
    IDS = "ids"
    DATA = "data"


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier, doubling embedded double quotes.

    Example:
        >>> quote_identifier("user")
        '"user"'
    """
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class OrphanQuery:
    """A built orphan query and what it returns."""

    sql: str
    mode: QueryMode
    table_name: str  # physical (prefixed) source table name
    page_size: int = 0


class OrphanQueryBuilder:
    """Builds orphan queries for (table, foreign key) pairs.

    Args:
        table_prefix: Prefix prepended to every physical table name.
        id_field: Primary identifier column of source tables.
        quote: Identifier quoting function; pass ``StorageClient.quote`` so
            names are quoted the way the target engine expects (backticks
            on MySQL).
    """

    def __init__(
        self,
        table_prefix: str = "",
        id_field: str = "id",
        quote: Callable[[str], str] = quote_identifier,
    ):
        self.table_prefix = table_prefix
        self.id_field = id_field
        self.quote = quote

    def physical_name(self, table_name: str) -> str:
        """Return the prefixed table name as stored in the database."""
        return f"{self.table_prefix}{table_name}"

    def build(
        self,
        table: TableDef,
        key: KeyDef,
        mode: QueryMode = QueryMode.COUNT,
        page_size: int = 0,
    ) -> OrphanQuery:
        """Build the orphan query for one foreign key.

        Args:
            table: Source table declaration.
            key: Foreign key of ``table``.
            mode: Selection target (count, identifiers, or full rows).
            page_size: Maximum rows returned; ``<= 0`` means unbounded.

        Returns:
            ``OrphanQuery`` ready for ``BatchExecutor.execute()``.

        Raises:
            ConfigurationError: If the key has no local fields, no
                referenced table, or field lists of different lengths.
        """
        validate_key(table, key)

        source = self.physical_name(table.name)
        target = self.physical_name(key.reftable)
        t_id = f"t.{self.quote(self.id_field)}"

        if mode is QueryMode.COUNT:
            selected = f"COUNT({t_id})"
        elif mode is QueryMode.IDS:
            selected = t_id
        else:
            selected = "t.*"

        on_fields: list[str] = []
        conditions: list[str] = []
        for local, ref in zip(key.fields, key.reffields):
            local_col = f"t.{self.quote(local)}"
            ref_col = f"r.{self.quote(ref)}"
            on_fields.append(f"{local_col} = {ref_col}")
            conditions.append(f"{ref_col} IS NULL")
            conditions.append(f"{local_col} <> 0")

        sql = (
            f"SELECT {selected}"
            f" FROM {self.quote(source)} t"
            f" LEFT OUTER JOIN {self.quote(target)} r"
            f" ON {' AND '.join(on_fields)}"
            f" WHERE {' AND '.join(conditions)}"
        )
        if page_size > 0:
            sql += f" LIMIT {int(page_size)}"

        return OrphanQuery(sql=sql, mode=mode, table_name=source, page_size=page_size)


def validate_key(table: TableDef, key: KeyDef) -> None:
    """Check that a foreign key can be turned into an orphan query.

    Raises:
        ConfigurationError: On an empty or mismatched field mapping.
    """
    if not key.fields:
        raise ConfigurationError(
            f"Key '{key.name}' on table '{table.name}' has no local fields"
        )
    if not key.reftable:
        raise ConfigurationError(
            f"Key '{key.name}' on table '{table.name}' has no referenced table"
        )
    if len(key.fields) != len(key.reffields):
        raise ConfigurationError(
            f"Key '{key.name}' on table '{table.name}' maps "
            f"{len(key.fields)} field(s) to {len(key.reffields)} referenced field(s)"
        )
