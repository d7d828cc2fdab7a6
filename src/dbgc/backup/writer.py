"""Replayable SQL backup of rows about to be deleted.

Each sweep run appends to one ``dbgc_backup_<YYYYMMDD_HHMMSS>.sql`` file.
Every batch becomes a comment header plus one bulk INSERT that an operator
can execute against the original table to put the rows back:

    -- Backup of posts entries deleted on 20261019_142500
    -- posts (author_id) -> users (id)
    INSERT INTO "posts" ("author_id","title") VALUES
      ('5','first'),
      ('7','it''s');

The primary identifier is left out so re-inserted rows get fresh ids.
Values are always embedded as escaped literals; the escaping style matches
the engine the file will be replayed on.

Usage:
    from dbgc.backup.writer import BackupWriter, LiteralStyle

    writer = BackupWriter("/var/backups/dbgc", style=LiteralStyle.POSTGRES)
    writer.write(table, key, records)   # fsynced before returning
    print(writer.path)
"""

import json
import logging
import os
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from dbgc.errors import BackupWriteError
from dbgc.schema.models import KeyDef, TableDef

logger = logging.getLogger(__name__)

BACKUP_FILE_PREFIX = "dbgc_backup_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class LiteralStyle(Enum):
    """How string literals and identifiers are written.

    - ``BACKSLASH``: MySQL/MariaDB, ``addslashes`` escaping, backtick
      identifiers.
    - ``POSTGRES``: ``E'...'`` escape strings, double-quoted identifiers.
    - ``STANDARD``: ANSI/SQLite, quote doubling, double-quoted identifiers.
    """

    BACKSLASH = "backslash"
    POSTGRES = "postgres"
    STANDARD = "standard"

    @classmethod
    def for_dialect(cls, dialect: str) -> "LiteralStyle":
        """Pick the style a SQLAlchemy dialect name replays with."""
        if dialect == "postgresql":
            return cls.POSTGRES
        if dialect == "sqlite":
            return cls.STANDARD
        return cls.BACKSLASH


# ============================================================================
# Literal escaping
# ============================================================================


def escape_string(value: str, style: LiteralStyle = LiteralStyle.BACKSLASH) -> str:
    """Escape ``value`` for embedding inside a single-quoted literal.

    The result never contains an unescaped quote, so a value cannot end
    the literal early.

    Example:
        >>> escape_string("it's", LiteralStyle.STANDARD)
        "it''s"
    """
    if style is LiteralStyle.BACKSLASH:
        return (
            value.replace("\\", "\\\\")
            .replace("'", "\\'")
            .replace('"', '\\"')
            .replace("\x00", "\\0")
        )
    if style is LiteralStyle.POSTGRES:
        return value.replace("\\", "\\\\").replace("'", "''")
    return value.replace("'", "''")


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def format_array(values: list | tuple) -> str:
    """Render a sequence as PostgreSQL array input text.

    Every element is double-quoted, ``None`` becomes ``NULL`` and nested
    sequences become nested braces.

    Example:
        >>> format_array([1, None, [2, 3]])
        '{"1",NULL,{"2","3"}}'
    """
    elements = []
    for item in values:
        if item is None:
            elements.append("NULL")
        elif isinstance(item, (list, tuple)):
            elements.append(format_array(item))
        else:
            if isinstance(item, dict):
                text = json.dumps(item, default=str)
            elif isinstance(item, (bytes, bytearray, memoryview)):
                text = "\\x" + bytes(item).hex()
            else:
                text = _scalar_text(item)
            elements.append('"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"')
    return "{" + ",".join(elements) + "}"


def format_literal(value: Any, style: LiteralStyle = LiteralStyle.BACKSLASH) -> str:
    """Render a Python value as a SQL literal.

    ``None`` becomes ``NULL``, binary data a hex literal, booleans
    ``'1'``/``'0'``, dicts JSON text.  Lists are PostgreSQL array input
    with the POSTGRES style and JSON text otherwise.  Everything else is
    quoted as a string.
    """
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray, memoryview)):
        hex_value = bytes(value).hex()
        if style is LiteralStyle.POSTGRES:
            return f"decode('{hex_value}', 'hex')"
        return f"X'{hex_value}'"
    if isinstance(value, dict):
        text = json.dumps(value, default=str)
    elif isinstance(value, (list, tuple)):
        if style is LiteralStyle.POSTGRES:
            text = format_array(value)
        else:
            text = json.dumps(value, default=str)
    else:
        text = _scalar_text(value)

    escaped = escape_string(text, style)
    if style is LiteralStyle.POSTGRES:
        return f"E'{escaped}'"
    return f"'{escaped}'"


def format_identifier(name: str, style: LiteralStyle = LiteralStyle.BACKSLASH) -> str:
    """Quote an identifier for the backup file."""
    if style is LiteralStyle.BACKSLASH:
        return "`" + name.replace("`", "``") + "`"
    return '"' + name.replace('"', '""') + '"'


def backup_file_name(started_at: datetime, sequence: int = 1) -> str:
    """Return the artifact file name for a run started at ``started_at``.

    Example:
        >>> backup_file_name(datetime(2026, 1, 2, 3, 4, 5))
        'dbgc_backup_20260102_030405.sql'
        >>> backup_file_name(datetime(2026, 1, 2, 3, 4, 5), 2)
        'dbgc_backup_20260102_030405_2.sql'
    """
    stamp = started_at.strftime(TIMESTAMP_FORMAT)
    suffix = f"_{sequence}" if sequence > 1 else ""
    return f"{BACKUP_FILE_PREFIX}{stamp}{suffix}.sql"


# ============================================================================
# Writer
# ============================================================================


class BackupWriter:
    """Appends INSERT blocks for doomed rows to one run's backup file.

    The file is created on the first ``write()``: the directory is made if
    needed, and the name is exclusively created so an existing file (a run
    started in the same second) is never appended to; a numeric suffix is
    used instead.

    Args:
        root: Directory holding backup files.
        started_at: Run start time used in the file name (default: now).
        style: Literal escaping style for the target engine.
        table_prefix: Prefix prepended to table names in INSERT statements.
        id_field: Primary identifier column, left out of the INSERT.
    """

    def __init__(
        self,
        root: str | Path,
        started_at: datetime | None = None,
        style: LiteralStyle = LiteralStyle.BACKSLASH,
        table_prefix: str = "",
        id_field: str = "id",
    ):
        self.root = Path(root)
        self.started_at = started_at or datetime.now()
        self.style = style
        self.table_prefix = table_prefix
        self.id_field = id_field
        self._path: Path | None = None

    @property
    def path(self) -> Path | None:
        """Path of the artifact, or ``None`` until the first write."""
        return self._path

    def render(
        self,
        table: TableDef,
        key: KeyDef,
        records: list[dict],
        deleted_at: datetime | None = None,
    ) -> str:
        """Render the comment header and INSERT statement for a batch.

        Raises:
            BackupWriteError: If a record lacks one of the table's fields.
        """
        deleted_at = deleted_at or datetime.now()
        field_names = [
            name for name in (table.field_names or list(records[0].keys()))
            if name != self.id_field
        ]

        header = (
            f"-- Backup of {table.name} entries deleted on "
            f"{deleted_at.strftime(TIMESTAMP_FORMAT)}\n"
            f"-- {table.name} ({','.join(key.fields)}) -> "
            f"{key.reftable} ({','.join(key.reffields)})\n"
        )
        columns = ",".join(format_identifier(name, self.style) for name in field_names)
        insert = (
            f"INSERT INTO {format_identifier(self.table_prefix + table.name, self.style)}"
            f" ({columns}) VALUES\n"
        )

        value_lines = []
        for record in records:
            try:
                values = [format_literal(record[name], self.style) for name in field_names]
            except KeyError as e:
                raise BackupWriteError(
                    f"Record of {table.name} has no field {e}; refusing partial backup"
                ) from e
            value_lines.append(f"  ({','.join(values)})")

        return header + insert + ",\n".join(value_lines) + ";\n\n"

    def write(self, table: TableDef, key: KeyDef, records: list[dict]) -> int:
        """Append a backup block for ``records`` and fsync it.

        A successful return means the block is on disk; only then may the
        caller delete the rows.

        Args:
            table: Source table declaration.
            key: Foreign key the records are orphaned on.
            records: Full rows about to be deleted.

        Returns:
            Number of bytes written.

        Raises:
            BackupWriteError: If the block could not be written durably.
        """
        if not records:
            return 0

        data = self.render(table, key, records).encode("utf-8")
        try:
            path = self._ensure_artifact()
            with open(path, "ab") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise BackupWriteError(f"Failed to write backup: {e}") from e

        logger.debug(f"Backed up {len(records)} {table.name} record(s) to {path}")
        return len(data)

    def _ensure_artifact(self) -> Path:
        """Create the run's backup file with its header if not done yet."""
        if self._path is not None:
            return self._path

        self.root.mkdir(parents=True, exist_ok=True)
        sequence = 1
        while True:
            path = self.root / backup_file_name(self.started_at, sequence)
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(
                        f"-- dbgc backup of orphaned records, run started "
                        f"{self.started_at.isoformat(sep=' ', timespec='seconds')}\n\n"
                    )
                    f.flush()
                    os.fsync(f.fileno())
            except FileExistsError:
                sequence += 1
                continue
            self._path = path
            logger.info(f"Created backup file {path}")
            return path
