"""Replayable SQL backups of orphaned rows.

Usage:
    from dbgc.backup import BackupWriter, LiteralStyle
"""

from dbgc.backup.writer import (
    BackupWriter,
    LiteralStyle,
    backup_file_name,
    escape_string,
    format_array,
    format_literal,
)

__all__ = [
    "BackupWriter",
    "LiteralStyle",
    "backup_file_name",
    "escape_string",
    "format_array",
    "format_literal",
]
