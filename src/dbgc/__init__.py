"""dbgc: database garbage collector for declared foreign keys.

Finds rows whose declared foreign key points to a missing row, appends
them to a replayable SQL backup, then deletes them.  Foreign keys are
read from a schema declaration, not from engine-enforced constraints.

Usage:
    from dbgc import GarbageCollector, FileSchemaSource, SqlStorage

    collector = GarbageCollector(
        FileSchemaSource("schema.toml"),
        SqlStorage("sqlite:///app.db"),
        backup_root="backups",
    )
    report = collector.report()
    summary = collector.cleanup()
"""

__version__ = "0.1.0"

# Storage
from dbgc.adapters.base import StorageClient
from dbgc.adapters.sql import SqlStorage

# Backup
from dbgc.backup.writer import BackupWriter, LiteralStyle

# Collector
from dbgc.collector import (
    CleanupSummary,
    GarbageCollector,
    ReportEntry,
    SweepReport,
    TupleFailure,
)

# Config
from dbgc.config.loader import load_config
from dbgc.config.models import DatabaseProfile, DbgcConfig

# Errors
from dbgc.errors import (
    BackupWriteError,
    ConfigurationError,
    DbgcError,
    DeleteError,
    ProfileNotFoundError,
    StorageError,
)

# Factory
from dbgc.factory import create_collector, get_active_profile_name, resolve_url

# Query
from dbgc.executor import BatchExecutor
from dbgc.query import OrphanQuery, OrphanQueryBuilder, QueryMode

# Schema
from dbgc.schema.index import SchemaIndex, SchemaSource, StaticSchemaSource
from dbgc.schema.loader import FileSchemaSource, load_schema_file
from dbgc.schema.models import FieldDef, ForeignKeyTuple, KeyDef, KeyType, SchemaDef, TableDef

# Progress
from dbgc.progress import NullProgress, Progress, RichProgress

__all__ = [
    # Storage
    "StorageClient",
    "SqlStorage",
    # Backup
    "BackupWriter",
    "LiteralStyle",
    # Collector
    "GarbageCollector",
    "SweepReport",
    "ReportEntry",
    "CleanupSummary",
    "TupleFailure",
    # Config
    "load_config",
    "DbgcConfig",
    "DatabaseProfile",
    # Errors
    "DbgcError",
    "ConfigurationError",
    "StorageError",
    "DeleteError",
    "BackupWriteError",
    "ProfileNotFoundError",
    # Factory
    "create_collector",
    "get_active_profile_name",
    "resolve_url",
    # Query
    "BatchExecutor",
    "OrphanQuery",
    "OrphanQueryBuilder",
    "QueryMode",
    # Schema
    "SchemaIndex",
    "SchemaSource",
    "StaticSchemaSource",
    "FileSchemaSource",
    "load_schema_file",
    "SchemaDef",
    "TableDef",
    "FieldDef",
    "KeyDef",
    "KeyType",
    "ForeignKeyTuple",
    # Progress
    "Progress",
    "NullProgress",
    "RichProgress",
]
