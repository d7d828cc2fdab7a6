"""Error taxonomy for the garbage collector.

Components raise these and never retry; ``GarbageCollector`` is the
recovery boundary and turns them into per-tuple failures.

Usage:
    from dbgc.errors import BackupWriteError, StorageError

    try:
        writer.write(table, key, records)
    except BackupWriteError:
        ...  # do not delete this batch
"""


class DbgcError(Exception):
    """Base class for all dbgc errors."""

    pass


class ConfigurationError(DbgcError):
    """Malformed key definition or configuration.

    Raised for keys with no local fields or with local/referenced field
    lists of different lengths.  Indicates a schema bug, not a data bug.
    """

    pass


class StorageError(DbgcError):
    """Query or connectivity failure against the schema or data store."""

    pass


class DeleteError(StorageError):
    """Delete failed after the batch was already backed up.

    The rows are in the backup but still present in the table; the next
    run re-detects them and appends a duplicate backup block.
    """

    pass


class BackupWriteError(DbgcError):
    """The backup artifact could not be written durably."""

    pass


class ProfileNotFoundError(DbgcError):
    """Raised when no database profile is configured."""

    pass
