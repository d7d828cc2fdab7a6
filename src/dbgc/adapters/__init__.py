"""Storage adapters package.

Provides the ``StorageClient`` Protocol and the SQLAlchemy-backed
``SqlStorage`` implementation.

Usage:
    from dbgc.adapters import StorageClient, SqlStorage
"""

from dbgc.adapters.base import StorageClient
from dbgc.adapters.sql import SqlStorage

__all__ = [
    "StorageClient",
    "SqlStorage",
]
