"""Repository layer - data access abstraction.

Record stores handle all persistence, providing a clean interface for
services. Services should use a RecordStore for data access rather than
directly querying SQLAlchemy models or files.

- RecordStore: Interface used by the engine
- SqlRecordStore: SQLAlchemy session backed
- LocalFileRecordStore: One JSON file per user, for users without an account

Dependency direction: Services -> Repositories -> Models
"""

from .base import RecordStore
from .exceptions import NotFoundError, RepositoryError, StoreWriteError
from .local_file_store import LocalFileRecordStore
from .sql_record_store import SqlRecordStore

__all__ = [
    "LocalFileRecordStore",
    "NotFoundError",
    "RecordStore",
    "RepositoryError",
    "SqlRecordStore",
    "StoreWriteError",
]
