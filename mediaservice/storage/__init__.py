from mediaservice.storage.base import FileStore, build_statistic
from mediaservice.storage.memory_storage import InMemoryFileStore
from mediaservice.storage.sqlite_storage import SQLiteFileStore

__all__ = ["FileStore", "InMemoryFileStore", "SQLiteFileStore", "build_statistic"]
