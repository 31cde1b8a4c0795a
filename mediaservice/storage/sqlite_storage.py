import sqlite3
import threading
from typing import List, Optional

from mediaservice.errors import StorageError
from mediaservice.models import FileRecord, FileStatus
from mediaservice.storage.base import FileStore, build_statistic

INSERT_FILE_SQL = "INSERT INTO files (url, hash, resolution, bitrate) VALUES (?, ?, '', '')"

UPDATE_FILE_SQL = "UPDATE files SET bitrate = ?, resolution = ? WHERE id = ?"

SELECT_FILE_SQL = "SELECT id FROM files WHERE url = ? AND hash = ?"

INSERT_LOG_SQL = "INSERT INTO log (file_id, status, message) VALUES (?, ?, ?)"

CHECK_COMPLETED_SQL = f"""
    SELECT 1
      FROM log
     WHERE file_id = ?
       AND status = {int(FileStatus.COMPLETED)}
     LIMIT 1
"""

SELECT_INTERRUPTED_SQL = f"""
    SELECT f.id, f.url, f.hash, f.resolution, f.bitrate
      FROM files f
     WHERE NOT EXISTS (
           SELECT 1
             FROM log l
            WHERE l.file_id = f.id
              AND l.status IN ({int(FileStatus.COMPLETED)}, {int(FileStatus.FAILED)})
     )
     ORDER BY f.id
"""

SELECT_STATISTIC_SQL = """
    SELECT f.url, f.hash, f.bitrate, f.resolution, l.status, l.message
      FROM files f
      LEFT JOIN log l
        ON l.file_id = f.id
     ORDER BY f.id, l.id
"""

SELECT_STATISTIC_BY_URL_SQL = """
    SELECT f.url, f.hash, f.bitrate, f.resolution, l.status, l.message
      FROM files f
      LEFT JOIN log l
        ON l.file_id = f.id
     WHERE f.url = ?
     ORDER BY f.id, l.id
"""

SELECT_STATISTIC_BY_URL_HASH_SQL = """
    SELECT f.url, f.hash, f.bitrate, f.resolution, l.status, l.message
      FROM files f
      LEFT JOIN log l
        ON l.file_id = f.id
     WHERE f.url = ?
       AND f.hash = ?
     ORDER BY f.id, l.id
"""


class SQLiteFileStore(FileStore):
    """
    SQLite implementation of FileStore.
    One shared connection, serialized with a lock; every write is committed
    before the call returns.
    """

    def __init__(self, connection: sqlite3.Connection):
        self._conn = connection
        self._lock = threading.Lock()

    def _write(self, sql, params=()):
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
                return cursor
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StorageError(str(e)) from e

    def _read(self, sql, params=()):
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def insert_file(self, url: str, hash: str) -> int:
        cursor = self._write(INSERT_FILE_SQL, (url, hash))
        return cursor.lastrowid

    def update_file(self, file_id: int, bit_rate: str, resolution: str) -> None:
        self._write(UPDATE_FILE_SQL, (bit_rate, resolution, file_id))

    def select_file(self, url: str, hash: str) -> Optional[int]:
        rows = self._read(SELECT_FILE_SQL, (url, hash))
        if rows:
            return rows[0][0]
        return None

    def append_log(self, file_id: int, status: FileStatus, message: str) -> None:
        self._write(INSERT_LOG_SQL, (file_id, int(status), message))

    def is_completed(self, file_id: int) -> bool:
        return bool(self._read(CHECK_COMPLETED_SQL, (file_id,)))

    def list_interrupted(self) -> List[FileRecord]:
        return [
            FileRecord(id=row[0], url=row[1], hash=row[2], resolution=row[3], bit_rate=row[4])
            for row in self._read(SELECT_INTERRUPTED_SQL)
        ]

    def get_statistic(self) -> str:
        return build_statistic(self._read(SELECT_STATISTIC_SQL))

    def get_statistic_by(self, url: str, hash: Optional[str] = None) -> str:
        if hash:
            rows = self._read(SELECT_STATISTIC_BY_URL_HASH_SQL, (url, hash))
        else:
            rows = self._read(SELECT_STATISTIC_BY_URL_SQL, (url,))
        return build_statistic(rows)

    def close(self) -> None:
        with self._lock:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e
