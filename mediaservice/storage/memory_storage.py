import itertools
import threading
from typing import Dict, List, Optional, Tuple

from mediaservice.errors import StorageError
from mediaservice.models import FileRecord, FileStatus, LogEntry
from mediaservice.storage.base import FileStore, build_statistic


class InMemoryFileStore(FileStore):
    """
    Process-local FileStore backed by dicts.
    Same contract as the SQLite store; nothing survives the process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._files: Dict[int, FileRecord] = {}
        self._by_key: Dict[Tuple[str, str], int] = {}
        self._log: List[LogEntry] = []

    def insert_file(self, url: str, hash: str) -> int:
        with self._lock:
            if (url, hash) in self._by_key:
                raise StorageError(f"UNIQUE constraint failed: files.url, files.hash ({url}, {hash})")
            file_id = next(self._ids)
            self._files[file_id] = FileRecord(id=file_id, url=url, hash=hash)
            self._by_key[(url, hash)] = file_id
            return file_id

    def update_file(self, file_id: int, bit_rate: str, resolution: str) -> None:
        with self._lock:
            record = self._files.get(file_id)
            if record is None:
                return
            self._files[file_id] = FileRecord(
                id=record.id, url=record.url, hash=record.hash,
                resolution=resolution, bit_rate=bit_rate,
            )

    def select_file(self, url: str, hash: str) -> Optional[int]:
        with self._lock:
            return self._by_key.get((url, hash))

    def append_log(self, file_id: int, status: FileStatus, message: str) -> None:
        with self._lock:
            if file_id not in self._files:
                raise StorageError(f"FOREIGN KEY constraint failed: file_id={file_id}")
            self._log.append(LogEntry(file_id=file_id, status=FileStatus(status), message=message))

    def is_completed(self, file_id: int) -> bool:
        with self._lock:
            return any(
                e.file_id == file_id and e.status == FileStatus.COMPLETED for e in self._log
            )

    def list_interrupted(self) -> List[FileRecord]:
        with self._lock:
            finished = {e.file_id for e in self._log if e.status.is_terminal}
            return [f for fid, f in sorted(self._files.items()) if fid not in finished]

    def entries(self, file_id: int) -> List[LogEntry]:
        """Log history of one file, in append order."""
        with self._lock:
            return [e for e in self._log if e.file_id == file_id]

    def get_file(self, file_id: int) -> Optional[FileRecord]:
        with self._lock:
            return self._files.get(file_id)

    def _rows(self, url=None, hash=None):
        with self._lock:
            rows = []
            for file_id, f in sorted(self._files.items()):
                if url is not None and f.url != url:
                    continue
                if hash and f.hash != hash:
                    continue
                entries = [e for e in self._log if e.file_id == file_id]
                if not entries:
                    rows.append((f.url, f.hash, f.bit_rate, f.resolution, None, None))
                for e in entries:
                    rows.append((f.url, f.hash, f.bit_rate, f.resolution, int(e.status), e.message))
            return rows

    def get_statistic(self) -> str:
        return build_statistic(self._rows())

    def get_statistic_by(self, url: str, hash: Optional[str] = None) -> str:
        return build_statistic(self._rows(url, hash))
