import json
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from mediaservice.models import FileRecord, FileStatus


class FileStore(ABC):
    """
    Abstract interface for the durable store of files and their status log.
    Implementations must tolerate concurrent calls from every worker and the
    front end. Every failure is raised as StorageError.
    """

    @abstractmethod
    def insert_file(self, url: str, hash: str) -> int:
        """Create a File with empty probe fields. Returns the new id."""
        pass

    @abstractmethod
    def update_file(self, file_id: int, bit_rate: str, resolution: str) -> None:
        """Overwrite the probe fields of a File."""
        pass

    @abstractmethod
    def select_file(self, url: str, hash: str) -> Optional[int]:
        """Lookup by natural key. Returns None when not found."""
        pass

    @abstractmethod
    def append_log(self, file_id: int, status: FileStatus, message: str) -> None:
        """Append a status entry. Entries are never updated or deleted."""
        pass

    @abstractmethod
    def is_completed(self, file_id: int) -> bool:
        """True iff at least one COMPLETED entry references the file."""
        pass

    @abstractmethod
    def list_interrupted(self) -> List[FileRecord]:
        """All Files without a COMPLETED or FAILED entry."""
        pass

    @abstractmethod
    def get_statistic(self) -> str:
        """Serialized document of every File with its log history."""
        pass

    @abstractmethod
    def get_statistic_by(self, url: str, hash: Optional[str] = None) -> str:
        """Same document filtered by url, and by hash when given."""
        pass

    def close(self) -> None:
        """Release underlying resources."""
        pass


# (url, hash, bitrate, resolution, status, message); status and message are
# None for a file without log entries
StatisticRow = Tuple[str, str, str, str, int, str]


def build_statistic(rows: Iterable[StatisticRow]) -> str:
    """
    Render joined file/log rows into the statistics document:
    {url: {"hash", "bitrate", "resolution", "log": [{"status", "message"}, ...]}}
    Log entries accumulate in the order the rows are scanned. A row with a
    NULL status stands for a file without log entries.
    """
    files = {}
    for url, hash, bitrate, resolution, status, message in rows:
        if url not in files:
            files[url] = {
                "hash": hash,
                "bitrate": bitrate,
                "resolution": resolution,
                "log": [],
            }

        if status is not None:
            files[url]["log"].append({"status": FileStatus(status).name, "message": message})

    return json.dumps(files)
