from enum import IntEnum
from dataclasses import dataclass


class FileStatus(IntEnum):
    # Values are the on-disk encoding of log.status
    PENDING = 1
    ERROR = 2
    FAILED = 3
    COMPLETED = 4

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.FAILED, FileStatus.COMPLETED)


@dataclass(frozen=True)
class Task:
    """
    A download request as submitted to the pipeline.
    Identity for deduplication is the (url, hash) pair.
    """
    url: str
    hash: str

    @property
    def fingerprint(self) -> str:
        """Key used by the in-flight cache."""
        return f"{self.url}-{self.hash}"


@dataclass(frozen=True)
class FileRecord:
    """
    Durable artifact metadata.
    Invariants: (url, hash) is unique; resolution and bit_rate stay empty until probed.
    """
    id: int
    url: str
    hash: str
    resolution: str = ""
    bit_rate: str = ""


@dataclass(frozen=True)
class LogEntry:
    file_id: int
    status: FileStatus
    message: str
