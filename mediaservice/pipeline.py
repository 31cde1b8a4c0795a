"""
Ingestion pipeline: bounded task queue, download worker pool and the
per-task state machine recorded in the durable store.

Status flow for one file (every step is appended to the store log):

    PENDING  start processing task
    PENDING  start downloading
    PENDING  finish downloading
    ERROR    download or checksum failure -> next attempt
    FAILED   attempts spent, or probe failure (terminal)
    COMPLETED probe fields written (terminal)
"""

import logging
import threading
import time
from pathlib import Path
from queue import Queue
from typing import Optional

from mediaservice.config import ServiceConfig
from mediaservice.errors import (
    AttemptsExhaustedError,
    DownloadError,
    PipelineClosedError,
    ProbeError,
    StorageError,
)
from mediaservice.fetcher import build_file_path, download, remove_stale
from mediaservice.hasher import md5_file
from mediaservice.models import FileStatus, Task
from mediaservice.worker import STOP, DownloadWorker

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Owns the task channel and the worker pool.
    The store, cache and prober are injected; the pipeline keeps no other
    shared state.
    """

    def __init__(self, store, cache, prober, cfg: ServiceConfig):
        self.store = store
        self.cache = cache
        self.prober = prober
        self.cfg = cfg

        self.output_dir = Path(cfg.output_dir)
        if not self.output_dir.exists():
            logger.debug(f"Output dir {cfg.output_dir!r} does not exist yet, creating")
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self._tasks = Queue(maxsize=cfg.channel_size)
        self._workers = []

        # Guards the closed flag against submitters still inside put()
        self._cond = threading.Condition()
        self._closed = False
        self._submitting = 0

    # === LIFECYCLE ===

    def start(self):
        for i in range(self.cfg.workers):
            worker = DownloadWorker(self._tasks, self.cache, self.process, name=f"worker-{i + 1}")
            worker.start()
            self._workers.append(worker)
        logger.info(f"Started {len(self._workers)} download workers (channel_size={self.cfg.channel_size})")

    def submit(self, task: Task):
        """
        Enqueue a task. Blocks while the channel is full.
        Raises PipelineClosedError once stop() has begun.
        """
        with self._cond:
            if self._closed:
                raise PipelineClosedError("pipeline is shutting down, task rejected")
            self._submitting += 1
        try:
            self._tasks.put(task)
        finally:
            with self._cond:
                self._submitting -= 1
                self._cond.notify_all()

    def resume(self) -> int:
        """
        Re-enqueue every file without a terminal status.
        Must run before the front end starts accepting submissions.
        """
        interrupted = self.store.list_interrupted()
        for record in interrupted:
            logger.info(f"Resuming interrupted task: url={record.url} hash={record.hash}")
            self.submit(Task(url=record.url, hash=record.hash))
        logger.info(f"Resume pass finished, {len(interrupted)} task(s) re-enqueued")
        return len(interrupted)

    def stop(self):
        """
        Close the channel and wait for every worker to drain it and exit.
        Tasks already queued are still processed.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            while self._submitting:
                self._cond.wait()
        logger.debug("Service task queue closed")

        for _ in self._workers:
            self._tasks.put(STOP)

        logger.debug(f"Wait while {len(self._workers)} service workers stopping..")
        for worker in self._workers:
            worker.join()
        logger.info("All download workers stopped")

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def get_stats(self):
        return {
            "queue_size": self._tasks.qsize(),
            "in_flight": len(self.cache),
            "workers_alive": sum(1 for w in self._workers if w.is_alive()),
        }

    # === STATE MACHINE ===

    def process(self, task: Task):
        """
        Run one task to a terminal outcome.
        Returns normally on COMPLETED (or when already completed); raises on
        a terminal failure. Download and checksum failures are retried.
        """
        file_id = self._resolve_file_id(task)
        attempt = 1

        while True:
            if attempt > self.cfg.attempts:
                msg = f"all attempts are spent (count={self.cfg.attempts})"
                self._log_status(file_id, FileStatus.FAILED, msg)
                raise AttemptsExhaustedError(msg)

            if self.store.is_completed(file_id):
                logger.debug(f"File {file_id} already completed, nothing to do")
                return

            logger.debug(f"Processing task {task.fingerprint}. Attempt number: #{attempt}")
            self._log_status(file_id, FileStatus.PENDING, "Start processing task")

            file_path = build_file_path(self.output_dir, task.url, task.hash)

            try:
                self._download(file_id, task.url, file_path)
            except DownloadError as e:
                self._log_status(file_id, FileStatus.ERROR, f"Error while downloading file: {e}")
                attempt += 1
                continue

            mismatch = self._checksum_error(file_path, task.hash)
            if mismatch:
                self._log_status(file_id, FileStatus.ERROR, f"Error while validating checksum: {mismatch}")
                attempt += 1
                continue

            try:
                bit_rate, resolution = self.prober.probe(file_path)
            except ProbeError as e:
                self._log_status(file_id, FileStatus.FAILED, f"Error while getting media info: {e}")
                raise

            self.store.update_file(file_id, bit_rate, resolution)
            self._log_status(file_id, FileStatus.COMPLETED, "Task completed")
            return

    def _resolve_file_id(self, task: Task) -> int:
        file_id: Optional[int] = self.store.select_file(task.url, task.hash)
        if file_id is None:
            file_id = self.store.insert_file(task.url, task.hash)
            logger.debug(f"Registered new file id={file_id} for {task.fingerprint}")
        return file_id

    def _download(self, file_id, url, file_path):
        try:
            if remove_stale(file_path):
                logger.debug(f"Removed stale file {str(file_path)!r}")
        except OSError as e:
            raise DownloadError(f"error while removing stale file {str(file_path)!r}: {e}") from e

        self._log_status(
            file_id,
            FileStatus.PENDING,
            f"Start downloading from url: {url!r} to file: {str(file_path)!r}",
        )
        start = time.monotonic()
        written = download(url, file_path)
        self._log_status(
            file_id,
            FileStatus.PENDING,
            f"Finish downloading! Time elapsed: {time.monotonic() - start:.3f}s ({written} bytes downloaded)",
        )

    def _checksum_error(self, file_path, expected) -> Optional[str]:
        """Returns a description of the failure, or None when the MD5 matches."""
        try:
            actual = md5_file(file_path)
        except OSError as e:
            return f"checksum mismatch, can't read file {str(file_path)!r}: {e}"
        if actual.lower() != expected.lower():
            return f"checksum mismatch, expected {expected!r} but file hash is {actual!r}"
        return None

    def _log_status(self, file_id, status: FileStatus, message: str):
        """
        Append a status entry and mirror it to the application log.
        A failing append is logged and swallowed.
        """
        extra = {"context": threading.current_thread().name}
        if status in (FileStatus.PENDING, FileStatus.COMPLETED):
            logger.info(f"[file={file_id}] {status.name}: {message}", extra=extra)
        else:
            logger.error(f"[file={file_id}] {status.name}: {message}", extra=extra)

        try:
            self.store.append_log(file_id, status, message)
        except StorageError as e:
            logger.error(f"Error while appending log entry for file {file_id}: {e}", extra=extra)
