"""
Download worker thread.
Each worker drains the shared task queue until it receives the stop marker.
"""

import logging
import threading

from mediaservice.errors import MediaServiceError

logger = logging.getLogger(__name__)

# Placed on the queue once per worker when the pipeline shuts down
STOP = object()


class DownloadWorker(threading.Thread):
    """
    Runs in a loop: dequeue task, drop it if an identical task is in flight,
    otherwise process it. Errors are logged and never stop the loop.
    """

    def __init__(self, tasks, cache, process, name="worker"):
        super().__init__(name=name, daemon=True)
        self.tasks = tasks
        self.cache = cache
        self.process = process
        self.log_extra = {"context": name}

    def run(self):
        logger.debug("download worker started", extra=self.log_extra)
        while True:
            task = self.tasks.get()
            try:
                if task is STOP:
                    break
                self.handle(task)
            finally:
                self.tasks.task_done()
        logger.debug("download worker stopped", extra=self.log_extra)

    def handle(self, task):
        key = task.fingerprint

        if self.cache.has(key):
            logger.debug(f"skip duplicate task, already in progress: {key}", extra=self.log_extra)
            return

        # add() reports False if another worker registered the key in between
        if not self.cache.add(key):
            logger.debug(f"skip duplicate task, already in progress: {key}", extra=self.log_extra)
            return

        try:
            self.process(task)
        except MediaServiceError as e:
            logger.error(f"Error processing task {key}: {e}", extra=self.log_extra)
        except Exception:
            logger.exception(f"Unexpected error processing task {key}", extra=self.log_extra)
        finally:
            self.cache.remove(key)
