import logging
import sys
from datetime import datetime

SERVICE_LOGGER = "mediaservice"
TIMESTAMP_FORMAT = "%a %b %d %I:%M:%S %p UTC %Y"


class ServiceFormatter(logging.Formatter):
    """
    One line per record, tagged with the thread that produced it:
    [ Tue Jan 06 05:32:41 AM UTC 2026 ] : INFO : worker-1 : Task completed

    Workers pass their name as extra={"context": ...}; the main thread,
    the HTTP handlers and the resume scan log as "root".
    """
    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime(TIMESTAMP_FORMAT)
        context = getattr(record, "context", "root")
        line = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _handlers(log_file):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    return handlers


def setup_logger(name=SERVICE_LOGGER, log_file=None, level=logging.INFO):
    """
    Configure the service logger and return the logger called `name`.

    Handlers live only on the "mediaservice" logger; module loggers such as
    "mediaservice.pipeline" reach them by propagation. A second call only
    adjusts the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != SERVICE_LOGGER:
        logger.propagate = True
        setup_logger(SERVICE_LOGGER, log_file=log_file, level=level)
        return logger

    if logger.handlers:
        return logger

    formatter = ServiceFormatter()
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
