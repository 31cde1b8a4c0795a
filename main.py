import argparse
import logging
import signal
import sys
import threading

from mediaservice.cache import InFlightCache
from mediaservice.config import DEFAULT_CONFIG_PATH, debug_mode_enabled, load_config
from mediaservice.errors import ConfigError, StorageError
from mediaservice.logger import setup_logger
from mediaservice.pipeline import IngestionPipeline
from mediaservice.prober import FFProbeProber
from mediaservice.server import HTTPServer, create_app
from mediaservice.storage import SQLiteFileStore
from mediaservice.storage.db import get_connection, initialize_db, verify_schema


class MediaService:
    """
    Wires store, cache, prober, pipeline and HTTP front end together and
    owns the startup and shutdown ordering:
    start workers -> resume interrupted -> serve HTTP -> (signal) ->
    HTTP shutdown -> join workers -> close store.
    """

    def __init__(self, cfg, logger):
        self.cfg = cfg
        self.logger = logger
        self._quit = threading.Event()

        conn = get_connection(cfg.db_filepath)
        initialize_db(conn)
        verify_schema(conn)
        self.store = SQLiteFileStore(conn)

        self.cache = InFlightCache(cfg.cache_manager.size, cfg.cache_manager.expiration)
        self.pipeline = IngestionPipeline(self.store, self.cache, FFProbeProber(), cfg.service)
        self.server = HTTPServer(create_app(self.pipeline, self.store), port=cfg.server.port)

    def _handle_signal(self, signum, frame):
        self.logger.info(f"Received signal {signal.Signals(signum).name}")
        self._quit.set()

    def run(self):
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        self.pipeline.start()
        self.pipeline.resume()
        self.server.serve()

        # Event.wait with a timeout keeps the main thread responsive to signals
        while not self._quit.wait(0.5):
            pass

        self.stop()

    def stop(self):
        self.server.shutdown(self.cfg.server.shutdown_timeout)

        self.logger.debug(f"Stopping service, pipeline stats: {self.pipeline.get_stats()}")
        self.pipeline.stop()
        self.logger.debug("Service stopped")

        self.store.close()
        self.logger.info("Shutdown complete")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Media ingestion service")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.debug or debug_mode_enabled() else logging.INFO

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        setup_logger(level=level).error(f"Initialization failed: {e}")
        return 1

    logger = setup_logger(log_file=cfg.log_file, level=level)
    try:
        service = MediaService(cfg, logger)
    except (StorageError, OSError) as e:
        logger.error(f"Initialization failed: {e}")
        return 1

    try:
        service.run()
    except StorageError as e:
        logger.error(f"Service failed: {e}")
        service.stop()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
