import logging
import threading

from werkzeug.serving import make_server

logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Runs a WSGI app on a background thread so the main thread can wait for
    signals and drive an orderly shutdown.
    """

    def __init__(self, app, host="0.0.0.0", port=8080):
        self.host = host
        self.port = port
        self._server = make_server(host, port, app, threaded=True)
        self._thread = threading.Thread(target=self._server.serve_forever, name="http-server", daemon=True)

    @property
    def bound_port(self):
        return self._server.server_port

    def serve(self):
        logger.info(f"Starting server on {self.host}:{self.bound_port}")
        self._thread.start()

    def shutdown(self, timeout=None):
        """
        Stop accepting connections and wait up to `timeout` seconds for the
        serve loop to exit. Returns False if it did not finish in time.
        """
        logger.info("Server shutdown started..")
        if self._thread.ident is None:
            # serve_forever never ran, so BaseServer.shutdown would block
            self._server.server_close()
            logger.info("Server shutdown finished")
            return True
        stopper = threading.Thread(target=self._server.shutdown, name="http-shutdown", daemon=True)
        stopper.start()
        stopper.join(timeout)
        self._thread.join(timeout)
        finished = not self._thread.is_alive()
        if finished:
            self._server.server_close()
            logger.info("Server shutdown finished")
        else:
            logger.warning(f"Server shutdown did not finish within {timeout}s")
        return finished
