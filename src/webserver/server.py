"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the components together:

    ServerConfig ──► HTTPServer
                        ├── PageResolver       (fails fast on a missing 404 page)
                        ├── ThreadPool         (config.worker_count workers)
                        ├── ConnectionHandler  (runs on the workers)
                        └── SocketServer       (accept loop, main thread)

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts a TCP connection
    2. _handle_connection() submits it to the ThreadPool
    3. A worker runs ConnectionHandler: read 1 buffer, parse, resolve
    4. The formatted response is written and the connection closed

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .handlers import ConnectionHandler, PageResolver

logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static page server.

    Usage:
        server = HTTPServer(ServerConfig(port=3000, document_root="frontend"))
        server.run()    # blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().

        Raises:
            ValueError: Invalid configuration.
            NotFoundDocumentError: The not-found document cannot be read.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.resolver = PageResolver(
            self.config.document_root,
            index_document=self.config.index_document,
            not_found_document=self.config.not_found_document,
        )
        self.handler = ConnectionHandler(self.resolver, log_format=self.config.log_format)

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            num_workers=self.config.worker_count,
            queue_size=self.config.queue_size,
        )

        self._running = False

    @property
    def thread_pool(self) -> ThreadPool:
        return self._thread_pool

    @property
    def address(self):
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                Embedders with their own logging setup pass False.

        Raises:
            OSError: The listening address could not be bound.
        """
        if setup_logging:
            self._setup_logging()

        self._thread_pool.start()
        self._running = True

        try:
            self._socket_server.start(
                self._handle_connection, on_listening=self._log_banner
            )
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up. False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask a running server to stop; run() returns shortly after."""
        self._socket_server.shutdown()

    def _log_banner(self):
        host, port = self.address
        logger.info(
            f"Listening on http://{host}:{port} , "
            f"running on {self._thread_pool.num_workers} threads"
        )

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("webserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Runs on the accept thread: hand the connection to the pool."""
        submitted = self._thread_pool.submit(self.handler, args=(conn,))
        if not submitted:
            logger.warning(f"[{conn.id}] Task queue full, dropping connection")
            conn.close()


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """Factory for HTTPServer instances."""
    return HTTPServer(config)
