"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

Owns the one listening socket. Every accepted client socket is wrapped in a
Connection and passed to a callback; the HTTP server's callback submits it
to the thread pool, so this loop never touches client data itself.

    socket() → SO_REUSEADDR → bind(host, port) → listen(backlog)
        │
        └─► accept() ─► Connection ─► callback ─► accept() ─► ...

accept() waits at most ACCEPT_TIMEOUT seconds so the loop re-checks the
stop flag about once a second.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection

logger = logging.getLogger(__name__)

ACCEPT_TIMEOUT = 1.0

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    TCP listener feeding accepted connections to a callback.

    Usage:
        listener = SocketServer(config)
        listener.start(pool_submit)     # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._listener: Optional[socket.socket] = None
        self._bound: Optional[Tuple[str, int]] = None
        self._accepting = False
        self._ready = threading.Event()
        self._previous_signal_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        Where the server listens.

        Once bound this is the real address, so port 0 in the config
        reports the port the OS picked.
        """
        if self._bound is not None:
            return self._bound
        return self.config.host, self.config.port

    def start(
        self,
        connection_handler: Callable[[Connection], None],
        on_listening: Optional[Callable[[], None]] = None,
    ):
        """
        Bind, listen and accept connections until shutdown().

        Args:
            connection_handler: Called with each new Connection on the
                accept thread. It must hand the connection off quickly.
            on_listening: Called once, right after listen().

        Raises:
            OSError: The address could not be bound.
        """
        self._listener = self._listen()
        self._accepting = True
        self._install_signal_handlers()

        logger.info(f"Server listening on {self.address[0]}:{self.address[1]}")
        if on_listening:
            on_listening()
        self._ready.set()

        try:
            while self._accepting:
                conn = self._accept_one()
                if conn is not None:
                    connection_handler(conn)
        finally:
            self._close_listener()

    def _listen(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.settimeout(ACCEPT_TIMEOUT)

        address = (self.config.host, self.config.port)
        try:
            sock.bind(address)
        except OSError as e:
            logger.error(f"Cannot bind {address[0]}:{address[1]}: {e}")
            sock.close()
            raise

        sock.listen(self.config.backlog)
        self._bound = sock.getsockname()[:2]
        return sock

    def _accept_one(self) -> Optional[Connection]:
        """Wait for one client. None on timeout or once the listener is gone."""
        try:
            client, peer = self._listener.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if self._accepting:
                logger.error(f"accept() failed: {e}")
            self._accepting = False
            return None

        client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        logger.debug(f"Client connected: {peer[0]}:{peer[1]}")
        return Connection(
            socket=client,
            address=peer,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
        )

    def shutdown(self):
        """Stop accepting. Safe to call repeatedly and from any thread."""
        if self._accepting:
            logger.info("Stopping accept loop")
        self._accepting = False

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout)

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _install_signal_handlers(self):
        # signal.signal() raises ValueError off the main thread
        if threading.current_thread() is not threading.main_thread():
            return

        def on_signal(signum, frame):
            logger.info(f"{signal.Signals(signum).name} received, shutting down")
            self.shutdown()

        for sig in STOP_SIGNALS:
            self._previous_signal_handlers[sig] = signal.signal(sig, on_signal)

    def _restore_signal_handlers(self):
        while self._previous_signal_handlers:
            sig, handler = self._previous_signal_handlers.popitem()
            signal.signal(sig, handler)

    def _close_listener(self):
        self._restore_signal_handlers()

        if self._listener is not None:
            try:
                self._listener.close()
            except OSError:
                pass
            self._listener = None

        self._ready.clear()
        logger.info("Listener closed")
