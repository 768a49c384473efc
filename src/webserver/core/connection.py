"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket.

This server does ONE read per connection:

    client ──► recv(buffer_size) ──► resolve ──► sendall(response) ──► close

TCP does not preserve message boundaries, so that single recv() may return
only part of what the client sent, and anything past ``buffer_size`` bytes
is never read. Both are accepted limitations: the parser works on whatever
the read returned.

=============================================================================
CONNECTION STATES
=============================================================================

    NEW ──► READING ──► WRITING ──► CLOSING ──► CLOSED

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle of a connection, for logging and debugging."""
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Read and write errors are NOT swallowed here: read_buffer() and
    send_response() raise OSError (socket.timeout included) and the
    ConnectionHandler decides to drop the connection.

    Usage:
        with conn:
            data = conn.read_buffer()
            conn.send_response(payload)
        # closed here, even on error
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # From ServerConfig
    buffer_size: int = 1024
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    def read_buffer(self) -> bytes:
        """
        Read up to buffer_size bytes with a single recv().

        Returns:
            The bytes received. Empty if the client closed without sending.

        Raises:
            OSError: Read failed or timed out.
        """
        self.state = ConnectionState.READING
        data = self.socket.recv(self.buffer_size)
        logger.debug(f"[{self.id}] Read {len(data)} bytes from {self.client_ip}")
        return data

    def send_response(self, data: bytes) -> None:
        """
        Send the whole response.

        sendall() keeps writing until every byte is out or the socket fails.

        Raises:
            OSError: Write failed or timed out.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) sends FIN first so the client sees a clean end of
        response, then the descriptor is released. Errors here mean the
        peer is already gone and are ignored.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
