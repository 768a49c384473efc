"""
=============================================================================
CONNECTION HANDLER
=============================================================================

The unit of work the thread pool runs: one connection, start to finish.

    ┌──────────────┐   ┌──────────────┐   ┌──────────────┐   ┌─────────┐
    │ read_buffer  │──►│ PageResolver │──►│ sendall      │──►│ close   │
    │ (1 recv)     │   │ parse+lookup │   │ full reply   │   │         │
    └──────────────┘   └──────────────┘   └──────────────┘   └─────────┘

Nothing inside suspends or retries. A socket failure, a timeout, or a
vanished not-found document is logged and the connection dropped. The
exception never reaches the worker thread.

=============================================================================
"""

import logging
import time

from ..access_log import RequestLog, log_request, now_timestamp, request_line_of
from ..core.connection import Connection
from .pages import NotFoundDocumentError, PageResolver

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves one page per connection.

    Usage:
        handler = ConnectionHandler(PageResolver("frontend"))
        pool.submit(handler, args=(conn,))
    """

    def __init__(self, resolver: PageResolver, log_format: str = "text"):
        self.resolver = resolver
        self.log_format = log_format

    def __call__(self, conn: Connection) -> None:
        self.handle(conn)

    def handle(self, conn: Connection) -> bool:
        """
        Read, resolve, write and close.

        Returns:
            True if a response was written, False if the connection was
            dropped.
        """
        start_time = time.time()

        with conn:
            try:
                data = conn.read_buffer()
            except OSError as e:
                logger.warning(f"[{conn.id}] Read failed, dropping connection: {e}")
                return False

            try:
                response = self.resolver.resolve(data)
            except NotFoundDocumentError as e:
                logger.error(f"[{conn.id}] {e}; dropping connection")
                return False

            payload = response.to_bytes()
            try:
                conn.send_response(payload)
            except OSError as e:
                logger.warning(f"[{conn.id}] Send failed, dropping connection: {e}")
                return False

        log_request(
            RequestLog(
                connection_id=conn.id,
                client_ip=conn.client_ip,
                request_line=request_line_of(data),
                status_code=response.status,
                content_length=len(payload),
                duration_ms=(time.time() - start_time) * 1000,
                timestamp=now_timestamp(),
            ),
            self.log_format,
        )
        return True
