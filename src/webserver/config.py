"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All the knobs of the server live in one dataclass that is passed to
HTTPServer. Nothing is read from module-level constants, so tests can start
servers with a tiny buffer, a temporary document root or a fixed number of
workers without patching anything.

=============================================================================
WORKER COUNT
=============================================================================

By default the pool size follows the hardware:

    workers = max(1, int(cpu_count * worker_fraction))

    8 CPUs × 0.8 → 6 workers
    1 CPU  × 0.8 → 1 worker (never zero)

Setting ``workers`` explicitly overrides the fraction.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOG_FORMATS = ("text", "json")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    """Integer environment variable; unset or empty gives the default."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ServerConfig:
    """
    Configuration for the page server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, buffer_size, timeout

    WORKER POOL
    - worker_fraction, workers, queue_size

    DOCUMENTS
    - document_root, index_document, not_found_document

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to."""

    port: int = 3000
    """
    The port number to listen on.
    0 lets the OS pick a free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of connections queued by the OS before accept()."""

    buffer_size: int = 1024
    """
    Capacity of the single read done per connection.
    Requests longer than this are truncated.
    """

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds for the read and the write.
    None = block forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    worker_fraction: float = 0.8
    """Share of the available CPUs turned into worker threads."""

    workers: Optional[int] = None
    """Explicit worker count. Overrides worker_fraction when set."""

    queue_size: int = 0
    """
    Bound on connections waiting for a worker. 0 = unbounded.
    When bounded, the accept loop waits for room.
    """

    # ─────────────────────────────────────────────────────────────────────
    # DOCUMENTS
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "frontend"
    index_document: str = "index.html"
    not_found_document: str = "404.html"

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    @property
    def worker_count(self) -> int:
        """Number of worker threads the pool is started with."""
        if self.workers is not None:
            return self.workers
        cpus = os.cpu_count() or 1
        return max(1, int(cpus * self.worker_fraction))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEBSERVER_HOST         Bind address (default: 127.0.0.1)
        WEBSERVER_PORT         Bind port (default: 3000)
        WEBSERVER_WORKERS      Explicit worker count (default: from CPUs)
        WEBSERVER_ROOT         Document root (default: frontend)
        WEBSERVER_BUFFER_SIZE  Read buffer capacity (default: 1024)
        WEBSERVER_LOG_LEVEL    Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("WEBSERVER_HOST", "127.0.0.1"),
            port=_env_int("WEBSERVER_PORT", 3000),
            workers=_env_int("WEBSERVER_WORKERS", None),
            document_root=os.getenv("WEBSERVER_ROOT", "frontend"),
            buffer_size=_env_int("WEBSERVER_BUFFER_SIZE", 1024),
            log_level=os.getenv("WEBSERVER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer before anything is bound or started, so a bad
        deployment fails at startup instead of on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if not 0 < self.worker_fraction <= 1:
            raise ValueError("worker_fraction must be in (0, 1]")

        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.queue_size < 0:
            raise ValueError("queue_size must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")

        if not Path(self.document_root).is_dir():
            raise ValueError(f"Document root does not exist: {self.document_root}")
