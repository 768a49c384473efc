"""
=============================================================================
ACCESS LOG
=============================================================================

One log line per served connection, on the ``webserver.access`` logger:

    TEXT (default, Apache style):
        127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "GET / HTTP/1.1" 200 1234 0.52ms

    JSON:
        {"connection_id": "a1b2c3d4", "client_ip": "127.0.0.1",
         "request_line": "GET / HTTP/1.1", "status_code": 200,
         "content_length": 1234, "duration_ms": 0.52, "timestamp": "..."}

Route or silence it like any other logger:

    logging.getLogger("webserver.access").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass

logger = logging.getLogger("webserver.access")


def request_line_of(data: bytes) -> str:
    """First line of a raw buffer, for logging only."""
    first = data.split(b"\n", 1)[0]
    return first.decode("utf-8", errors="replace").strip() or "-"


@dataclass
class RequestLog:
    """Structured access log entry."""

    connection_id: str
    client_ip: str
    request_line: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "request_line": self.request_line,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.request_line}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def log_request(entry: RequestLog, log_format: str = "text") -> None:
    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())


def now_timestamp() -> str:
    return time.strftime("%d/%b/%Y:%H:%M:%S %z")
