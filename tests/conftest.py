"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webserver import HTTPServer, ServerConfig


SAMPLE_REQUEST = (
    "GET / HTTP/1.1\n"
    "Host: 127.0.0.1:3000\n"
    "User-Agent: Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:97.0) Gecko/20100101 Firefox/97.0\n"
    "Accept: text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8\n"
    "Accept-Language: en-US,en;q=0.5\n"
    "Accept-Encoding: gzip, deflate\n"
    "Connection: keep-alive\n"
    "Upgrade-Insecure-Requests: 1\n"
    "Sec-Fetch-Dest: document\n"
    "Sec-Fetch-Mode: navigate\n"
    "Sec-Fetch-Site: none\n"
    "Sec-Fetch-User: ?1\n"
    "Cache-Control: max-age=0"
)

INDEX_HTML = "<!DOCTYPE html>\n<html><body><h1>Home</h1></body></html>\n"
ABOUT_HTML = "<!DOCTYPE html>\n<html><body><p>Café ☕</p></body></html>\n"
INTRO_HTML = "<html><body>intro</body></html>"
NOT_FOUND_HTML = "<!DOCTYPE html>\n<html><body><h1>404</h1></body></html>\n"


@pytest.fixture
def sample_request() -> bytes:
    """Browser-style GET / with no blank line and no body."""
    return SAMPLE_REQUEST.encode()


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample CRLF GET request for /about."""
    return (
        b"GET /about HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def document_root(tmp_path: Path) -> Path:
    """A document root with an index, a UTF-8 page, a nested page and a 404 page."""
    root = tmp_path / "site"
    (root / "docs").mkdir(parents=True)
    (root / "index.html").write_bytes(INDEX_HTML.encode("utf-8"))
    (root / "about.html").write_bytes(ABOUT_HTML.encode("utf-8"))
    (root / "docs" / "intro.html").write_bytes(INTRO_HTML.encode("utf-8"))
    (root / "404.html").write_bytes(NOT_FOUND_HTML.encode("utf-8"))
    return root


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def http_exchange(port: int, raw_request: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, read until the server closes the connection."""
    chunks = []
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(raw_request)
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class, despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def get(self, raw_request: bytes) -> bytes:
        return http_exchange(self.port, raw_request)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def server_config(document_root: Path, free_port: int) -> ServerConfig:
    """Test server configuration with four workers."""
    return ServerConfig(
        host="127.0.0.1",
        port=free_port,
        workers=4,
        timeout=5.0,
        document_root=str(document_root),
        log_level="WARNING",
    )


@pytest.fixture
def test_server(server_config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server on a free port."""
    test_srv = TestServer(HTTPServer(server_config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def server_factory() -> Generator:
    """Build and start extra servers; all are stopped at teardown."""
    started = []

    def factory(config: ServerConfig) -> TestServer:
        test_srv = TestServer(HTTPServer(config))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()
