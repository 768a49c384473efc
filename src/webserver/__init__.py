"""
=============================================================================
WEBSERVER - Minimal HTTP/1.1 Static Page Server
=============================================================================

Serves HTML documents from a document root over raw TCP sockets, one
request per connection, on a fixed pool of worker threads.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   accept loop ──► ThreadPool ──► ConnectionHandler                  │
    │                                     │                               │
    │                                     ├─ Connection.read_buffer()     │
    │                                     ├─ PageResolver.resolve()       │
    │                                     │     ├─ RequestParser.parse()  │
    │                                     │     └─ document root lookup   │
    │                                     ├─ format_response()            │
    │                                     └─ Connection.send_response()   │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from webserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=3000, document_root="frontend"))
    server.run()

    # or from the shell
    python -m webserver --port 3000 --root frontend

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer, create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
