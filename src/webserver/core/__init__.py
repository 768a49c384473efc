"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Transport plumbing, independent of how pages are resolved:

    socket_server.py   listening socket + accept loop
    connection.py      one client socket: single read, sendall, close
    thread_pool.py     fixed set of worker threads fed by a queue

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
