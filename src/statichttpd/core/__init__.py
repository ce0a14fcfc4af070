"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking and concurrency plumbing behind the file server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Listening socket, accept() loop on the main thread               │
    │  • SIGINT / SIGTERM → graceful shutdown                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Worker threads, each serving one connection at a time            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                       CONNECTION WORKER                              │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • read → resolve → respond → report → close                        │
    │  • reports bytes to the shared ByteCounter                          │
    └─────────────────────────────────────────────────────────────────────┘

The ByteCounter is the only state shared between workers. Everything
else (socket, buffer, resolved path) belongs to a single worker.

=============================================================================
"""

from .byte_counter import ByteCounter
from .connection import Connection, ConnectionState, RequestReadError
from .socket_server import SocketServer
from .thread_pool import ThreadPool
from .worker import ConnectionWorker, ServeRecord

__all__ = [
    "ByteCounter",        # Shared, lock-protected byte total
    "Connection",         # Wrapper for client socket - handles I/O
    "ConnectionState",    # Enum for connection lifecycle states
    "RequestReadError",   # Request could not be read (→ 400)
    "SocketServer",       # Main TCP server - accepts connections
    "ThreadPool",         # Worker threads for concurrency
    "ConnectionWorker",   # Serves one connection end to end
    "ServeRecord",        # Access log entry
]
