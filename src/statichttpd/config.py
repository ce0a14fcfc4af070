"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
WHAT IS CONFIGURABLE?
=============================================================================

Very little, on purpose. The wire protocol is fixed (three header
variants, GET only, one request per connection), so the only knobs are
where we listen, where the documents live, and how much work a single
connection is allowed to cause.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION SOURCES                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m statichttpd --port 3000 --root ./public         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 HTTP_ROOT=./public python -m statichttpd   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │      └── port 2806, document root "html"                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE DOCUMENT ROOT
=============================================================================

Every servable byte lives under ``document_root``:

    html/
    ├── index.html     ← served for "GET /"
    ├── 400.html       ← body of every 400 Bad Request
    ├── 404.html       ← body of every 404 Not Found
    └── ...            ← anything else, served as "GET /<name>"

The error pages are expected to exist. If they don't, the server still
answers with the right status header, just without a body.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_PORT = 2806
DEFAULT_BACKLOG = 10
DEFAULT_DOCUMENT_ROOT = "html"


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    REQUEST LIMITS
    - max_request_size

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    DOCUMENTS
    - document_root, index_file, bad_request_page, not_found_page

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces
    - "127.0.0.1" - Localhost only (tests, development)
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on.
    0 asks the OS for a free port (the bound port is then available
    from FileServer.address once the server is ready).
    """

    backlog: int = DEFAULT_BACKLOG
    """
    Maximum number of completed connections the OS queues for accept().
    """

    buffer_size: int = 8192
    """
    Chunk size in bytes for both recv() and file streaming.
    """

    timeout: Optional[float] = 10.0
    """
    Socket timeout in seconds for reading the request and writing the
    response. A peer that connects and goes quiet holds a worker for at
    most this long. None = block forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 8192
    """
    Upper bound on the bytes read while waiting for the end of the
    request. Anything larger is answered with 400 Bad Request instead of
    being buffered.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 10
    """
    Worker threads created at startup. Each handles one connection at a
    time, start to finish.
    """

    max_workers: int = 64
    """
    Upper bound on worker threads. The pool grows towards this when every
    worker is busy and connections are waiting.
    """

    queue_size: int = 256
    """
    Accepted connections waiting for a free worker. When full, the
    accept loop blocks until a worker frees up (the kernel backlog then
    absorbs the burst).
    """

    # ─────────────────────────────────────────────────────────────────────
    # DOCUMENTS
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = DEFAULT_DOCUMENT_ROOT
    """
    Base directory of all servable content. Targets are appended to it
    verbatim: "GET /a.html" reads "<document_root>/a.html".
    """

    index_file: str = "index.html"
    """Document served for the target "/"."""

    bad_request_page: str = "400.html"
    """Error page (relative to document_root) sent with 400 responses."""

    not_found_page: str = "404.html"
    """Error page (relative to document_root) sent with 404 responses."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    INFO prints one line per served request.
    """

    log_format: str = "text"
    """
    Access log format: 'text' (one human readable line) or 'json'.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Bind address (default: 0.0.0.0)
        HTTP_PORT        Server port (default: 2806)
        HTTP_ROOT        Document root (default: html)
        HTTP_WORKERS     Max worker threads (default: 64)
        HTTP_TIMEOUT     Socket timeout in seconds (default: 10)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", str(DEFAULT_PORT))),
            document_root=os.getenv("HTTP_ROOT", DEFAULT_DOCUMENT_ROOT),
            max_workers=int(os.getenv("HTTP_WORKERS", "64")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "10")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once by FileServer at construction, so a bad value fails
        at startup rather than on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_size < 16:
            raise ValueError("max_request_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format!r}")

        if not self.document_root:
            raise ValueError("document_root must not be empty")
