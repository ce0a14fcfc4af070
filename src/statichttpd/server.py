"""
=============================================================================
FILE SERVER
=============================================================================

Wires the components together into a running server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      FILE SERVER ARCHITECTURE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   FileServer    │                          │
    │                        │ (Orchestrator)  │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │ ByteCounter  │        │
    │    │  (accept)    │    │  (workers)   │    │  (shared)    │        │
    │    └──────────────┘    └──────┬───────┘    └──────▲───────┘        │
    │                               │                   │                 │
    │                               ▼                   │ add_and_get     │
    │                       ┌──────────────────┐        │                 │
    │                       │ ConnectionWorker │────────┘                 │
    │                       │  PathResolver    │                          │
    │                       │  ResponseComposer│                          │
    │                       └──────────────────┘                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts a TCP connection (main thread)
    2. FileServer queues it in the ThreadPool
    3. A worker thread creates a ConnectionWorker for it
    4. read request → PathResolver → ResponseComposer
    5. ByteCounter.add_and_get(bytes), access log line
    6. Connection closed

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import ByteCounter, Connection, ConnectionWorker, SocketServer, ThreadPool
from .handlers import PathResolver
from .http import ResponseComposer, RequestLineParser


logger = logging.getLogger(__name__)


class FileServer:
    """
    Static file server.

    Usage:
        server = FileServer(ServerConfig(port=2806, document_root="html"))
        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()

    The shared collaborators are created once here and injected into
    every ConnectionWorker:

        counter  - ByteCounter, the only cross-connection state
        resolver - PathResolver bound to the document root
        composer - ResponseComposer
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        # ─────────────────────────────────────────────────────────────────
        # SHARED STATE + STATELESS COLLABORATORS
        # ─────────────────────────────────────────────────────────────────
        self.counter = ByteCounter()

        self.resolver = PathResolver(
            document_root=self.config.document_root,
            index_file=self.config.index_file,
            bad_request_page=self.config.bad_request_page,
            not_found_page=self.config.not_found_page,
            parser=RequestLineParser(max_line_length=self.config.max_request_size),
        )

        self.composer = ResponseComposer(chunk_size=self.config.buffer_size)

        # ─────────────────────────────────────────────────────────────────
        # NETWORKING + CONCURRENCY
        # ─────────────────────────────────────────────────────────────────
        self._socket_server = SocketServer(self.config)

        self._thread_pool = ThreadPool(
            handler=self.serve_connection,
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

        self._running = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once the server is ready."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections."""
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config. Turn off
                           when embedding in an app that configures its own.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        if setup_logging:
            self._setup_logging()

        self._running = True
        self._thread_pool.start()

        logger.info(
            f"Serving {self.config.document_root!r} on "
            f"{self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Returns immediately."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("statichttpd").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown: the accept loop has already stopped; let the
        pool finish queued and in-flight connections, then report.
        """
        logger.info("Cleaning up connections...")
        self._running = False

        self._thread_pool.shutdown(wait=True, timeout=30.0)

        logger.info(f"Server stopped. Total bytes sent {self.counter.add_and_get(0)}")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Hand a freshly accepted connection to the pool (accept thread).

        Blocks while every worker is busy and the queue is full; the
        kernel backlog absorbs further clients meanwhile.
        """
        try:
            self._thread_pool.submit(conn)
        except RuntimeError as e:
            # Pool already shutting down
            logger.warning(f"[{conn.id}] Rejected connection: {e}")
            conn.close()

    def serve_connection(self, conn: Connection) -> Optional[int]:
        """
        Serve one connection on the calling thread (worker thread).

        Returns:
            Bytes served, or None if the response could not be written.
        """
        worker = ConnectionWorker(
            conn,
            counter=self.counter,
            resolver=self.resolver,
            composer=self.composer,
            log_format=self.config.log_format,
        )
        return worker.run()

