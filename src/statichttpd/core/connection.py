"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the three things a worker needs:
a bounded read of the request, a write that reports failure instead of
raising, and a close that always happens.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

A single recv() can return half a request line, or the request line plus
some headers, or everything at once:

    Client sends:   "GET /index.html HTTP/1.1\r\nHost: x\r\n\r\n"

    Server might see:
        recv() → "GET /ind"
        recv() → "ex.html HTTP/1.1\r\nHo"
        recv() → "st: x\r\n\r\n"

So we buffer until we see the blank line that ends the request head
(\r\n\r\n), or the client stops sending (EOF).

=============================================================================
BOUNDED READING
=============================================================================

A client controls how much it sends and how slowly. Two limits keep one
client from pinning a worker or eating memory:

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │ Limit                │ What happens when it's hit                   │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ max_request_size     │ RequestReadError("too large")  → 400        │
    │ timeout (seconds)    │ RequestReadError("timed out")  → 400        │
    │                      │ (one deadline for the whole request head)    │
    └──────────────────────┴──────────────────────────────────────────────┘

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    AWAITING_REQUEST ──► PARSING ──► RESPONDING ──► REPORTING ──► CLOSED
          │                 │             │                          ▲
          └─────────────────┴─────────────┴──────────────────────────┘
                         (any failure goes straight to close)

There is no keep-alive: every connection carries exactly one request.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


REQUEST_TERMINATOR = b"\r\n\r\n"

# Upper bound on how long close() keeps discarding client bytes
DRAIN_TIMEOUT = 0.5


class RequestReadError(Exception):
    """
    Raised when a request could not be read completely.

    The worker answers these with 400 Bad Request (if the socket still
    takes writes).
    """


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Mirrors what the ConnectionWorker is doing with the connection, for
    logging and debugging.
    """
    AWAITING_REQUEST = "awaiting_request"  # Reading request bytes
    PARSING = "parsing"                    # Resolving the target
    RESPONDING = "responding"              # Writing header + body
    REPORTING = "reporting"                # Updating the byte counter
    CLOSED = "closed"                      # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        bytes_received: Total bytes read from the client.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.AWAITING_REQUEST
    created_at: float = field(default_factory=time.time)
    bytes_received: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192                # How much to read at once
    timeout: Optional[float] = 10.0        # Per-operation socket timeout
    max_request_size: int = 8192           # Max bytes buffered for a request

    def __post_init__(self):
        # Accepted sockets can inherit the listener's timeout; set ours.
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read the request head from the socket.

        Reads until one of:
        - the buffer contains \\r\\n\\r\\n (normal case)
        - the client closes its side (EOF)

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_request() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while no \\r\\n\\r\\n in buffer:                                  │
        │       chunk = recv(buffer_size)                                  │
        │       │                                                          │
        │       ├── b""      → EOF, return what we have                   │
        │       ├── timeout  → RequestReadError                            │
        │       └── data     → append; too big? → RequestReadError        │
        │                                                                  │
        │   return buffer                                                  │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            The bytes received (may be b"" if the client sent nothing).

        Raises:
            RequestReadError: On timeout, reset, or oversized request.
        """
        self.state = ConnectionState.AWAITING_REQUEST
        buffer = b""

        # One deadline for the whole request, not per recv(): a peer
        # trickling a byte at a time still runs out of time.
        deadline = None
        if self.timeout is not None:
            deadline = time.monotonic() + self.timeout

        try:
            while REQUEST_TERMINATOR not in buffer:
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise RequestReadError(
                            f"timed out after {self.timeout}s with {len(buffer)} bytes"
                        )
                    self.socket.settimeout(remaining)

                try:
                    chunk = self.socket.recv(self.buffer_size)
                except socket.timeout:
                    raise RequestReadError(
                        f"timed out after {self.timeout}s with {len(buffer)} bytes"
                    )
                except OSError as e:
                    # Connection reset, etc.
                    raise RequestReadError(f"read failed: {e}")

                if not chunk:
                    break  # Client closed its side

                buffer += chunk
                self.bytes_received += len(chunk)

                if len(buffer) > self.max_request_size:
                    raise RequestReadError(f"request too large: {len(buffer)} bytes")
        finally:
            self._restore_timeout()

        return buffer

    def _restore_timeout(self):
        """Put back the per-operation timeout used for sending."""
        try:
            self.socket.settimeout(self.timeout)
        except OSError:
            pass  # Socket already gone

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send bytes to the client.

        Uses sendall() so either every byte is handed to the kernel or
        we get an error. Regular send() might only send part of the data.

        Args:
            data: Bytes to send.

        Returns:
            True if sent, False if the connection is broken.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # Covers ConnectionResetError, BrokenPipeError, socket.timeout
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call more than once.

        1. shutdown(SHUT_WR): send FIN, the client sees end of body
        2. drain: discard anything the client still sends (headers we
           didn't read), so close() doesn't turn into a RST that could
           wipe out response bytes the client hasn't read yet. Bounded
           by DRAIN_TIMEOUT in total and max_request_size bytes; a peer
           that keeps sending past either is simply cut off.
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> int:
        """Discard pending client bytes. Returns how many were discarded."""
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < self.max_request_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(min(self.buffer_size, self.max_request_size - drained))
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        if drained >= self.max_request_size:
            logger.debug(f"[{self.id}] Peer still sending after {drained} bytes, cutting off")

        return drained

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows ``with conn:`` so the socket is released on every path:

            with conn:
                data = conn.read_request()
                conn.send(response)
            # Connection closed here, even if an exception escaped
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
