"""
=============================================================================
RESPONSE COMPOSITION
=============================================================================

Writes a response onto a connection: one of three fixed header blocks,
followed by the raw bytes of a file.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RESPONSE STRUCTURE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ HEADER BLOCK (fixed per classification) ─────────────────────┐  │
    │  │                                                                │  │
    │  │    HTTP/1.0 200 OK\r\n                                        │  │
    │  │    Server: statichttpd/1.0\r\n                                │  │
    │  │    Content-Type: text/html\r\n                                │  │
    │  │    \r\n                                                        │  │
    │  │                                                                │  │
    │  └────────────────────────────────────────────────────────────────┘  │
    │                                                                      │
    │  ┌─ BODY (the artifact, byte for byte) ──────────────────────────┐  │
    │  │                                                                │  │
    │  │    <html>...</html>                                            │  │
    │  │                                                                │  │
    │  └────────────────────────────────────────────────────────────────┘  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Length. The server closes the connection after the
last body byte, and that close is what tells the client the body ended
(the HTTP/1.0 way).

=============================================================================
BYTE ACCOUNTING
=============================================================================

compose() returns the number of bytes actually handed to the socket:

    total = len(header) + body bytes written

That number feeds the shared ByteCounter, so it must never include bytes
we only *meant* to send.

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │ Situation                        │ Outcome                          │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ artifact streamed fully          │ header + file size               │
    │ artifact missing / unreadable    │ header only (logged)             │
    │ read error halfway through file  │ header + bytes sent so far       │
    │ socket write fails               │ ResponseSendError raised         │
    └──────────────────────────────────┴──────────────────────────────────┘

=============================================================================
"""

import logging
from typing import Dict, Protocol

from .status_codes import Classification


logger = logging.getLogger(__name__)


SERVER_NAME = "statichttpd/1.0"
PROTOCOL_VERSION = "HTTP/1.0"
CONTENT_TYPE = "text/html"
CRLF = "\r\n"


class ResponseSendError(Exception):
    """
    Raised when the connection stops accepting bytes mid-response.

    Carries how far we got, for logging. The client never sees anything
    about this: the channel is already broken.
    """

    def __init__(self, message: str, bytes_written: int = 0):
        super().__init__(message)
        self.bytes_written = bytes_written


class Writable(Protocol):
    """Anything we can write a response to (Connection in production)."""

    def send(self, data: bytes) -> bool:
        ...


def build_header(classification: Classification) -> bytes:
    """
    Build the header block for a classification.

    Example:
        >>> build_header(Classification.NOT_FOUND)
        b'HTTP/1.0 404 Not Found\\r\\nServer: statichttpd/1.0\\r\\nContent-Type: text/html\\r\\n\\r\\n'
    """
    status = classification.status
    lines = [
        f"{PROTOCOL_VERSION} {status.value} {status.phrase}",
        f"Server: {SERVER_NAME}",
        f"Content-Type: {CONTENT_TYPE}",
    ]
    return (CRLF.join(lines) + CRLF + CRLF).encode("ascii")


# The whole protocol surface: three header variants, computed once.
HEADERS: Dict[Classification, bytes] = {
    classification: build_header(classification)
    for classification in Classification
}


class ResponseComposer:
    """
    Writes header + artifact for a resolved request.

    Stateless apart from the chunk size, so one instance is shared by
    every worker thread.

    Usage:
        composer = ResponseComposer(chunk_size=8192)
        sent = composer.compose(conn, Classification.OK, "html/index.html")
    """

    def __init__(self, chunk_size: int = 8192):
        """
        Args:
            chunk_size: How many bytes of the artifact to read and send
                        per write. Any value works, the body is identical.
        """
        self.chunk_size = chunk_size

    def compose(self, conn: Writable, classification: Classification, path: str) -> int:
        """
        Send the response for a classification.

        Args:
            conn: Open, writable connection.
            classification: Outcome from the PathResolver.
            path: Artifact to send as the body (the requested file for
                  OK, the error page otherwise).

        Returns:
            Total bytes written (header + body).

        Raises:
            ResponseSendError: If the connection rejected a write.
        """
        header = HEADERS[classification]
        if not conn.send(header):
            raise ResponseSendError("failed to send header", bytes_written=0)

        written = len(header)
        written += self._send_body(conn, path, written)
        return written

    def _send_body(self, conn: Writable, path: str, already_written: int) -> int:
        """
        Stream the artifact to the connection.

        Returns the body bytes written. An artifact that cannot be opened
        yields 0 (header-only response).
        """
        try:
            artifact = open(path, "rb")
        except (OSError, ValueError) as e:
            # ValueError: embedded null byte in path
            logger.warning(f"Cannot open {path!r}, sending header only: {e}")
            return 0

        body_written = 0
        with artifact:
            while True:
                try:
                    chunk = artifact.read(self.chunk_size)
                except OSError as e:
                    logger.error(
                        f"Read error on {path!r} after {body_written} bytes: {e}"
                    )
                    break

                if not chunk:
                    break

                if not conn.send(chunk):
                    raise ResponseSendError(
                        f"failed to send body of {path!r}",
                        bytes_written=already_written + body_written,
                    )
                body_written += len(chunk)

        return body_written
