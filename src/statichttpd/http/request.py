"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

Turns the raw bytes read from a connection into a tagged result:

    ParsedTarget(target="/index.html", version="HTTP/1.1")
        or
    Malformed(reason="method must be GET, got 'POST'")

The caller never touches the raw buffer again, and never has to catch
an exception: a request that cannot be understood is just another value.

=============================================================================
WHAT WE ACCEPT
=============================================================================

Only the first line matters. Anything after it (headers, a body) is
read off the socket and ignored.

    GET /docs/a.html HTTP/1.1\r\n
    ─┬─ ──────┬───── ────┬───  ─┬─
     │        │          │      └── must be present (CRLF)
     │        │          └───────── optional, must start with "HTTP/"
     │        └──────────────────── required, any non-whitespace token
     └───────────────────────────── exactly "GET"

    ┌─────────────────────────────────────────────────┬─────────────────┐
    │ First line                                      │ Result          │
    ├─────────────────────────────────────────────────┼─────────────────┤
    │ GET / HTTP/1.1                                  │ ParsedTarget    │
    │ GET /a.html                                     │ ParsedTarget    │
    │ POST / HTTP/1.1                                 │ Malformed       │
    │ get / HTTP/1.1                                  │ Malformed       │
    │ GET                                             │ Malformed       │
    │ GET / HTTP/1.1 extra                            │ Malformed       │
    │ GET / FTP/1.0                                   │ Malformed       │
    │ GET / HTTP/1.1        (no CRLF, peer hung up)  │ Malformed       │
    └─────────────────────────────────────────────────┴─────────────────┘

The target is NOT url-decoded or normalized. What the client sent is
exactly what the resolver checks and appends to the document root.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ParsedTarget:
    """A well-formed GET request line."""

    target: str
    version: Optional[str] = None


@dataclass(frozen=True)
class Malformed:
    """A request line we refuse to interpret. ``reason`` is for logs only."""

    reason: str


RequestLine = Union[ParsedTarget, Malformed]


class RequestLineParser:
    """
    Parses the first line of a request.

    =========================================================================
    DECODING
    =========================================================================

    The line is decoded as UTF-8 with ``surrogateescape``. Decoding never
    fails, and the os module encodes such strings back to the original
    bytes, so a target with non-UTF-8 bytes still maps onto the file
    with exactly those bytes in its name.

    =========================================================================
    """

    METHOD = "GET"
    LINE_ENDING = b"\r\n"

    def __init__(self, max_line_length: int = 8192):
        """
        Args:
            max_line_length: Longest request line (excluding CRLF) we are
                             willing to look at. Longer lines are Malformed.
        """
        self.max_line_length = max_line_length

    def parse(self, data: Optional[bytes]) -> RequestLine:
        """
        Parse raw request bytes.

        Args:
            data: Bytes read from the connection. None or b"" means the
                  peer sent nothing.

        Returns:
            ParsedTarget or Malformed.
        """
        if not data:
            return Malformed("empty request")

        line_end = data.find(self.LINE_ENDING)
        if line_end == -1:
            return Malformed("request line not terminated by CRLF")

        if line_end > self.max_line_length:
            return Malformed(f"request line too long: {line_end} bytes")

        line = data[:line_end].decode("utf-8", errors="surrogateescape")
        return self._parse_line(line)

    def _parse_line(self, line: str) -> RequestLine:
        # Whitespace-delimited fields: METHOD TARGET [VERSION]
        fields = line.split()

        if not fields:
            return Malformed("blank request line")

        if fields[0] != self.METHOD:
            return Malformed(f"method must be {self.METHOD}, got {fields[0]!r}")

        if len(fields) < 2:
            return Malformed("missing request target")

        if len(fields) > 3:
            return Malformed(f"unexpected fields after version: {fields[3:]!r}")

        version = fields[2] if len(fields) == 3 else None
        if version is not None and not version.startswith("HTTP/"):
            return Malformed(f"invalid protocol version: {version!r}")

        return ParsedTarget(target=fields[1], version=version)


def parse_request_line(data: Optional[bytes], max_line_length: int = 8192) -> RequestLine:
    """
    Convenience function for one-off parsing.

    Example:
        >>> parse_request_line(b"GET / HTTP/1.1\\r\\n\\r\\n")
        ParsedTarget(target='/', version='HTTP/1.1')
    """
    return RequestLineParser(max_line_length=max_line_length).parse(data)
