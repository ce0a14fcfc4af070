"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

The protocol surface of this server is deliberately tiny:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST (request.py)                                                │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /a.html HTTP/1.1\r\n..."                             │
    │ Output:  ParsedTarget(target="/a.html") | Malformed(reason=...)     │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ STATUS CODES (status_codes.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Classification.OK / BAD_REQUEST / NOT_FOUND → 200 / 400 / 404       │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Fixed header for the classification, then the file bytes.          │
    │ Returns the exact number of bytes written.                         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .status_codes import HTTPStatus, Classification
from .request import (
    ParsedTarget,
    Malformed,
    RequestLine,
    RequestLineParser,
    parse_request_line,
)
from .response import (
    HEADERS,
    SERVER_NAME,
    ResponseComposer,
    ResponseSendError,
    build_header,
)

__all__ = [
    # Status codes
    "HTTPStatus",
    "Classification",
    # Request
    "ParsedTarget",
    "Malformed",
    "RequestLine",
    "RequestLineParser",
    "parse_request_line",
    # Response
    "HEADERS",
    "SERVER_NAME",
    "ResponseComposer",
    "ResponseSendError",
    "build_header",
]
