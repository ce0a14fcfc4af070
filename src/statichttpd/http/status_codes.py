"""
=============================================================================
STATUS CODES AND REQUEST CLASSIFICATION
=============================================================================

The server only ever answers with one of three status codes. Every
request is sorted into one of three buckets before a single response
byte is written:

    ┌──────────────┬────────┬──────────────────┬──────────────────────────┐
    │ Classification│ Code  │ Reason phrase    │ Body                     │
    ├──────────────┼────────┼──────────────────┼──────────────────────────┤
    │ OK           │  200   │ OK               │ the requested file       │
    │ BAD_REQUEST  │  400   │ Bad Request      │ <root>/400.html          │
    │ NOT_FOUND    │  404   │ Not Found        │ <root>/404.html          │
    └──────────────┴────────┴──────────────────┴──────────────────────────┘

What lands in BAD_REQUEST:
    - anything that isn't "GET <target> [HTTP/x.y]" on a CRLF line
    - any target containing ".." (path traversal attempt)
    - requests we couldn't read (too large, timed out, peer vanished)

What lands in NOT_FOUND:
    - well-formed targets that don't name a readable regular file

=============================================================================
"""

from enum import Enum, IntEnum
from typing import Optional


class HTTPStatus(IntEnum):
    """
    The HTTP status codes this server can send.

    IntEnum, so ``HTTPStatus.OK == 200`` holds and the value drops
    straight into a status line.
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.0 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        """True for 4xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
}


class Classification(Enum):
    """
    Outcome of resolving a request target.

    Each member knows its status code and, for the error outcomes, which
    config attribute names the fallback page:

        >>> Classification.NOT_FOUND.status
        <HTTPStatus.NOT_FOUND: 404>
        >>> Classification.NOT_FOUND.error_page_setting
        'not_found_page'
        >>> Classification.OK.error_page_setting is None
        True
    """

    OK = (HTTPStatus.OK, None)
    BAD_REQUEST = (HTTPStatus.BAD_REQUEST, "bad_request_page")
    NOT_FOUND = (HTTPStatus.NOT_FOUND, "not_found_page")

    def __init__(self, status: HTTPStatus, error_page_setting: Optional[str]):
        self.status = status
        self.error_page_setting = error_page_setting

    @property
    def is_ok(self) -> bool:
        return self is Classification.OK
