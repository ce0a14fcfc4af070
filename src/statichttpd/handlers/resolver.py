"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a raw request onto a file under the document root and decides which
of the three responses it gets.

=============================================================================
RESOLUTION ORDER
=============================================================================

    raw request bytes
          │
          ▼
    ┌─────────────────────────┐   Malformed
    │ parse request line      │ ─────────────────────► BAD_REQUEST
    └───────────┬─────────────┘
                │ target
                ▼
    ┌─────────────────────────┐   contains ".."
    │ traversal check         │ ─────────────────────► BAD_REQUEST
    └───────────┬─────────────┘
                │
                ▼
    ┌─────────────────────────┐   target == "/"
    │ default document        │ ─────────────────────► OK  <root>/index.html
    └───────────┬─────────────┘
                │
                ▼
    ┌─────────────────────────┐   readable regular file
    │ <root> + <target>       │ ─────────────────────► OK  <root><target>
    └───────────┬─────────────┘
                │ otherwise
                ▼
            NOT_FOUND

The order matters: "/../etc/passwd" is a 400, never a 404, even though
the file would not be found either.

=============================================================================
SECURITY: THE TRAVERSAL CHECK
=============================================================================

The only defense is: reject any target containing the two characters
"..", wherever they appear.

    GET /../etc/passwd        → 400
    GET /a/../../etc/passwd   → 400
    GET /notes..txt           → 400   (harmless, but still rejected)

This is enough because the target is never decoded or normalized:

    - "%2e%2e" stays the literal six characters and names a file with
      that exact name under the root
    - "/etc/passwd" becomes "<root>/etc/passwd", still under the root

Known limitation: a symlink inside the document root that points outside
it is followed. Keep the document root free of such links.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from ..http.request import Malformed, RequestLineParser
from ..http.status_codes import Classification


logger = logging.getLogger(__name__)


TRAVERSAL_SEQUENCE = ".."


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving one request.

    Attributes:
        classification: OK, BAD_REQUEST or NOT_FOUND.
        path: File to send as the body. The requested file for OK, the
              matching error page otherwise.
        target: The target as the client sent it (None if unparseable).
                Only used for logging.
    """

    classification: Classification
    path: str
    target: Optional[str] = None


class PathResolver:
    """
    Resolves request targets against a document root.

    No side effects and no exceptions: every input, however broken,
    produces a Resolution.

    Usage:
        resolver = PathResolver("html")
        resolution = resolver.resolve(b"GET /about.html HTTP/1.1\\r\\n\\r\\n")
        # Resolution(classification=OK, path="html/about.html", ...)
    """

    def __init__(
        self,
        document_root: str,
        index_file: str = "index.html",
        bad_request_page: str = "400.html",
        not_found_page: str = "404.html",
        parser: Optional[RequestLineParser] = None,
    ):
        """
        Args:
            document_root: Base directory for all content. Kept as given
                           (no resolve()) because targets are appended to
                           it as plain strings.
            index_file: Served for the target "/".
            bad_request_page: Error page name under the root for 400s.
            not_found_page: Error page name under the root for 404s.
            parser: Request line parser (default: RequestLineParser()).
        """
        self.document_root = document_root.rstrip("/") or "/"
        self.index_file = index_file
        self.bad_request_page = bad_request_page
        self.not_found_page = not_found_page
        self.parser = parser or RequestLineParser()

    # =========================================================================
    # WELL-KNOWN PATHS
    # =========================================================================

    @property
    def index_path(self) -> str:
        return os.path.join(self.document_root, self.index_file)

    def error_page(self, classification: Classification) -> str:
        """Fallback artifact for a non-OK classification."""
        page = getattr(self, classification.error_page_setting)
        return os.path.join(self.document_root, page)

    def bad_request(self, target: Optional[str] = None) -> Resolution:
        """BAD_REQUEST resolution with the 400 page."""
        return Resolution(
            Classification.BAD_REQUEST,
            self.error_page(Classification.BAD_REQUEST),
            target,
        )

    def not_found(self, target: Optional[str] = None) -> Resolution:
        """NOT_FOUND resolution with the 404 page."""
        return Resolution(
            Classification.NOT_FOUND,
            self.error_page(Classification.NOT_FOUND),
            target,
        )

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def resolve(self, raw_request: Optional[bytes]) -> Resolution:
        """
        Classify a raw request and pick the artifact to send.

        Args:
            raw_request: Bytes read from the connection (None if nothing
                         could be read).

        Returns:
            Resolution for the request.
        """
        parsed = self.parser.parse(raw_request)

        if isinstance(parsed, Malformed):
            logger.debug(f"Malformed request: {parsed.reason}")
            return self.bad_request()

        return self.resolve_target(parsed.target)

    def resolve_target(self, target: str) -> Resolution:
        """
        Classify an already extracted target.

        Args:
            target: Request target exactly as sent, e.g. "/a.html".

        Returns:
            Resolution for the target.
        """
        # ─────────────────────────────────────────────────────────────────
        # TRAVERSAL: checked first, overrides everything else
        # ─────────────────────────────────────────────────────────────────
        if TRAVERSAL_SEQUENCE in target:
            logger.warning(f"Rejected traversal attempt: {target!r}")
            return self.bad_request(target)

        # ─────────────────────────────────────────────────────────────────
        # DEFAULT DOCUMENT
        # ─────────────────────────────────────────────────────────────────
        if target == "/":
            return Resolution(Classification.OK, self.index_path, target)

        # ─────────────────────────────────────────────────────────────────
        # EVERYTHING ELSE: <root><target>
        # ─────────────────────────────────────────────────────────────────
        candidate = self.document_root + target

        if self._is_servable(candidate):
            return Resolution(Classification.OK, candidate, target)

        return self.not_found(target)

    @staticmethod
    def _is_servable(path: str) -> bool:
        """True if ``path`` is an existing, readable regular file."""
        try:
            return os.path.isfile(path) and os.access(path, os.R_OK)
        except (OSError, ValueError):
            # ValueError: embedded null byte
            return False
