"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request target resolution.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 RAW REQUEST → RESOLVER → RESOLUTION                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   b"GET /a.html HTTP/1.1\r\n\r\n"                                   │
    │          │                                                           │
    │          ▼                                                           │
    │   PathResolver.resolve()                                             │
    │          │                                                           │
    │          ▼                                                           │
    │   Resolution(classification=OK, path="html/a.html", target="/a.html")│
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    from statichttpd.handlers import PathResolver

    resolver = PathResolver("html")
    resolution = resolver.resolve(raw_bytes)

=============================================================================
"""

from .resolver import PathResolver, Resolution, TRAVERSAL_SEQUENCE

__all__ = [
    "PathResolver",
    "Resolution",
    "TRAVERSAL_SEQUENCE",
]
