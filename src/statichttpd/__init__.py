"""
=============================================================================
STATICHTTPD - Minimal Multi-Threaded Static File Server
=============================================================================

Serves files from a document root over a deliberately small slice of
HTTP/1.0: one GET per connection, three possible responses, and a
server-wide count of every byte sent.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    statichttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m statichttpd)
    ├── server.py            # FileServer orchestrator
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Networking + concurrency
    │   ├── socket_server.py # Listening socket, accept loop, signals
    │   ├── connection.py    # Client socket wrapper (bounded read)
    │   ├── thread_pool.py   # Worker threads
    │   ├── worker.py        # ConnectionWorker: one connection end to end
    │   └── byte_counter.py  # Shared, lock-protected byte total
    ├── http/                # Protocol
    │   ├── request.py       # Request line → ParsedTarget | Malformed
    │   ├── response.py      # Fixed headers + file streaming
    │   └── status_codes.py  # 200 / 400 / 404 and Classification
    └── handlers/
        └── resolver.py      # Target → file under the document root

=============================================================================
QUICK START
=============================================================================

    from statichttpd import FileServer, ServerConfig

    server = FileServer(ServerConfig(port=2806, document_root="html"))
    server.run()

    $ curl -i http://localhost:2806/
    HTTP/1.0 200 OK
    Server: statichttpd/1.0
    Content-Type: text/html

    <html>...

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
