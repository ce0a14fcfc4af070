"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statichttpd import FileServer, ServerConfig


INDEX_HTML = b"<html><body><h1>index</h1></body></html>\n"
ABOUT_HTML = b"<html><body><p>about us</p></body></html>\n"
BAD_REQUEST_HTML = b"<html><body>400 page</body></html>\n"
NOT_FOUND_HTML = b"<html><body>404 page</body></html>\n"


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """A document root with an index, one page, both error pages and a subdirectory."""
    root = tmp_path / "html"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "about.html").write_bytes(ABOUT_HTML)
    (root / "400.html").write_bytes(BAD_REQUEST_HTML)
    (root / "404.html").write_bytes(NOT_FOUND_HTML)
    (root / "docs").mkdir()
    (root / "docs" / "guide.html").write_bytes(b"<p>guide</p>")
    return root


@pytest.fixture
def config(doc_root: Path) -> ServerConfig:
    """Test server configuration serving doc_root on a free port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        backlog=64,
        document_root=str(doc_root),
        min_workers=4,
        max_workers=16,
        timeout=5.0,
        log_level="WARNING",
    )


class BackgroundServer:
    """Runs a FileServer on a daemon thread for the duration of a test."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw request bytes and read the response until the server closes."""
        return send_raw(self.port, raw, timeout=timeout)


def send_raw(port: int, raw: bytes, timeout: float = 5.0) -> bytes:
    """Connect, send ``raw``, read until EOF."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(raw)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[BackgroundServer, None, None]:
    """A FileServer listening on 127.0.0.1 with doc_root as its document root."""
    srv = BackgroundServer(FileServer(config))
    srv.start()

    yield srv

    srv.stop()
