"""
Integration tests: a real FileServer on a free port, real sockets.
"""

import os
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

import pytest

from statichttpd import FileServer, ServerConfig
from statichttpd.http.response import HEADERS
from statichttpd.http.status_codes import Classification

from conftest import (
    ABOUT_HTML,
    BAD_REQUEST_HTML,
    INDEX_HTML,
    NOT_FOUND_HTML,
    BackgroundServer,
    send_raw,
)


OK = HEADERS[Classification.OK]
BAD_REQUEST = HEADERS[Classification.BAD_REQUEST]
NOT_FOUND = HEADERS[Classification.NOT_FOUND]


def get(target: str) -> bytes:
    return f"GET {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode()


class TestResponses:
    """One request per test, exact bytes on the wire."""

    def test_index(self, running_server: BackgroundServer):
        """Test that "/" serves the index page."""
        assert running_server.request(get("/")) == OK + INDEX_HTML

    def test_file(self, running_server: BackgroundServer):
        """Test that an existing file is served byte for byte."""
        assert running_server.request(get("/about.html")) == OK + ABOUT_HTML

    def test_nested_file(self, running_server: BackgroundServer):
        """Test that files in subdirectories are served."""
        assert running_server.request(get("/docs/guide.html")) == OK + b"<p>guide</p>"

    def test_not_found(self, running_server: BackgroundServer):
        """Test that a missing file gets the 404 page."""
        assert running_server.request(get("/nope.html")) == NOT_FOUND + NOT_FOUND_HTML

    def test_directory_not_found(self, running_server: BackgroundServer):
        """Test that a directory is answered with 404."""
        assert running_server.request(get("/docs")) == NOT_FOUND + NOT_FOUND_HTML

    @pytest.mark.parametrize("target", ["/../secret", "/docs/../../etc/passwd", "/.."])
    def test_traversal(self, running_server: BackgroundServer, target: str):
        """Test that any ".." target gets the 400 page."""
        assert running_server.request(get(target)) == BAD_REQUEST + BAD_REQUEST_HTML

    def test_traversal_never_leaks_outside_root(self, running_server: BackgroundServer, doc_root: Path):
        """Test that a file next to the root can't be reached."""
        (doc_root.parent / "secret.txt").write_bytes(b"top secret")

        response = running_server.request(get("/../secret.txt"))

        assert b"top secret" not in response
        assert response.startswith(BAD_REQUEST)

    @pytest.mark.parametrize("raw", [
        b"POST / HTTP/1.1\r\n\r\n",
        b"GET\r\n\r\n",
        b"hello\r\n\r\n",
        b"\r\n\r\n",
    ])
    def test_malformed(self, running_server: BackgroundServer, raw: bytes):
        """Test that unparseable or non-GET requests get the 400 page."""
        assert running_server.request(raw) == BAD_REQUEST + BAD_REQUEST_HTML

    def test_http_10_request(self, running_server: BackgroundServer):
        """Test that an HTTP/1.0 request line is accepted."""
        assert running_server.request(b"GET /about.html HTTP/1.0\r\n\r\n") == OK + ABOUT_HTML

    def test_peer_closes_without_sending(self, running_server: BackgroundServer):
        """Test that an empty connection gets a 400 and doesn't hurt the server."""
        with socket.create_connection(("127.0.0.1", running_server.port), timeout=5.0) as sock:
            sock.shutdown(socket.SHUT_WR)
            data = sock.recv(65536)

        assert data.startswith(BAD_REQUEST)
        assert running_server.request(get("/")) == OK + INDEX_HTML

    def test_large_file(self, running_server: BackgroundServer, doc_root: Path):
        """Test a body much larger than one chunk."""
        payload = os.urandom(1 << 20)
        (doc_root / "big.html").write_bytes(payload)

        assert running_server.request(get("/big.html")) == OK + payload


class TestByteCounting:
    """Tests for the server-wide byte total."""

    def test_total_matches_responses(self, running_server: BackgroundServer):
        """Test that the counter equals the bytes of sequential responses."""
        responses = [
            running_server.request(get("/")),
            running_server.request(get("/nope")),
            running_server.request(get("/../x")),
        ]

        total = running_server.server.counter.add_and_get(0)

        assert total == sum(len(r) for r in responses)

    def test_concurrent_requests(self, running_server: BackgroundServer):
        """Test that 50 simultaneous clients all get exact responses and exact accounting."""
        clients = 50
        port = running_server.port

        with ThreadPoolExecutor(max_workers=clients) as executor:
            responses = list(executor.map(lambda _: send_raw(port, get("/")), range(clients)))

        assert all(r == OK + INDEX_HTML for r in responses)
        assert running_server.server.counter.add_and_get(0) == clients * (len(OK) + len(INDEX_HTML))

    def test_concurrent_mixed_requests(self, running_server: BackgroundServer):
        """Test that mixed concurrent requests each get their own exact response."""
        targets = ["/", "/about.html", "/missing", "/../etc/passwd"] * 10
        expected = {
            "/": OK + INDEX_HTML,
            "/about.html": OK + ABOUT_HTML,
            "/missing": NOT_FOUND + NOT_FOUND_HTML,
            "/../etc/passwd": BAD_REQUEST + BAD_REQUEST_HTML,
        }
        port = running_server.port

        with ThreadPoolExecutor(max_workers=len(targets)) as executor:
            responses = list(executor.map(lambda t: send_raw(port, get(t)), targets))

        for target, response in zip(targets, responses):
            assert response == expected[target]

        assert running_server.server.counter.add_and_get(0) == sum(len(r) for r in responses)

    def test_stalled_client_does_not_block_others(self, config: ServerConfig):
        """Test that a client that never finishes its request doesn't stall the server."""
        config.timeout = 1.0
        srv = BackgroundServer(FileServer(config))
        srv.start()
        try:
            stalled = socket.create_connection(("127.0.0.1", srv.port), timeout=5.0)
            stalled.sendall(b"GET / HTTP/1.1\r\n")

            assert srv.request(get("/about.html")) == OK + ABOUT_HTML

            # The stalled client is answered with 400 once its read times out
            data = b""
            while True:
                chunk = stalled.recv(4096)
                if not chunk:
                    break
                data += chunk
            stalled.close()
            assert data == BAD_REQUEST + BAD_REQUEST_HTML
        finally:
            srv.stop()


class TestMissingErrorPages:
    """Tests for a document root without 400.html / 404.html."""

    @pytest.fixture
    def bare_server(self, tmp_path: Path, config: ServerConfig):
        root = tmp_path / "bare"
        root.mkdir()
        (root / "index.html").write_bytes(INDEX_HTML)
        config.document_root = str(root)

        srv = BackgroundServer(FileServer(config))
        srv.start()
        yield srv
        srv.stop()

    def test_not_found_is_header_only(self, bare_server: BackgroundServer):
        """Test that a 404 without 404.html is just the header."""
        assert bare_server.request(get("/nope")) == NOT_FOUND

    def test_bad_request_is_header_only(self, bare_server: BackgroundServer):
        """Test that a 400 without 400.html is just the header."""
        assert bare_server.request(get("/../nope")) == BAD_REQUEST

    def test_header_only_bytes_are_counted(self, bare_server: BackgroundServer):
        """Test that a header-only response counts the header bytes."""
        bare_server.request(get("/nope"))
        assert bare_server.server.counter.add_and_get(0) == len(NOT_FOUND)


class TestLifecycle:
    """Start/stop behavior."""

    def test_port_zero_gets_real_port(self, running_server: BackgroundServer):
        """Test that port 0 is replaced by the OS-assigned port."""
        assert running_server.port != 0

    def test_shutdown_stops_accepting(self, config: ServerConfig):
        """Test that connections are refused after shutdown."""
        server = FileServer(config)
        srv = BackgroundServer(server)
        srv.start()
        port = srv.port
        assert srv.request(get("/")) == OK + INDEX_HTML

        srv.stop()

        assert not server.is_running
        with pytest.raises(OSError):
            send_raw(port, get("/"), timeout=1.0)

    def test_bind_conflict_raises(self, running_server: BackgroundServer, config: ServerConfig):
        """Test that a second server on a taken port fails with OSError."""
        other = FileServer(replace(config, port=running_server.port))

        errors = []

        def run():
            try:
                other.run(setup_logging=False)
            except OSError as e:
                errors.append(e)

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        thread.join(timeout=5.0)

        assert errors
