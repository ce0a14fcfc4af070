"""
=============================================================================
CONNECTION WORKER
=============================================================================

Handles one connection from first byte to close. One ConnectionWorker is
created per accepted connection; the thread that runs it handles nothing
else until it returns.

=============================================================================
STATE MACHINE
=============================================================================

    ┌──────────────────┐
    │ AWAITING_REQUEST │  conn.read_request()
    └────────┬─────────┘  read error / too large / timeout → raw = None
             │
             ▼
    ┌──────────────────┐
    │ PARSING          │  resolver.resolve(raw)
    └────────┬─────────┘  unexpected error → BAD_REQUEST
             │
             ▼
    ┌──────────────────┐
    │ RESPONDING       │  composer.compose(conn, classification, path)
    └────────┬─────────┘  ResponseSendError → log, skip REPORTING
             │
             ▼
    ┌──────────────────┐
    │ REPORTING        │  counter.add_and_get(bytes)  + access log line
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐
    │ CLOSED           │  always, on every path (``with conn:``)
    └──────────────────┘

Failures before RESPONDING never drop the connection silently: the
client gets a 400. Failures during RESPONDING mean the socket is gone,
so there is nobody left to tell. Either way only this connection is
affected; other workers and the counter carry on.

=============================================================================
ACCESS LOG
=============================================================================

Every served request produces one ServeRecord on the
"statichttpd.access" logger:

    text:  127.0.0.1 [Worker-3 a1b2c3d4] "GET /index.html" 200 1043 bytes (total 88412) 0.41ms
    json:  {"connection_id": "a1b2c3d4", "worker": "Worker-3", ...}

=============================================================================
"""

import json
import time
import logging
import threading
from dataclasses import dataclass, asdict
from typing import Optional

from .byte_counter import ByteCounter
from .connection import Connection, ConnectionState, RequestReadError
from ..handlers.resolver import PathResolver, Resolution
from ..http.response import ResponseComposer, ResponseSendError


logger = logging.getLogger(__name__)

# Namespaced so deployments can route access lines separately:
#   logging.getLogger("statichttpd.access").addHandler(file_handler)
access_logger = logging.getLogger("statichttpd.access")


@dataclass
class ServeRecord:
    """
    Structured log entry for one served request.

    Attributes:
        connection_id: Connection.id, correlates with debug logs.
        worker: Name of the thread that served the request.
        client_ip: Peer address.
        target: Request target as sent ("-" if unparseable).
        status_code: 200, 400 or 404.
        bytes_sent: Header + body bytes for this request.
        total_bytes: Server-wide total right after this request's add.
        duration_ms: Time from first read to counter update.
        timestamp: When the record was produced.
    """

    connection_id: str
    worker: str
    client_ip: str
    target: str
    status_code: int
    bytes_sent: int
    total_bytes: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} [{self.worker} {self.connection_id}] '
            f'"GET {self.target}" {self.status_code} '
            f'{self.bytes_sent} bytes (total {self.total_bytes}) '
            f'{self.duration_ms:.2f}ms'
        )


class ConnectionWorker:
    """
    Serves exactly one connection.

    Shared collaborators (counter, resolver, composer) are injected; the
    connection is owned by this worker and closed when run() returns.

    Usage:
        worker = ConnectionWorker(conn, counter, resolver, composer)
        worker.run()   # blocks until the connection is closed
    """

    def __init__(
        self,
        conn: Connection,
        counter: ByteCounter,
        resolver: PathResolver,
        composer: ResponseComposer,
        log_format: str = "text",
    ):
        self.conn = conn
        self.counter = counter
        self.resolver = resolver
        self.composer = composer
        self.log_format = log_format

    @property
    def name(self) -> str:
        """Worker identity for logs: the running thread's name."""
        return threading.current_thread().name

    def run(self) -> Optional[int]:
        """
        Process the connection.

        Returns:
            Bytes served for this request, or None if the response could
            not be written.
        """
        start_time = time.time()

        with self.conn:
            raw_request = self._await_request()
            resolution = self._parse(raw_request)

            sent = self._respond(resolution)
            if sent is None:
                return None

            self._report(resolution, sent, start_time)
            return sent

    # =========================================================================
    # STATES
    # =========================================================================

    def _await_request(self) -> Optional[bytes]:
        try:
            return self.conn.read_request()
        except RequestReadError as e:
            logger.info(f"[{self.conn.id}] Unreadable request: {e}")
            return None

    def _parse(self, raw_request: Optional[bytes]) -> Resolution:
        self.conn.state = ConnectionState.PARSING

        if raw_request is None:
            return self.resolver.bad_request()

        try:
            return self.resolver.resolve(raw_request)
        except Exception as e:
            logger.exception(f"[{self.conn.id}] Resolver error: {e}")
            return self.resolver.bad_request()

    def _respond(self, resolution: Resolution) -> Optional[int]:
        self.conn.state = ConnectionState.RESPONDING

        try:
            return self.composer.compose(
                self.conn, resolution.classification, resolution.path
            )
        except ResponseSendError as e:
            logger.warning(
                f"[{self.conn.id}] Dropped response after "
                f"{e.bytes_written} bytes: {e}"
            )
            return None

    def _report(self, resolution: Resolution, sent: int, start_time: float):
        self.conn.state = ConnectionState.REPORTING

        total = self.counter.add_and_get(sent)

        record = ServeRecord(
            connection_id=self.conn.id,
            worker=self.name,
            client_ip=self.conn.client_ip,
            target=resolution.target or "-",
            status_code=resolution.classification.status.value,
            bytes_sent=sent,
            total_bytes=total,
            duration_ms=(time.time() - start_time) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            access_logger.info(json.dumps(record.to_dict()))
        else:
            access_logger.info(record.to_text())
