"""
=============================================================================
CONNECTION THREAD POOL
=============================================================================

A pool of worker threads that each take one accepted connection at a
time and run it to completion.

=============================================================================
WHY A POOL AND NOT A THREAD PER ACCEPT?
=============================================================================

    for conn in accept_connections():
        threading.Thread(target=serve, args=(conn,)).start()

works, but a burst of 10,000 connections means 10,000 threads. The pool
keeps the same one-thread-per-connection model (a thread serves a single
connection from start to finish, never two at once) while capping how
many run simultaneously:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ThreadPool                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop ──► submit(conn) ──► [conn][conn][conn] queue          │
    │                                          │                           │
    │                                          │ get()                     │
    │                                          ▼                           │
    │       ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐           │
    │       │ Worker-0 │ │ Worker-1 │ │ Worker-2 │ │ Worker-3 │  ...      │
    │       │  busy    │ │  idle    │ │  busy    │ │  busy    │           │
    │       └──────────┘ └──────────┘ └──────────┘ └──────────┘           │
    │                                                                      │
    │   Grows from min_workers towards max_workers when every worker      │
    │   is busy and connections are waiting.                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

To stop, we put one None per worker into the queue. A worker that
dequeues None exits its loop. Connections queued before the pills are
still served first (FIFO).

=============================================================================
"""

import threading
import queue
import time
import logging
from enum import Enum
from typing import Callable, Optional

from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], object]


class WorkerState(Enum):
    """Worker thread states, for monitoring."""
    IDLE = "idle"        # Waiting for a connection
    BUSY = "busy"        # Serving a connection
    STOPPED = "stopped"  # Thread exited


class Worker(threading.Thread):
    """
    Worker thread: take a connection, serve it, repeat.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. conn = queue.get()          (blocks, wakes up every           │
    │                                   idle_timeout to check shutdown)   │
    │   2. conn is None? → exit                                           │
    │   3. handler(conn)               (exceptions logged, never fatal)  │
    │   4. queue.task_done() → step 1                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Connection]]",
        handler: ConnectionHandler,
        worker_id: int,
        idle_timeout: float = 1.0,
    ):
        # daemon=True: a stuck connection never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.handler = handler
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        # Metrics
        self.connections_served = 0
        self.connections_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                conn = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if conn is None:
                    break
                self._serve(conn)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _serve(self, conn: Connection):
        """
        Run the handler for one connection.

        Any exception is logged and swallowed here so the thread survives
        to serve the next connection. The connection is closed regardless.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            self.handler(conn)
            self.connections_served += 1
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} served [{conn.id}] in {elapsed:.3f}s")

        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} failed on [{conn.id}] after {elapsed:.3f}s: {e}"
            )
            self.connections_failed += 1
            conn.close()

        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Pool of connection-serving threads.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   pool = ThreadPool(serve, min_workers=10, max_workers=64)          │
    │   pool.start()                                                       │
    │                                                                      │
    │   pool.submit(conn)          # from the accept loop                 │
    │                                                                      │
    │   pool.stats                 # {"workers": {...}, "connections": ...}│
    │   pool.shutdown(wait=True)                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        handler: ConnectionHandler,
        min_workers: int = 10,
        max_workers: int = 64,
        queue_size: int = 256,
        idle_timeout: float = 1.0,
    ):
        """
        Args:
            handler: Called with each connection, on a worker thread.
            min_workers: Threads started up front.
            max_workers: Upper bound on threads.
            queue_size: Connections that may wait for a free worker.
                        submit() blocks once this many are waiting.
            idle_timeout: How often idle workers check for shutdown.
        """
        self.handler = handler
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Connection]]" = queue.Queue(maxsize=queue_size)

        self._workers: list = []
        self._lock = threading.Lock()  # Protects _workers
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        """Start the minimum number of workers."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")

        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()

        self._started = True

    def _add_worker(self) -> Worker:
        """Start one more worker. Caller holds self._lock."""
        worker = Worker(
            task_queue=self._task_queue,
            handler=self.handler,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(self, conn: Connection, timeout: Optional[float] = None) -> bool:
        """
        Queue a connection for a worker.

        Blocks while the queue is full (up to ``timeout`` seconds, or
        forever if None).

        Returns:
            True if queued, False if the queue stayed full for ``timeout``.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        try:
            self._task_queue.put(conn, block=True, timeout=timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker if all are busy, work is waiting, and we're under max."""
        with self._lock:
            busy_count = sum(1 for w in self._workers if w.state == WorkerState.BUSY)

            if busy_count == len(self._workers) and len(self._workers) < self.max_workers:
                if self._task_queue.qsize() > 0:
                    logger.debug(
                        f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                    )
                    self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued connections be served before stopping.
            timeout: Max seconds to wait for the queue to drain.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            if timeout:
                deadline = time.time() + timeout
                while self._task_queue.unfinished_tasks:
                    if time.time() > deadline:
                        logger.warning("Shutdown timeout, abandoning queued connections")
                        break
                    time.sleep(0.05)
            else:
                self._task_queue.join()

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # Workers also stop via their shutdown event

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def stats(self) -> dict:
        """Worker and connection counts, for logs and tests."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "connections": {
                "queued": self._task_queue.qsize(),
                "served": sum(w.connections_served for w in self._workers),
                "failed": sum(w.connections_failed for w in self._workers),
            },
        }
