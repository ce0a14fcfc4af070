"""
Unit tests for the worker thread pool.
"""

import threading

import pytest

from statichttpd.core.thread_pool import ThreadPool


class FakeConnection:
    """Stands in for a Connection: an id and a close()."""

    def __init__(self, conn_id: str):
        self.id = conn_id
        self.closed = False

    def close(self):
        self.closed = True


class TestThreadPool:
    """Tests for ThreadPool."""

    def test_submit_before_start_raises(self):
        """Test that submitting to an unstarted pool raises."""
        pool = ThreadPool(handler=lambda conn: None, min_workers=1)

        with pytest.raises(RuntimeError):
            pool.submit(FakeConnection("a"))

    def test_every_connection_is_handled_once(self):
        """Test that each submitted connection reaches the handler exactly once."""
        handled = []
        lock = threading.Lock()

        def handler(conn):
            with lock:
                handled.append(conn.id)

        pool = ThreadPool(handler=handler, min_workers=4, max_workers=8, idle_timeout=0.1)
        pool.start()
        for i in range(100):
            assert pool.submit(FakeConnection(str(i)))
        pool.shutdown(wait=True, timeout=10.0)

        assert sorted(handled, key=int) == [str(i) for i in range(100)]

    def test_handler_runs_on_worker_thread(self):
        """Test that the handler runs on a named worker thread."""
        names = []
        pool = ThreadPool(handler=lambda conn: names.append(threading.current_thread().name),
                          min_workers=1, idle_timeout=0.1)
        pool.start()
        pool.submit(FakeConnection("a"))
        pool.shutdown(wait=True, timeout=5.0)

        assert names == ["Worker-0"]

    def test_failing_handler_closes_connection_and_worker_survives(self):
        """Test that a handler exception closes that connection and the worker keeps serving."""
        served = []

        def handler(conn):
            if conn.id == "bad":
                raise RuntimeError("boom")
            served.append(conn.id)

        pool = ThreadPool(handler=handler, min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()
        bad = FakeConnection("bad")
        pool.submit(bad)
        pool.submit(FakeConnection("good"))
        pool.shutdown(wait=True, timeout=5.0)

        assert bad.closed
        assert served == ["good"]

    def test_connections_are_served_in_parallel(self):
        """Test that one slow connection doesn't hold up the others."""
        release = threading.Event()
        started = threading.Semaphore(0)

        def handler(conn):
            started.release()
            release.wait(5.0)

        pool = ThreadPool(handler=handler, min_workers=3, max_workers=3, idle_timeout=0.1)
        pool.start()
        for i in range(3):
            pool.submit(FakeConnection(str(i)))

        for _ in range(3):
            assert started.acquire(timeout=5.0)
        assert pool.busy_workers == 3

        release.set()
        pool.shutdown(wait=True, timeout=5.0)

    def test_submit_after_shutdown_raises(self):
        """Test that a shutting-down pool refuses new connections."""
        pool = ThreadPool(handler=lambda conn: None, min_workers=1, idle_timeout=0.1)
        pool.start()
        pool._shutdown = True

        with pytest.raises(RuntimeError):
            pool.submit(FakeConnection("late"))

        pool.shutdown(wait=False)

    def test_stats(self):
        """Test the monitoring counters."""
        pool = ThreadPool(handler=lambda conn: None, min_workers=2, max_workers=4, idle_timeout=0.1)
        pool.start()

        stats = pool.stats

        assert stats["workers"]["total"] == 2
        assert stats["connections"]["queued"] == 0
        pool.shutdown(wait=True, timeout=5.0)
