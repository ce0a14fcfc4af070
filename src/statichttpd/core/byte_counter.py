"""
=============================================================================
SHARED BYTE COUNTER
=============================================================================

The one piece of state every worker thread touches: the running total of
bytes served since startup.

=============================================================================
WHY A LOCK?
=============================================================================

``total += n`` looks atomic but is three steps: read, add, write back.
Two threads interleaving those steps lose an update:

    Thread A                     Thread B                  total
    ─────────                    ─────────                 ─────
    read total (100)                                        100
                                 read total (100)           100
    write 100 + 50                                          150
                                 write 100 + 70             170   ← A's 50 lost!

With the lock held across read-add-write-read, the steps of two calls
never interleave:

    Thread A                     Thread B                  total
    ─────────                    ─────────                 ─────
    acquire, 100 + 50, return 150                           150
                                 acquire (waits for A)
                                 150 + 70, return 220       220

Returning the new total from inside the lock means each caller sees the
value right after ITS add, not some later value.

=============================================================================
"""

import threading


class ByteCounter:
    """
    Thread-safe, monotonically increasing byte total.

    Created once per server and handed to every ConnectionWorker. The
    only operation is add-and-read; there is no reset and no decrement.

        counter = ByteCounter()
        counter.add_and_get(120)   # 120
        counter.add_and_get(30)    # 150
        counter.add_and_get(0)     # 150  (read without changing)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0

    def add_and_get(self, n: int) -> int:
        """
        Add ``n`` bytes and return the new total, as one indivisible step.

        Args:
            n: Bytes to add. Must be a non-negative int.

        Returns:
            Total immediately after this add.

        Raises:
            ValueError: If n is negative or not an int.
        """
        if isinstance(n, bool) or not isinstance(n, int):
            raise ValueError(f"byte count must be an int, got {type(n).__name__}")
        if n < 0:
            raise ValueError(f"byte count must be >= 0, got {n}")

        with self._lock:
            self._total += n
            return self._total

    def __repr__(self) -> str:
        return f"ByteCounter(total={self.add_and_get(0)})"
