"""Concurrency-safe set of symbols with an execution in flight."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class InFlightRegistry:
    """
    Per-symbol in-flight markers with atomic test-and-set.

    Only the symbol being executed is blocked; unrelated symbols never wait
    on each other beyond the instant of the set operation.
    """

    def __init__(self):
        self._symbols: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, symbol: str) -> bool:
        """Mark ``symbol`` in flight; False if it already was."""
        with self._lock:
            if symbol in self._symbols:
                return False
            self._symbols.add(symbol)
            return True

    def release(self, symbol: str) -> None:
        with self._lock:
            self._symbols.discard(symbol)

    def is_in_flight(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._symbols

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._symbols)

    @contextmanager
    def claim(self, symbol: str) -> Iterator[bool]:
        """
        Hold the marker for the duration of the block.

        Yields whether the marker was acquired. A marker acquired here is
        released on every exit path, including exceptions.
        """
        acquired = self.try_acquire(symbol)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(symbol)

    def __len__(self) -> int:
        with self._lock:
            return len(self._symbols)
