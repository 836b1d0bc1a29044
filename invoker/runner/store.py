"""Shared accumulators written by concurrently running invocations."""

import threading


class LatencyStore:
    """Append-only collection of latency samples in microseconds.

    The lock is held only around the append, never across a remote call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: list[int] = []

    def record(self, sample_us: int) -> None:
        if sample_us < 0:
            raise ValueError(f"Latency sample must be non-negative, got {sample_us}")
        with self._lock:
            self._samples.append(sample_us)

    def drain(self) -> list[int]:
        """Return a copy of every sample recorded so far, in completion order."""
        with self._lock:
            return list(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


class CompletedCounter:
    """Monotonic count of finished invocations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
