"""Tests for the shared latency store and completed counter."""

import threading

import pytest

from invoker.runner.store import CompletedCounter, LatencyStore


class TestLatencyStore:
    """Tests for LatencyStore."""

    def test_record_and_drain(self) -> None:
        store = LatencyStore()
        store.record(120)
        store.record(0)
        assert store.drain() == [120, 0]
        assert len(store) == 2

    def test_negative_sample_rejected(self) -> None:
        store = LatencyStore()
        with pytest.raises(ValueError, match="non-negative"):
            store.record(-1)
        assert len(store) == 0

    def test_drain_returns_copy(self) -> None:
        store = LatencyStore()
        store.record(5)
        snapshot = store.drain()
        store.record(6)
        assert snapshot == [5]

    def test_concurrent_writers_lose_nothing(self) -> None:
        store = LatencyStore()
        counter = CompletedCounter()

        def writer(base: int) -> None:
            for i in range(1000):
                store.record(base + i)
                counter.increment()

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        samples = store.drain()
        assert len(samples) == 8000
        assert sorted(samples) == list(range(8000))
        assert counter.value == len(samples)


class TestCompletedCounter:
    """Tests for CompletedCounter."""

    def test_starts_at_zero(self) -> None:
        assert CompletedCounter().value == 0

    def test_increment_is_monotonic(self) -> None:
        counter = CompletedCounter()
        assert [counter.increment() for _ in range(3)] == [1, 2, 3]
        assert counter.value == 3
