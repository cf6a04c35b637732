"""
Unit tests for the bounded collection buffer.
"""

import threading

import pytest

from logpipe.collection import LogBuffer, MAX_BUFFER_SIZE
from logpipe.models import RawLog


def make_logs(count, prefix="m"):
    return [RawLog(source="app", log_level="INFO", message=f"{prefix}{i}") for i in range(count)]


class TestLogBuffer:
    """Tests for append, eviction and drain."""

    def test_default_capacity(self):
        assert LogBuffer().capacity == MAX_BUFFER_SIZE == 1000

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            LogBuffer(0)

    def test_extend_within_capacity(self):
        buffer = LogBuffer(10)

        evicted = buffer.extend(make_logs(4))

        assert evicted == 0
        assert len(buffer) == 4

    def test_fifo_eviction(self):
        """Test that exactly the oldest excess records are dropped."""
        buffer = LogBuffer(5)
        buffer.extend(make_logs(3, prefix="old"))

        evicted = buffer.extend(make_logs(4, prefix="new"))
        drained = buffer.drain()

        assert evicted == 2
        assert [log.message for log in drained] == ["old2", "new0", "new1", "new2", "new3"]

    def test_never_exceeds_capacity(self):
        buffer = LogBuffer(1000)
        for _ in range(12):
            buffer.extend(make_logs(137))
            assert len(buffer) <= 1000
        assert len(buffer) == 1000

    def test_single_oversized_batch(self):
        """Test a batch larger than the buffer keeps its newest records."""
        buffer = LogBuffer(3)

        evicted = buffer.extend(make_logs(5))

        assert evicted == 2
        assert [log.message for log in buffer.drain()] == ["m2", "m3", "m4"]

    def test_drain_is_at_most_once(self):
        buffer = LogBuffer(10)
        buffer.extend(make_logs(3))

        first = buffer.drain()
        second = buffer.drain()

        assert len(first) == 3
        assert second == []
        assert len(buffer) == 0

    def test_concurrent_extends(self):
        """Test that interleaved appends neither lose nor overflow records."""
        buffer = LogBuffer(10000)

        def worker():
            for _ in range(50):
                buffer.extend(make_logs(10))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(buffer.drain()) == 8 * 50 * 10
