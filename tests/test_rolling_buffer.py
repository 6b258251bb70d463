"""
Unit tests for the rolling snapshot buffer
"""
import threading

import pytest

from twins.errors import InvalidArgumentError
from twins.rolling_buffer import DEFAULT_CAPACITY, RollingBuffer
from helpers import make_snapshot


def fill(buffer: RollingBuffer, count: int):
    snapshots = [make_snapshot(tool_wear=float(i)) for i in range(count)]
    for snapshot in snapshots:
        buffer.append(snapshot)
    return snapshots


class TestRollingBuffer:
    """Test RollingBuffer"""

    def test_default_capacity(self):
        """Test the default capacity"""
        assert RollingBuffer().capacity == DEFAULT_CAPACITY == 20

    @pytest.mark.parametrize("appends", [0, 1, 5, 19, 20, 21, 45])
    def test_keeps_last_min_n_c(self, appends):
        """Test the buffer keeps the most recent min(n, capacity) items"""
        buffer = RollingBuffer(capacity=20)
        snapshots = fill(buffer, appends)
        expected = snapshots[-20:] if appends else []
        assert len(buffer) == min(appends, 20)
        assert list(buffer) == expected

    def test_full_buffer_evicts_exactly_oldest(self):
        """Test appending to a full buffer drops only the oldest item"""
        buffer = RollingBuffer(capacity=3)
        first, second, third = fill(buffer, 3)
        newest = make_snapshot(tool_wear=99.0)
        buffer.append(newest)
        assert len(buffer) == 3
        assert list(buffer) == [second, third, newest]
        assert first not in list(buffer)

    def test_latest_on_empty_buffer(self):
        """Test latest() on an empty buffer"""
        assert RollingBuffer().latest() is None

    def test_latest_is_most_recent_append(self):
        """Test latest() returns the last append"""
        buffer = RollingBuffer(capacity=2)
        snapshots = fill(buffer, 5)
        assert buffer.latest() is snapshots[-1]

    def test_recent_oldest_first(self):
        """Test recent() ordering and limits"""
        buffer = RollingBuffer(capacity=10)
        snapshots = fill(buffer, 6)
        assert buffer.recent(3) == snapshots[3:]
        assert buffer.recent(20) == snapshots
        assert buffer.recent(0) == []
        assert buffer.recent(-1) == []

    def test_recent_returns_copy(self):
        """Test recent() is not affected by later appends"""
        buffer = RollingBuffer(capacity=5)
        fill(buffer, 2)
        recent = buffer.recent(5)
        recent.clear()
        assert len(buffer) == 2

    @pytest.mark.parametrize("capacity", [0, -1, 2.5, True, "20"])
    def test_invalid_capacity(self, capacity):
        """Test capacity below one is rejected"""
        with pytest.raises(InvalidArgumentError):
            RollingBuffer(capacity=capacity)

    def test_concurrent_appends_respect_capacity(self):
        """Test concurrent writers never exceed capacity"""
        buffer = RollingBuffer(capacity=20)

        def writer():
            for i in range(200):
                buffer.append(make_snapshot(tool_wear=float(i)))

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(buffer) == 20


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
