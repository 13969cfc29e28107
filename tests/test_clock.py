"""Tests for the injectable clocks."""

import time

import pytest

from timecapsule.clock import ManualClock, SystemClock


class TestManualClock:
    def test_advance_and_set(self) -> None:
        clock = ManualClock(100)
        assert clock.now() == 100
        assert clock.advance(5) == 105
        assert clock.set(200) == 200
        assert clock.now() == 200

    def test_never_moves_backwards(self) -> None:
        clock = ManualClock(100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)
        assert clock.now() == 100

    def test_rejects_pre_epoch_start(self) -> None:
        with pytest.raises(ValueError):
            ManualClock(-1)


class TestSystemClock:
    def test_whole_seconds_near_wall_time(self) -> None:
        reading = SystemClock().now()
        assert isinstance(reading, int)
        assert abs(reading - time.time()) < 5
