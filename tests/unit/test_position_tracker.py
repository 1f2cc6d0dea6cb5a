"""Unit tests for PlaybackPositionTracker."""

import asyncio

import pytest

from repeat2me.ui.position_tracker import PlaybackPositionTracker


class FakeSource:
    """Play head that advances a fixed step every time it is read.

    With ``stop_after`` set, playback reports stopped once that many frames
    have been sampled, whether or not the play head was read.
    """

    def __init__(self, duration=2.0, step=0.5, stop_after=None):
        self.duration = duration
        self.step = step
        self.stop_after = stop_after
        self._time = 0.0
        self.checks = 0

    @property
    def is_playing(self):
        self.checks += 1
        return self.stop_after is None or self.checks <= self.stop_after

    @property
    def current_time(self):
        self._time += self.step
        return self._time


@pytest.mark.unit
class TestPlaybackPositionTracker:
    """Redraw loop lifecycle."""

    def test_forwards_positions_until_source_stops(self):
        source = FakeSource(duration=2.0, step=0.5, stop_after=3)
        positions = []

        async def scenario():
            tracker = PlaybackPositionTracker(source, positions.append, frame_rate=1000)
            tracker.start()
            await asyncio.sleep(0.1)
            return tracker

        tracker = asyncio.run(scenario())

        assert positions == [0.25, 0.5, 0.75]
        assert tracker.is_running is False
        assert tracker.iterations == 3
        assert tracker.current_position() is None

    def test_stop_cancels_rescheduling(self):
        source = FakeSource(duration=1000.0, step=0.001)
        positions = []

        async def scenario():
            tracker = PlaybackPositionTracker(source, positions.append, frame_rate=1000)
            tracker.start()
            await asyncio.sleep(0.05)
            tracker.stop()
            count = len(positions)
            await asyncio.sleep(0.05)
            return tracker, count

        tracker, count = asyncio.run(scenario())

        assert count > 0
        assert len(positions) == count
        assert tracker.is_running is False

    def test_position_is_clamped(self):
        source = FakeSource(duration=1.0, step=5.0, stop_after=1)
        positions = []

        async def scenario():
            PlaybackPositionTracker(source, positions.append, frame_rate=1000).start()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert positions == [1.0]

    def test_zero_duration_reports_zero(self):
        source = FakeSource(duration=0.0, step=1.0, stop_after=1)
        positions = []

        async def scenario():
            PlaybackPositionTracker(source, positions.append, frame_rate=1000).start()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert positions == [0.0]

    def test_callback_may_stop_tracker(self):
        source = FakeSource(duration=10.0, step=0.1)
        positions = []

        async def scenario():
            tracker = PlaybackPositionTracker(source, lambda p: (positions.append(p), tracker.stop()),
                                              frame_rate=1000)
            tracker.start()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert len(positions) == 1

    def test_start_twice_is_noop(self):
        source = FakeSource(duration=10.0, step=0.1)

        async def scenario():
            tracker = PlaybackPositionTracker(source, lambda p: None, frame_rate=1000)
            tracker.start()
            handle = tracker._handle
            tracker.start()
            same = tracker._handle is handle
            tracker.stop()
            return same

        assert asyncio.run(scenario()) is True

    def test_invalid_frame_rate(self):
        with pytest.raises(ValueError):
            PlaybackPositionTracker(FakeSource(), lambda p: None, frame_rate=0)
