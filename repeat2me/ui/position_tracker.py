"""Playback position tracker driving the waveform marker."""

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class PlaybackSource(Protocol):
    """Anything that reports a play head, e.g. PcmPlayer."""

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> float: ...

    @property
    def is_playing(self) -> bool: ...


class PlaybackPositionTracker:
    """Samples the play head once per display frame while audio plays.

    The loop is a chain of ``loop.call_later`` callbacks on the asyncio event
    loop. It stops rescheduling as soon as the source is no longer playing,
    or when ``stop`` is called.
    """

    def __init__(
        self,
        source: PlaybackSource,
        on_position: Callable[[float], None],
        frame_rate: float = 60.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize tracker.

        Args:
            source: Playback source to sample
            on_position: Receives the normalized position 0..1 every frame
            frame_rate: Iterations per second
            loop: Event loop to schedule on, defaults to the running loop
        """
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        self.source = source
        self.on_position = on_position
        self.frame_interval = 1.0 / frame_rate
        self._loop = loop
        self._handle: Optional[asyncio.Handle] = None
        self.position: Optional[float] = None
        self.iterations = 0

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Begin sampling; a second call while running is a no-op."""
        if self._handle is not None:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._handle = loop.call_soon(self._tick)
        logger.debug("Position tracker started")

    def stop(self) -> None:
        """Cancel the pending iteration."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"Position tracker stopped after {self.iterations} iterations")

    def current_position(self) -> Optional[float]:
        """Last sampled position while running, None otherwise."""
        return self.position if self.is_running else None

    def _tick(self) -> None:
        if not self.source.is_playing:
            self._handle = None
            logger.debug(f"Playback stopped, position tracker ended after {self.iterations} iterations")
            return

        duration = self.source.duration
        position = self.source.current_time / duration if duration > 0 else 0.0
        self.position = max(0.0, min(1.0, position))
        self.iterations += 1
        self.on_position(self.position)

        # on_position may have stopped the tracker
        if self._handle is not None:
            self._handle = self._loop.call_later(self.frame_interval, self._tick)
