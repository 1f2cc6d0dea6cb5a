"""Waveform rendering.

The renderer turns a SampleBuffer into a short list of raster commands: one
min/max envelope segment per pixel column, followed by the trim overlay and
an optional playback marker. Rendering cost is bounded by the surface width,
not by the number of samples.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from ..models.audio import SampleBuffer
from ..models.trim import DragHandle, TrimWindow


class RenderMode(Enum):
    """Full editor view or read-only preview."""
    FULL = "full"
    COMPACT = "compact"


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    style: str


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    style: str


RasterCommand = Union[FillRect, Line]


class WaveformSurface(ABC):
    """Fixed-size 2D surface the renderer can draw on."""

    @property
    @abstractmethod
    def width(self) -> int:
        pass

    @property
    @abstractmethod
    def height(self) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def fill_rect(self, x: float, y: float, width: float, height: float, style: str) -> None:
        pass

    @abstractmethod
    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: str) -> None:
        pass

    def draw(self, commands: List[RasterCommand]) -> None:
        """Clear the surface and replay ``commands`` in order."""
        self.clear()
        for command in commands:
            if isinstance(command, FillRect):
                self.fill_rect(command.x, command.y, command.width, command.height, command.style)
            else:
                self.draw_line(command.x1, command.y1, command.x2, command.y2, command.style)


def compute_envelope(samples: np.ndarray, columns: int) -> Tuple[np.ndarray, np.ndarray]:
    """Min/max of each run of ``ceil(len(samples) / columns)`` samples.

    Args:
        samples: One channel of audio
        columns: Number of output columns

    Returns:
        Tuple of (mins, maxs). Only columns that received samples are
        returned, so the arrays can be shorter than ``columns``.
    """
    frame_count = len(samples)
    if frame_count == 0 or columns <= 0:
        return np.zeros(0, dtype=np.float32), np.zeros(0, dtype=np.float32)

    step = math.ceil(frame_count / columns)
    filled = math.ceil(frame_count / step)
    # Edge padding repeats the last sample, which cannot change a min or max
    padded = np.pad(samples, (0, filled * step - frame_count), mode='edge')
    runs = padded.reshape(filled, step)
    return runs.min(axis=1), runs.max(axis=1)


class WaveformRenderer:
    """Draws the envelope, trim overlay and playback marker."""

    def __init__(
        self,
        width: int = 800,
        height: int = 150,
        mode: RenderMode = RenderMode.FULL,
        handle_width: int = 16,
        hit_margin: Optional[float] = None,
    ):
        """Initialize renderer.

        Args:
            width: Surface width in pixels
            height: Surface height in pixels
            mode: FULL draws trim mask and handles, COMPACT omits them
            handle_width: Visible width of each trim handle bar
            hit_margin: Pointer distance from a handle centre that still grabs
                the handle; defaults to the full handle width, twice the
                visible half-width
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.mode = mode
        self.handle_width = handle_width
        self.hit_margin = float(hit_margin if hit_margin is not None else handle_width)

    def percent_to_x(self, percent: float) -> float:
        return percent / 100.0 * self.width

    def x_to_percent(self, x: float) -> float:
        """Pointer x position to a percentage clamped to [0, 100]."""
        return max(0.0, min(100.0, x / self.width * 100.0))

    def hit_test(self, x: float, trim_window: TrimWindow) -> Optional[DragHandle]:
        """Handle under pointer ``x``, the nearer one if both are in range."""
        candidates = []
        for handle in (DragHandle.START, DragHandle.END):
            distance = abs(x - self.percent_to_x(trim_window.get(handle)))
            if distance <= self.hit_margin:
                candidates.append((distance, handle is DragHandle.END, handle))
        if not candidates:
            return None
        return min(candidates)[2]

    def render(
        self,
        buffer: Optional[SampleBuffer],
        trim_window: TrimWindow,
        playback_position: Optional[float] = None,
    ) -> List[RasterCommand]:
        """Build raster commands for one frame.

        Args:
            buffer: Audio to draw; only channel 0 is used
            trim_window: Current selection
            playback_position: Fraction of the duration played, 0..1

        Returns:
            Ordered raster commands
        """
        commands: List[RasterCommand] = [
            FillRect(0, 0, self.width, self.height, "background"),
        ]

        if buffer is not None:
            commands.extend(self._envelope_commands(buffer))

        if self.mode is RenderMode.FULL:
            commands.extend(self._overlay_commands(trim_window))

        if playback_position is not None:
            marker_x = max(0.0, min(1.0, playback_position)) * self.width
            commands.append(Line(marker_x, 0, marker_x, self.height, "marker"))

        return commands

    def draw(
        self,
        surface: WaveformSurface,
        buffer: Optional[SampleBuffer],
        trim_window: TrimWindow,
        playback_position: Optional[float] = None,
    ) -> List[RasterCommand]:
        """Render and replay the commands onto ``surface``."""
        commands = self.render(buffer, trim_window, playback_position)
        surface.draw(commands)
        return commands

    def _envelope_commands(self, buffer: SampleBuffer) -> List[RasterCommand]:
        mins, maxs = compute_envelope(buffer.get_channel_data(0), self.width)
        amp = self.height / 2
        return [
            Line(x, (1 + float(low)) * amp, x, (1 + float(high)) * amp, "waveform")
            for x, (low, high) in enumerate(zip(mins, maxs))
        ]

    def _overlay_commands(self, trim_window: TrimWindow) -> List[RasterCommand]:
        start_x = self.percent_to_x(trim_window.start)
        end_x = self.percent_to_x(trim_window.end)
        half = self.handle_width / 2

        commands: List[RasterCommand] = [
            FillRect(0, 0, start_x, self.height, "mask"),
            FillRect(end_x, 0, self.width - end_x, self.height, "mask"),
            FillRect(start_x - half, 0, self.handle_width, self.height, "handle"),
            FillRect(end_x - half, 0, self.handle_width, self.height, "handle"),
        ]

        # Three grip dots centred on each handle
        for i in range(3):
            offset_y = self.height / 2 - 12 + i * 12
            for handle_x in (start_x, end_x):
                commands.append(FillRect(handle_x - half + 4, offset_y, 4, 4, "grip"))

        return commands
