"""Trim selection models."""

from dataclasses import dataclass
from enum import Enum


class DragHandle(Enum):
    """Which trim handle a pointer has captured."""
    START = "start"
    END = "end"


class TrimState(Enum):
    """Trim controller interaction state."""
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class TrimWindow:
    """Selected sub-range of a buffer as percentages of its duration."""
    start: float = 0.0
    end: float = 100.0

    @classmethod
    def full(cls) -> "TrimWindow":
        return cls(0.0, 100.0)

    @property
    def width(self) -> float:
        return self.end - self.start

    @property
    def is_full(self) -> bool:
        return self.start == 0.0 and self.end == 100.0

    def get(self, handle: DragHandle) -> float:
        return self.start if handle is DragHandle.START else self.end

    def to_frames(self, frame_count: int) -> tuple:
        """Convert to ``(start_frame, end_frame)`` offsets, rounding down."""
        start_frame = int(self.start * frame_count / 100)
        end_frame = int(self.end * frame_count / 100)
        return start_frame, end_frame
