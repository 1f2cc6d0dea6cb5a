"""Recording session models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from .audio import AudioFrame


class CaptureState(Enum):
    """Lifecycle of a live capture session."""
    INACTIVE = "inactive"
    REQUESTING_PERMISSION = "requesting-permission"
    RECORDING = "recording"
    STOPPING = "stopping"


@dataclass
class RecordingSession:
    """Transient state of one recording, from start to stop."""
    chunks: List[AudioFrame] = field(default_factory=list)
    elapsed_seconds: int = 0
    active: bool = True
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def total_bytes(self) -> int:
        return sum(len(chunk.data) for chunk in self.chunks)

    def pcm_bytes(self) -> bytes:
        """All accumulated chunks joined in capture order."""
        return b''.join(chunk.data for chunk in self.chunks)
