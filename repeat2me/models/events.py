"""Event models published on the pub/sub bus."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class AudioEvent:
    """Captured audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 44100
    channels: int = 1
    chunk_duration_ms: Optional[int] = None  # Duration of this chunk in milliseconds

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            # 16-bit audio, 2 bytes per sample
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)


@dataclass
class RecordingCompleteEvent:
    """A capture session finished and produced a resource."""
    resource_url: str
    duration_seconds: float
    sample_rate: int
    channels: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TrimCompleteEvent:
    """A trim commit produced a new resource."""
    resource_url: str
    start_frame: int
    end_frame: int
    duration_seconds: float
    timestamp: datetime = field(default_factory=datetime.now)
