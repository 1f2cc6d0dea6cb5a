"""Audio-related data models."""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Decoded audio held as float32 samples, one row per channel.

    The sample array is copied on construction and flagged read-only, so a
    buffer never changes after it has been created. Range extraction always
    produces a new buffer.
    """
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        data = np.array(self.samples, dtype=np.float32, copy=True)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        if data.ndim != 2 or data.shape[0] < 1:
            raise ValueError(f"Samples must have shape (channels, frames), got {data.shape}")
        if int(self.sample_rate) <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_channels(
        cls,
        channels: Sequence[Union[Sequence[float], np.ndarray]],
        sample_rate: int,
    ) -> "SampleBuffer":
        """Build a buffer from a list of per-channel sample sequences."""
        lengths = {len(channel) for channel in channels}
        if len(lengths) > 1:
            raise ValueError(f"All channels must have the same length, got {sorted(lengths)}")
        return cls(samples=np.array([np.asarray(c, dtype=np.float32) for c in channels]),
                   sample_rate=sample_rate)

    @property
    def channel_count(self) -> int:
        return self.samples.shape[0]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frame_count / self.sample_rate

    def get_channel_data(self, channel: int) -> np.ndarray:
        """Read-only view of a single channel."""
        return self.samples[channel]

    def __repr__(self) -> str:
        return (f"SampleBuffer(channels={self.channel_count}, frames={self.frame_count}, "
                f"sample_rate={self.sample_rate})")


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    channels: int
    total_chunks: int
    total_bytes: int = 0


@dataclass
class AudioFrame:
    """A single captured audio chunk with timestamp."""
    data: bytes
    timestamp: float  # Time when this chunk was captured
    frame_number: int
