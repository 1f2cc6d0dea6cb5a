"""Rolling audio buffer feeding the live recording waveform."""

import time
import logging
import threading
from collections import deque
from typing import Optional

import numpy as np
from pubsub import pub

from ..models.audio import AudioFrame, SampleBuffer
from ..models.events import AudioEvent
from .audio_pub import AUDIO_FRAME_TOPIC

logger = logging.getLogger(__name__)


class LiveWaveformBuffer:
    """Keeps the most recent seconds of captured 16-bit audio for display."""

    def __init__(self, duration_seconds: float = 2.0, sample_rate: int = 44100, channels: int = 1):
        """Initialize live waveform buffer.

        Args:
            duration_seconds: How many seconds of audio to keep in buffer
            sample_rate: Audio sample rate
            channels: Number of audio channels
        """
        self.duration_seconds = duration_seconds
        self.sample_rate = sample_rate
        self.channels = channels
        self.bytes_per_sample = 2  # 16-bit audio

        # Calculate buffer capacity
        self.bytes_per_second = sample_rate * channels * self.bytes_per_sample
        self.max_buffer_bytes = int(self.bytes_per_second * duration_seconds)

        # Thread-safe buffer
        self.buffer = deque()
        self.lock = threading.Lock()
        self.total_bytes = 0
        self.frame_counter = 0
        self.topic: Optional[str] = None

        logger.info(f"LiveWaveformBuffer initialized: {duration_seconds}s capacity, "
                    f"{self.max_buffer_bytes} bytes max")

    def subscribe(self, topic: str = AUDIO_FRAME_TOPIC) -> None:
        """Start receiving captured chunks from ``topic``."""
        pub.subscribe(self._on_audio_event, topic)
        self.topic = topic

    def unsubscribe(self) -> None:
        if self.topic is not None:
            pub.unsubscribe(self._on_audio_event, self.topic)
            self.topic = None

    def _on_audio_event(self, event: AudioEvent) -> None:
        self.add_audio_chunk(event.audio_data)

    def add_audio_chunk(self, audio_data: bytes) -> None:
        """Add audio chunk to the rolling buffer."""
        if not audio_data:
            return

        with self.lock:
            frame = AudioFrame(
                data=audio_data,
                timestamp=time.time(),
                frame_number=self.frame_counter
            )
            self.frame_counter += 1

            self.buffer.append(frame)
            self.total_bytes += len(audio_data)

            # Remove old frames to maintain buffer size, always keep the newest
            while self.total_bytes > self.max_buffer_bytes and len(self.buffer) > 1:
                old_frame = self.buffer.popleft()
                self.total_bytes -= len(old_frame.data)

    def snapshot(self) -> Optional[SampleBuffer]:
        """Current window as a SampleBuffer, or None if nothing was captured."""
        with self.lock:
            if not self.buffer:
                return None
            raw = b''.join(frame.data for frame in self.buffer)

        frame_bytes = self.channels * self.bytes_per_sample
        raw = raw[:len(raw) - len(raw) % frame_bytes]
        if not raw:
            return None
        pcm = np.frombuffer(raw, dtype='<i2').astype(np.float32) / 32768.0
        return SampleBuffer(samples=pcm.reshape(-1, self.channels).T, sample_rate=self.sample_rate)

    def get_buffer_stats(self) -> dict:
        """Get buffer statistics."""
        with self.lock:
            return {
                "frame_count": len(self.buffer),
                "total_bytes": self.total_bytes,
                "buffer_duration_seconds": self.total_bytes / self.bytes_per_second,
                "capacity_seconds": self.duration_seconds,
                "capacity_bytes": self.max_buffer_bytes
            }

    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.buffer.clear()
            self.total_bytes = 0
            self.frame_counter = 0
            logger.debug("Live waveform buffer cleared")
