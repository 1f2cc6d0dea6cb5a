"""PyAudio output player for SampleBuffers."""

import asyncio
import logging
import threading
from typing import Callable, List, Optional

import numpy as np
import pyaudio

from ..models.audio import SampleBuffer

logger = logging.getLogger(__name__)


class PcmPlayer:
    """Plays one SampleBuffer at a time through a PyAudio callback stream.

    The play head is advanced on the PortAudio thread; reads of
    ``current_time`` are guarded by a lock. The end-of-buffer notification is
    delivered on the asyncio loop that called ``play``.
    """

    def __init__(self, chunk_size: int = 1024, device_index: Optional[int] = None):
        """Initialize player.

        Args:
            chunk_size: Frames per PortAudio callback
            device_index: PortAudio output device, None for the default
        """
        self.chunk_size = chunk_size
        self.device_index = device_index

        self.buffer: Optional[SampleBuffer] = None
        self._interleaved: Optional[np.ndarray] = None
        self._position_frames = 0
        self._volume = 1.0
        self._playing = False
        self._finished = False
        self._lock = threading.Lock()

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ended_callbacks: List[Callable[[], None]] = []

    @property
    def current_time(self) -> float:
        if self.buffer is None:
            return 0.0
        with self._lock:
            return self._position_frames / self.buffer.sample_rate

    @property
    def duration(self) -> float:
        return self.buffer.duration if self.buffer is not None else 0.0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, float(value)))

    def add_ended_callback(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    def load(self, buffer: SampleBuffer) -> None:
        """Replace the current buffer and rewind."""
        self.stop()
        self.buffer = buffer
        self._interleaved = np.ascontiguousarray(buffer.samples.T)
        with self._lock:
            self._position_frames = 0
        logger.debug(f"Player loaded {buffer!r}")

    def play(self) -> None:
        """Start or resume playback of the loaded buffer."""
        if self.buffer is None:
            raise RuntimeError("No buffer loaded")
        if self._playing:
            return

        self._loop = asyncio.get_running_loop()
        with self._lock:
            if self._position_frames >= self.buffer.frame_count:
                self._position_frames = 0

        if self._finished:
            # A completed PortAudio stream cannot be restarted
            self._release_stream()
            self._finished = False

        if self.stream is None:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paFloat32,
                channels=self.buffer.channel_count,
                rate=self.buffer.sample_rate,
                output=True,
                output_device_index=self.device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_stream_request
            )
        self._playing = True
        self.stream.start_stream()
        logger.info(f"Playback started at {self.current_time:.2f}s")

    def pause(self) -> None:
        if not self._playing:
            return
        self._playing = False
        if self.stream is not None:
            self.stream.stop_stream()
        logger.info(f"Playback paused at {self.current_time:.2f}s")

    def stop(self) -> None:
        """Stop playback, rewind and release the output stream."""
        self._playing = False
        self._finished = False
        self._release_stream()
        with self._lock:
            self._position_frames = 0

    def _release_stream(self) -> None:
        stream, self.stream = self.stream, None
        instance, self.pyaudio_instance = self.pyaudio_instance, None
        try:
            if stream is not None:
                stream.stop_stream()
                stream.close()
        finally:
            if instance is not None:
                instance.terminate()

    def _on_stream_request(self, in_data, frame_count, time_info, status_flags):
        """PortAudio callback, runs on the PortAudio thread."""
        with self._lock:
            start = self._position_frames
            end = min(start + frame_count, self.buffer.frame_count)
            self._position_frames = end
        chunk = self._interleaved[start:end] * self._volume
        if end - start < frame_count:
            chunk = np.pad(chunk, ((0, frame_count - (end - start)), (0, 0)))
        finished = end >= self.buffer.frame_count
        if finished and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._handle_ended)
        flag = pyaudio.paComplete if finished else pyaudio.paContinue
        return (chunk.astype(np.float32).tobytes(), flag)

    def _handle_ended(self) -> None:
        self._finished = True
        if not self._playing:
            return
        self._playing = False
        logger.info("Playback reached end of buffer")
        for callback in list(self._ended_callbacks):
            callback()
