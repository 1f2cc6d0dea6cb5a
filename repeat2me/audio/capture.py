"""Live microphone capture session with chunk accumulation and event publishing."""

import asyncio
import errno
import pyaudio
import time
import logging
from typing import Optional, Callable
from ..errors import (
    CaptureError,
    DeviceNotFoundError,
    PermissionDeniedError,
    UnsupportedError,
)
from ..models.audio import AudioFrame, AudioStats
from ..models.events import AudioEvent, RecordingCompleteEvent
from ..models.session import CaptureState, RecordingSession
from ..storage.resource_store import ResourceStore
from .audio_pub import AudioPublisher
from .encoder import WAV_MIME_TYPE, wrap_pcm16


logger = logging.getLogger(__name__)

# PortAudio error codes reported as OSError.errno by PyAudio
PA_UNANTICIPATED_HOST_ERROR = -9999
PA_INVALID_CHANNEL_COUNT = -9998
PA_INVALID_SAMPLE_RATE = -9997
PA_INVALID_DEVICE = -9996
PA_SAMPLE_FORMAT_NOT_SUPPORTED = -9994
PA_DEVICE_UNAVAILABLE = -9985

_DEVICE_ERRORS = {PA_INVALID_DEVICE, PA_DEVICE_UNAVAILABLE}
_FORMAT_ERRORS = {PA_INVALID_CHANNEL_COUNT, PA_INVALID_SAMPLE_RATE, PA_SAMPLE_FORMAT_NOT_SUPPORTED}


def classify_stream_error(error: Exception, device_index: Optional[int] = None) -> CaptureError:
    """Map a PyAudio/PortAudio failure onto the capture error taxonomy."""
    code = getattr(error, 'errno', None)
    message = str(error)
    lowered = message.lower()

    if code in (errno.EACCES, errno.EPERM) or 'permission' in lowered or 'denied' in lowered:
        return PermissionDeniedError(f"Microphone permission denied: {message}", device_index)
    if code in _DEVICE_ERRORS or 'no default input device' in lowered:
        return DeviceNotFoundError(f"No usable input device: {message}", device_index)
    if code in _FORMAT_ERRORS:
        return UnsupportedError(f"Recording format not supported: {message}", device_index)
    return CaptureError(f"Could not open microphone stream: {message}", device_index)


RecordingCompleteCallback = Callable[[str, float], None]


class LiveCaptureSession:
    """Microphone capture driven by PyAudio's push callback.

    PortAudio delivers chunks on its own thread at its own cadence; each
    chunk is handed to the asyncio loop, so all session state is only touched
    from the loop. One session owns the hardware stream at a time.
    """

    def __init__(
        self,
        store: ResourceStore,
        on_recording_complete: Optional[RecordingCompleteCallback] = None,
        sample_rate: int = 44100,
        chunk_size: int = 1024,
        channels: int = 1,
        device_index: Optional[int] = None,
        publisher: Optional[AudioPublisher] = None,
    ):
        """Initialize capture session.

        Args:
            store: Store that receives the finished recording
            on_recording_complete: Called with (resource_url, duration_seconds)
            sample_rate: Audio sample rate
            chunk_size: Frames per PortAudio callback
            channels: Number of audio channels
            device_index: PortAudio input device, None for the default
            publisher: Optional publisher for per-chunk AudioEvents
        """
        self.store = store
        self.on_recording_complete = on_recording_complete
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.device_index = device_index
        self.format = pyaudio.paInt16
        self.publisher = publisher

        self.state = CaptureState.INACTIVE
        self.session: Optional[RecordingSession] = None
        self.total_chunks = 0
        self.start_time: Optional[float] = None

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ticker: Optional[asyncio.Task] = None

    @property
    def is_recording(self) -> bool:
        return self.state == CaptureState.RECORDING

    @property
    def elapsed_seconds(self) -> int:
        return self.session.elapsed_seconds if self.session else 0

    async def start(self) -> None:
        """Acquire the microphone and begin accumulating chunks.

        Raises:
            PermissionDeniedError: Platform refused microphone access
            DeviceNotFoundError: No input device available
            UnsupportedError: Device cannot record the requested format
            CaptureError: Any other stream failure
        """
        if self.state != CaptureState.INACTIVE:
            logger.warning(f"Capture start ignored, session is {self.state.value}")
            return

        logger.info("Requesting microphone access")
        self.state = CaptureState.REQUESTING_PERMISSION
        self._loop = asyncio.get_running_loop()
        self.session = RecordingSession()
        self.total_chunks = 0

        try:
            self.stream = self.__open_audio_stream()
        except Exception:
            self.__release_stream()
            self.session = None
            self.state = CaptureState.INACTIVE
            raise

        self.state = CaptureState.RECORDING
        self.start_time = time.time()
        self._ticker = asyncio.ensure_future(self._tick_elapsed())
        logger.info(f"Recording started: {self.sample_rate}Hz, {self.channels} ch, "
                    f"{self.chunk_size} frames/chunk")

    def __open_audio_stream(self):
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            if self.device_index is None:
                # Raises IOError when the host has no input device at all
                self.pyaudio_instance.get_default_input_device_info()
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_stream_data
            )
            stream.start_stream()
        except OSError as e:
            error = classify_stream_error(e, self.device_index)
            logger.error(f"{type(error).__name__}: {e}")
            raise error from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _on_stream_data(self, in_data, frame_count, time_info, status_flags):
        """PortAudio callback, runs on the PortAudio thread."""
        if in_data and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._accept_chunk, bytes(in_data), time.time())
        return (None, pyaudio.paContinue)

    def _accept_chunk(self, audio_chunk: bytes, timestamp: Optional[float] = None) -> None:
        """Append a chunk to the session; runs on the event loop."""
        if self.session is None or self.state not in (CaptureState.RECORDING, CaptureState.STOPPING):
            logger.debug("Dropping chunk that arrived outside a recording")
            return

        timestamp = timestamp if timestamp is not None else time.time()
        self.session.chunks.append(AudioFrame(
            data=audio_chunk,
            timestamp=timestamp,
            frame_number=self.total_chunks
        ))
        self.total_chunks += 1

        if self.publisher:
            self.publisher.publish_audio_event(AudioEvent(
                chunk_id=f"chunk_{self.total_chunks}",
                audio_data=audio_chunk,
                timestamp=timestamp,
                sequence_number=self.total_chunks,
                sample_rate=self.sample_rate,
                channels=self.channels
            ))

    async def _tick_elapsed(self) -> None:
        while True:
            await asyncio.sleep(1.0)
            if self.session is None:
                return
            self.session.elapsed_seconds += 1

    async def stop(self) -> Optional[str]:
        """Stop recording and turn the chunks into one WAV resource.

        The hardware stream is released even if finalization fails.

        Returns:
            URL of the recording, or None if no recording was in progress
        """
        if self.state != CaptureState.RECORDING:
            logger.warning("No recording in progress")
            return None

        logger.info("Stopping audio recording")
        self.state = CaptureState.STOPPING
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

        session = self.session
        try:
            self.__release_stream()
            # Let chunks already queued by the PortAudio thread land
            await asyncio.sleep(0)
            url, duration = self._finalize(session)
        finally:
            session.active = False
            self.session = None
            self.state = CaptureState.INACTIVE

        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}, duration: {duration:.2f}s")
        if self.on_recording_complete:
            self.on_recording_complete(url, duration)
        if self.publisher:
            self.publisher.publish_recording_complete(RecordingCompleteEvent(
                resource_url=url,
                duration_seconds=duration,
                sample_rate=self.sample_rate,
                channels=self.channels
            ))
        return url

    def _finalize(self, session: RecordingSession):
        pcm = session.pcm_bytes()
        frame_bytes = self.channels * 2
        # Drop a trailing partial frame
        pcm = pcm[:len(pcm) - len(pcm) % frame_bytes]
        duration = (len(pcm) // frame_bytes) / self.sample_rate
        url = self.store.create_object_url(wrap_pcm16(pcm, self.sample_rate, self.channels), WAV_MIME_TYPE)
        return url, duration

    def __release_stream(self) -> None:
        stream, self.stream = self.stream, None
        instance, self.pyaudio_instance = self.pyaudio_instance, None
        try:
            if stream is not None:
                stream.stop_stream()
                stream.close()
        except OSError as e:
            logger.error(f"Error closing audio stream: {e}")
        finally:
            if instance is not None:
                instance.terminate()
        logger.debug("Audio stream released")

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time and self.is_recording:
            duration = time.time() - self.start_time

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
            total_chunks=self.total_chunks,
            total_bytes=self.session.total_bytes if self.session else 0,
        )
