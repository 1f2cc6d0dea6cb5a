"""Core recording service that manages the record, trim and save lifecycle."""

import logging
from typing import Optional

from ..audio.audio_pub import AudioPublisher
from ..audio.buffer import LiveWaveformBuffer
from ..audio.capture import LiveCaptureSession
from ..audio.decoder import SampleBufferDecoder
from ..config import Repeat2MeConfig
from ..errors import DecodeError
from ..models.playlist import Track
from ..storage.file_manager import FileManager
from ..storage.resource_store import ResourceStore
from ..ui.trim_controller import TrimController
from ..ui.waveform import WaveformRenderer, WaveformSurface
from .editor_service import ClipEditor

logger = logging.getLogger(__name__)


class RecordingService:
    """Wires capture, decoding, trimming and storage together."""

    def __init__(
        self,
        config: Repeat2MeConfig,
        store: Optional[ResourceStore] = None,
        surface: Optional[WaveformSurface] = None,
    ):
        """Initialize recording service.

        Args:
            config: Application configuration
            store: Shared resource store
            surface: Optional surface for the editor waveform
        """
        self.config = config
        self.store = store if store is not None else ResourceStore()
        self.file_manager = FileManager(config.get_data_directory())
        self.publisher = AudioPublisher()

        sample_rate = config.get('audio.sample_rate', 44100)
        channels = config.get('audio.channels', 1)

        self.live_buffer = LiveWaveformBuffer(sample_rate=sample_rate, channels=channels)
        self.live_buffer.subscribe(self.publisher.topic)

        self.capture = LiveCaptureSession(
            store=self.store,
            on_recording_complete=self._on_recording_complete,
            sample_rate=sample_rate,
            chunk_size=config.get('audio.chunk_size', 1024),
            channels=channels,
            device_index=config.get('audio.device_index'),
            publisher=self.publisher,
        )

        renderer = WaveformRenderer(
            width=surface.width if surface else config.get('waveform.width', 800),
            height=surface.height if surface else config.get('waveform.height', 150),
            handle_width=config.get('waveform.handle_width', 16),
        )
        self.controller = TrimController(
            renderer=renderer,
            store=self.store,
            surface=surface,
            min_gap=config.get('waveform.min_gap_percent', 5.0),
        )
        self.editor = ClipEditor(SampleBufferDecoder(self.store), self.controller, self.store,
                                 publisher=self.publisher)

        self.last_recording_url: Optional[str] = None
        self.last_recording_duration = 0.0
        logger.info("RecordingService ready")

    def _on_recording_complete(self, url: str, duration_seconds: float) -> None:
        previous = self.last_recording_url
        self.last_recording_url = url
        self.last_recording_duration = duration_seconds
        if previous is not None and previous != self.editor.current_url:
            self.store.revoke_object_url(previous)
        logger.info(f"Recording complete: {url} ({duration_seconds:.2f}s)")

    async def start_recording(self) -> None:
        """Start capturing; capture errors propagate to the caller."""
        self.live_buffer.clear()
        await self.capture.start()

    async def stop_recording(self) -> Optional[str]:
        """Stop capturing and open the result in the editor.

        Returns:
            URL of the recording, or None if nothing was recording
        """
        url = await self.capture.stop()
        if url is None:
            return None
        try:
            await self.editor.load(url)
        except DecodeError as e:
            # Too short to contain a frame; the resource is still returned
            logger.warning(f"Recorded clip could not be opened for trimming: {e}")
        return url

    def save_clip(self, url: str, name: str) -> Track:
        """Write a resource to disk and describe it as a playlist Track."""
        data = self.store.read(url)
        path = self.file_manager.save_recording(data, name)
        try:
            duration = self.editor.decoder.decode_bytes(data, url).duration
        except DecodeError as e:
            logger.warning(f"Saved clip '{name}' has no playable frames: {e}")
            duration = 0.0
        track = Track.create(name=name, url=path, duration=duration)
        logger.info(f"Saved clip '{name}' to {path}")
        return track

    def shutdown(self) -> None:
        self.live_buffer.unsubscribe()
