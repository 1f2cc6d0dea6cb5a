"""Clip editor: sequences decoding, trim commits and resource ownership."""

import logging
from typing import Callable, Optional

from ..audio.audio_pub import AudioPublisher
from ..audio.decoder import SampleBufferDecoder
from ..errors import DecodeError
from ..models.audio import SampleBuffer
from ..models.events import TrimCompleteEvent
from ..storage.resource_store import ResourceStore
from ..ui.trim_controller import TrimController

logger = logging.getLogger(__name__)


class ClipEditor:
    """Loads clips into a TrimController and hands committed trims to the caller.

    Each ``load`` bumps a generation counter; a decode that resolves after a
    newer load has started is discarded, so an older clip never replaces the
    one the user asked for last.
    """

    def __init__(
        self,
        decoder: SampleBufferDecoder,
        controller: TrimController,
        store: ResourceStore,
        on_trim_complete: Optional[Callable[[str], None]] = None,
        release_superseded: bool = True,
        publisher: Optional[AudioPublisher] = None,
    ):
        """Initialize clip editor.

        Args:
            decoder: Decoder for incoming resources
            controller: Trim controller to drive; its completion callback is
                taken over by the editor
            store: Store holding the editor's trim results
            on_trim_complete: Forwarded the URL of every committed trim
            release_superseded: Revoke the previous trim result when a new
                one replaces it
            publisher: Optional publisher for TrimCompleteEvents
        """
        self.decoder = decoder
        self.controller = controller
        self.store = store
        self.on_trim_complete = on_trim_complete
        self.release_superseded = release_superseded
        self.publisher = publisher

        self.current_url: Optional[str] = None
        self._generation = 0
        self._owned_url: Optional[str] = None
        self._pending_frames = (0, 0)
        self.controller.on_trim_complete = self._handle_trim_complete

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def buffer(self) -> Optional[SampleBuffer]:
        return self.controller.buffer

    async def load(self, url: str) -> Optional[SampleBuffer]:
        """Decode ``url`` and show it in the controller.

        A failed decode leaves the previous buffer and trim window untouched.

        Returns:
            The decoded buffer, or None if a newer load superseded this one

        Raises:
            DecodeError: Resource unreachable or not decodable
        """
        self._generation += 1
        generation = self._generation
        self.controller.begin_loading()
        logger.info(f"Loading {url} (generation {generation})")

        try:
            buffer = await self.decoder.decode(url)
        except DecodeError:
            if generation == self._generation:
                self.controller.end_loading()
            raise

        if generation != self._generation:
            logger.info(f"Discarding stale decode of {url} (generation {generation}, "
                        f"current {self._generation})")
            return None

        self.controller.load(buffer)
        self.current_url = url
        return buffer

    def commit(self) -> Optional[str]:
        """Apply the current trim window; see TrimController.apply_trim."""
        source = self.controller.buffer
        if source is not None:
            self._pending_frames = self.controller.trim_window.to_frames(source.frame_count)
        return self.controller.apply_trim()

    def reset(self) -> None:
        self.controller.reset()

    def _handle_trim_complete(self, url: str) -> None:
        superseded = self._owned_url
        self._owned_url = url
        self.current_url = url
        if self.release_superseded and superseded is not None:
            self.store.revoke_object_url(superseded)

        if self.publisher:
            start_frame, end_frame = self._pending_frames
            trimmed = self.controller.buffer
            self.publisher.publish_trim_complete(TrimCompleteEvent(
                resource_url=url,
                start_frame=start_frame,
                end_frame=max(end_frame, start_frame + 1),
                duration_seconds=trimmed.duration if trimmed is not None else 0.0,
            ))
        if self.on_trim_complete:
            self.on_trim_complete(url)
