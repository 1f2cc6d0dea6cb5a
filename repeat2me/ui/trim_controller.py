"""Trim controller: owns the trim window and turns drag gestures into updates.

States are ``idle`` and ``dragging(handle)``. A pointer-down near a handle
captures it, pointer moves update that handle while keeping the two handles
at least ``min_gap`` percent apart, and pointer-up or pointer-leave releases
it. Every accepted update redraws the waveform.
"""

import logging
import math
from typing import Callable, List, Optional

from ..audio.encoder import WAV_MIME_TYPE, encode_wav, extract_range
from ..models.audio import SampleBuffer
from ..models.trim import DragHandle, TrimState, TrimWindow
from ..storage.resource_store import ResourceStore
from .waveform import RasterCommand, WaveformRenderer, WaveformSurface

logger = logging.getLogger(__name__)

MIN_GAP = 5.0


class TrimController:
    """State machine for the two trim handles of one waveform view."""

    def __init__(
        self,
        renderer: WaveformRenderer,
        store: ResourceStore,
        surface: Optional[WaveformSurface] = None,
        on_trim_complete: Optional[Callable[[str], None]] = None,
        position_source: Optional[Callable[[], Optional[float]]] = None,
        min_gap: float = MIN_GAP,
    ):
        """Initialize trim controller.

        Args:
            renderer: Renderer used for every redraw
            store: Store that receives committed trims
            surface: Optional surface the raster commands are replayed onto
            on_trim_complete: Called with the new resource URL after a commit
            position_source: Returns the playback position while audio plays,
                None otherwise
            min_gap: Minimum distance between handles in percent
        """
        if not 0 < min_gap < 100:
            raise ValueError(f"min_gap must be between 0 and 100, got {min_gap}")
        self.renderer = renderer
        self.store = store
        self.surface = surface
        self.on_trim_complete = on_trim_complete
        self.position_source = position_source
        self.min_gap = float(min_gap)

        self._buffer: Optional[SampleBuffer] = None
        self._window = TrimWindow.full()
        self._drag_handle: Optional[DragHandle] = None
        self._loading = False
        self.last_frame: List[RasterCommand] = []
        self.redraw_count = 0

    @property
    def buffer(self) -> Optional[SampleBuffer]:
        return self._buffer

    @property
    def trim_window(self) -> TrimWindow:
        return self._window

    @property
    def drag_handle(self) -> Optional[DragHandle]:
        return self._drag_handle

    @property
    def state(self) -> TrimState:
        return TrimState.IDLE if self._drag_handle is None else TrimState.DRAGGING

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def accepts_input(self) -> bool:
        return self._buffer is not None and not self._loading

    def begin_loading(self) -> None:
        """Ignore pointer input until ``load`` or ``end_loading``."""
        self._loading = True
        self._drag_handle = None

    def end_loading(self) -> None:
        self._loading = False

    def load(self, buffer: SampleBuffer) -> None:
        """Show a new buffer with the full range selected."""
        self._buffer = buffer
        self._window = TrimWindow.full()
        self._drag_handle = None
        self._loading = False
        logger.debug(f"Trim controller loaded {buffer!r}")
        self.redraw()

    def pointer_down(self, x: float) -> Optional[DragHandle]:
        """Capture the handle near ``x``, if any."""
        if not self.accepts_input:
            return None
        handle = self.renderer.hit_test(x, self._window)
        self._drag_handle = handle
        if handle is not None:
            logger.debug(f"Dragging {handle.value} handle")
        return handle

    def pointer_move(self, x: float) -> bool:
        """Move the captured handle towards ``x``.

        Returns:
            True if the trim window changed
        """
        if self._drag_handle is None or not self.accepts_input:
            return False

        percent = self.renderer.x_to_percent(x)
        if self._drag_handle is DragHandle.START:
            candidate = self._clamp_start(percent)
            if candidate == self._window.start:
                return False
            self._window = TrimWindow(candidate, self._window.end)
        else:
            candidate = self._clamp_end(percent)
            if candidate == self._window.end:
                return False
            self._window = TrimWindow(self._window.start, candidate)

        self.redraw()
        return True

    def pointer_up(self) -> None:
        self._drag_handle = None

    def pointer_leave(self) -> None:
        self._drag_handle = None

    def _clamp_start(self, percent: float) -> float:
        end = self._window.end
        candidate = max(0.0, min(percent, end - self.min_gap))
        while end - candidate < self.min_gap and candidate > 0.0:
            candidate = max(0.0, math.nextafter(candidate, -math.inf))
        return candidate

    def _clamp_end(self, percent: float) -> float:
        start = self._window.start
        candidate = min(100.0, max(percent, start + self.min_gap))
        while candidate - start < self.min_gap and candidate < 100.0:
            candidate = min(100.0, math.nextafter(candidate, math.inf))
        return candidate

    def select(self, start: float, end: float) -> TrimWindow:
        """Set both handles at once, e.g. from command line percentages.

        Raises:
            ValueError: Window outside [0, 100] or narrower than ``min_gap``
        """
        if not 0.0 <= start < end <= 100.0 or end - start < self.min_gap:
            raise ValueError(f"Invalid trim window {start}-{end}%, handles must lie in [0, 100] "
                             f"and be at least {self.min_gap}% apart")
        self._window = TrimWindow(float(start), float(end))
        self._drag_handle = None
        if self._buffer is not None:
            self.redraw()
        return self._window

    def reset(self) -> None:
        """Select the full range again and redraw."""
        self._window = TrimWindow.full()
        self._drag_handle = None
        if self._buffer is not None:
            self.redraw()

    def redraw(self) -> List[RasterCommand]:
        """Render the current buffer and window, with the playback marker if playing."""
        position = self.position_source() if self.position_source else None
        if self.surface is not None:
            self.last_frame = self.renderer.draw(self.surface, self._buffer, self._window, position)
        else:
            self.last_frame = self.renderer.render(self._buffer, self._window, position)
        self.redraw_count += 1
        return self.last_frame

    def apply_trim(self) -> Optional[str]:
        """Commit the selection as a new WAV resource.

        The extracted buffer becomes the current buffer and the window is
        reset to the full range.

        Returns:
            URL of the new resource, or None if nothing is loaded
        """
        if not self.accepts_input:
            logger.warning("Trim requested with no audio loaded")
            return None

        source = self._buffer
        start_frame, end_frame = self._window.to_frames(source.frame_count)
        if end_frame <= start_frame:
            # Very short buffers can floor both offsets onto the same frame
            start_frame = min(start_frame, source.frame_count - 1)
            end_frame = start_frame + 1
        trimmed = extract_range(source, start_frame, end_frame)
        url = self.store.create_object_url(encode_wav(trimmed), WAV_MIME_TYPE)
        logger.info(f"Trimmed frames [{start_frame}, {end_frame}) of {source!r} "
                    f"-> {trimmed.duration:.2f}s at {url}")

        self.load(trimmed)
        if self.on_trim_complete:
            self.on_trim_complete(url)
        return url
