"""Services layer for Repeat2Me application logic."""

from .editor_service import ClipEditor
from .recording_service import RecordingService
from .playback_service import PlaybackCoordinator

__all__ = [
    "ClipEditor",
    "RecordingService",
    "PlaybackCoordinator"
]
