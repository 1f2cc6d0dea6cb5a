"""Data models for the Repeat2Me application."""

from .audio import SampleBuffer, AudioStats, AudioFrame
from .trim import TrimWindow, DragHandle, TrimState
from .session import RecordingSession, CaptureState
from .events import AudioEvent, RecordingCompleteEvent, TrimCompleteEvent
from .playlist import Track, Playlist

__all__ = [
    "SampleBuffer",
    "AudioStats",
    "AudioFrame",
    "TrimWindow",
    "DragHandle",
    "TrimState",
    "RecordingSession",
    "CaptureState",
    "AudioEvent",
    "RecordingCompleteEvent",
    "TrimCompleteEvent",
    "Track",
    "Playlist",
]
