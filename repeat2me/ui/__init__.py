"""Waveform views and interaction controllers."""

from .waveform import WaveformRenderer, WaveformSurface, RenderMode, FillRect, Line
from .trim_controller import TrimController, MIN_GAP
from .position_tracker import PlaybackPositionTracker
from .terminal_surface import TerminalSurface

__all__ = [
    'WaveformRenderer',
    'WaveformSurface',
    'RenderMode',
    'FillRect',
    'Line',
    'TrimController',
    'MIN_GAP',
    'PlaybackPositionTracker',
    'TerminalSurface',
]
