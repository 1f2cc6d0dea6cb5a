"""Audio decoding, encoding and capture module.

``capture`` and ``playback`` need PortAudio through PyAudio and are imported
from their modules directly.
"""

from .decoder import SampleBufferDecoder
from .encoder import encode_wav, encode_range, extract_range
from .buffer import LiveWaveformBuffer
from .audio_pub import AudioPublisher

__all__ = [
    'SampleBufferDecoder',
    'encode_wav',
    'encode_range',
    'extract_range',
    'LiveWaveformBuffer',
    'AudioPublisher',
]
