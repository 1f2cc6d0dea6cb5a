"""Linear PCM encoder producing standalone 16-bit WAV files.

The container layout is the canonical 44-byte RIFF/WAVE header followed by
interleaved little-endian 16-bit samples. Float samples are clamped to
[-1, 1] and scaled asymmetrically (negative x32768, non-negative x32767)
then truncated toward zero, so both extremes stay representable.
"""

import io
import logging
import wave

import numpy as np

from ..errors import RangeError
from ..models.audio import SampleBuffer

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
BYTES_PER_SAMPLE = 2
WAV_MIME_TYPE = "audio/wav"


def extract_range(buffer: SampleBuffer, start_frame: int, end_frame: int) -> SampleBuffer:
    """Copy frames ``[start_frame, end_frame)`` of every channel into a new buffer.

    Args:
        buffer: Source buffer, left untouched
        start_frame: First frame to keep
        end_frame: Frame after the last one to keep

    Returns:
        New SampleBuffer of ``end_frame - start_frame`` frames

    Raises:
        RangeError: Empty range or bounds outside ``[0, frame_count]``
    """
    frame_count = buffer.frame_count
    if start_frame >= end_frame:
        raise RangeError(f"Empty trim range: start {start_frame} >= end {end_frame}",
                         start_frame, end_frame, frame_count)
    if start_frame < 0 or end_frame > frame_count:
        raise RangeError(f"Trim range [{start_frame}, {end_frame}) outside [0, {frame_count}]",
                         start_frame, end_frame, frame_count)

    # SampleBuffer copies on construction, so the slice view is not shared
    return SampleBuffer(samples=buffer.samples[:, start_frame:end_frame],
                        sample_rate=buffer.sample_rate)


def quantize_pcm16(samples: np.ndarray) -> np.ndarray:
    """Convert float samples to int16 with asymmetric scaling."""
    clamped = np.clip(np.nan_to_num(np.asarray(samples, dtype=np.float64)), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def interleave(buffer: SampleBuffer) -> np.ndarray:
    """Interleave channels frame by frame: f0c0, f0c1, ..., f1c0, ..."""
    return buffer.samples.T.reshape(-1)


def wrap_pcm16(pcm_data: bytes, sample_rate: int, channels: int) -> bytes:
    """Put already interleaved 16-bit PCM bytes into a WAV container."""
    output = io.BytesIO()
    with wave.open(output, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(BYTES_PER_SAMPLE)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm_data)
    return output.getvalue()


def encode_wav(buffer: SampleBuffer) -> bytes:
    """Encode a SampleBuffer as a 16-bit PCM WAV file.

    Args:
        buffer: Buffer to encode

    Returns:
        Complete WAV file bytes (44-byte header plus data)
    """
    pcm = quantize_pcm16(interleave(buffer)).astype('<i2', copy=False)
    data = wrap_pcm16(pcm.tobytes(), buffer.sample_rate, buffer.channel_count)
    logger.debug(f"Encoded {buffer!r} to {len(data)} WAV bytes")
    return data


def encode_range(buffer: SampleBuffer, start_frame: int, end_frame: int) -> bytes:
    """Extract ``[start_frame, end_frame)`` and encode it as WAV."""
    return encode_wav(extract_range(buffer, start_frame, end_frame))
