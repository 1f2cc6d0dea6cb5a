"""Decoder turning an audio resource into a SampleBuffer."""

import io
import logging
import struct
from typing import Optional

import aiohttp
import numpy as np
import soundfile as sf
from scipy.io import wavfile

from ..errors import DecodeError, ResourceNotFoundError
from ..models.audio import SampleBuffer
from ..storage.resource_store import ResourceStore

logger = logging.getLogger(__name__)


def _is_riff_wave(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b'RIFF' and data[8:12] == b'WAVE'


def _to_float(samples: np.ndarray) -> np.ndarray:
    """Scale integer PCM to float32 in [-1, 1].

    16-bit samples mirror the encoder's asymmetric quantization so that an
    encode/decode round trip stays within one quantization step.
    """
    if samples.dtype == np.int16:
        as_float = samples.astype(np.float64)
        return np.where(as_float < 0, as_float / 32768.0, as_float / 32767.0).astype(np.float32)
    if samples.dtype == np.uint8:
        return ((samples.astype(np.float32) - 128.0) / 128.0).astype(np.float32)
    if samples.dtype == np.int32:
        return (samples.astype(np.float64) / 2147483648.0).astype(np.float32)
    if np.issubdtype(samples.dtype, np.floating):
        return np.clip(samples, -1.0, 1.0).astype(np.float32)
    raise ValueError(f"Unsupported sample type: {samples.dtype}")


class SampleBufferDecoder:
    """Fetches a resource and decodes it to an immutable SampleBuffer.

    WAV payloads are parsed with scipy; other containers (FLAC, OGG, AIFF)
    go through libsndfile.
    """

    def __init__(self, store: Optional[ResourceStore] = None):
        """Initialize decoder.

        Args:
            store: Resource store used to resolve URLs
        """
        self.store = store if store is not None else ResourceStore()

    async def decode(self, url: str) -> SampleBuffer:
        """Fetch and decode the resource at ``url``.

        Raises:
            DecodeError: Resource unreachable or not decodable audio
        """
        try:
            data = await self.store.fetch(url)
        except (ResourceNotFoundError, OSError, aiohttp.ClientError) as e:
            logger.error(f"Failed to fetch audio resource {url}: {e}")
            raise DecodeError(f"Could not read audio resource: {e}", url=url) from e

        buffer = self.decode_bytes(data, url=url)
        logger.info(f"Decoded {url}: {buffer.channel_count} ch, {buffer.sample_rate} Hz, "
                    f"{buffer.duration:.2f}s")
        return buffer

    def decode_bytes(self, data: bytes, url: Optional[str] = None) -> SampleBuffer:
        """Decode an in-memory audio payload.

        Args:
            data: Encoded audio bytes
            url: Resource identifier used in error messages

        Returns:
            Decoded SampleBuffer

        Raises:
            DecodeError: Payload empty, unsupported or without frames
        """
        if not data:
            raise DecodeError("Audio resource is empty", url=url)

        try:
            if _is_riff_wave(data):
                sample_rate, samples = self._read_wav(data)
            else:
                sample_rate, samples = self._read_compressed(data)
        except (ValueError, RuntimeError, EOFError, struct.error) as e:
            logger.error(f"Failed to decode audio resource {url}: {e}")
            raise DecodeError(f"Unsupported or corrupt audio data: {e}", url=url) from e

        if samples.shape[1] == 0:
            raise DecodeError("Audio resource contains no frames", url=url)

        return SampleBuffer(samples=samples, sample_rate=sample_rate)

    def _read_wav(self, data: bytes):
        sample_rate, samples = wavfile.read(io.BytesIO(data))
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        return sample_rate, _to_float(samples).T

    def _read_compressed(self, data: bytes):
        samples, sample_rate = sf.read(io.BytesIO(data), dtype='float32', always_2d=True)
        return sample_rate, samples.T
