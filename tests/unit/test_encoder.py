"""Unit tests for the PCM WAV encoder."""

import struct

import numpy as np
import pytest

from repeat2me.audio.encoder import (
    WAV_HEADER_SIZE,
    encode_range,
    encode_wav,
    extract_range,
    interleave,
    quantize_pcm16,
)
from repeat2me.errors import RangeError
from repeat2me.models.audio import SampleBuffer


@pytest.mark.unit
class TestWavHeader:
    """Header layout of encoded files."""

    def test_mono_two_frame_header_is_bit_exact(self):
        """[0.5, -0.5] at 44100 Hz encodes to the canonical 48-byte file."""
        buffer = SampleBuffer(samples=np.array([0.5, -0.5]), sample_rate=44100)

        data = encode_wav(buffer)

        expected = (
            b'RIFF' + struct.pack('<I', 36 + 4) + b'WAVE'
            + b'fmt ' + struct.pack('<IHHIIHH', 16, 1, 1, 44100, 44100 * 2, 2, 16)
            + b'data' + struct.pack('<I', 4)
            + struct.pack('<hh', 16383, -16384)
        )
        assert data == expected
        assert len(data) == WAV_HEADER_SIZE + 4

    def test_stereo_header_fields(self, make_buffer):
        buffer = make_buffer(duration_seconds=0.01, sample_rate=22050, channels=2)

        data = encode_wav(buffer)

        channels, sample_rate, byte_rate, block_align, bits = struct.unpack('<HIIHH', data[22:36])
        assert channels == 2
        assert sample_rate == 22050
        assert byte_rate == 22050 * 2 * 2
        assert block_align == 4
        assert bits == 16
        data_size = struct.unpack('<I', data[40:44])[0]
        assert data_size == buffer.frame_count * 2 * 2
        assert struct.unpack('<I', data[4:8])[0] == 36 + data_size
        assert len(data) == WAV_HEADER_SIZE + data_size

    def test_channels_interleaved_per_frame(self):
        buffer = SampleBuffer.from_channels([[0.0, 1.0], [-1.0, 0.5]], sample_rate=8000)

        data = encode_wav(buffer)

        samples = struct.unpack('<4h', data[WAV_HEADER_SIZE:])
        assert samples == (0, -32768, 32767, 16383)


@pytest.mark.unit
class TestQuantization:
    """Asymmetric 16-bit quantization."""

    def test_extremes_are_representable(self):
        result = quantize_pcm16(np.array([-1.0, 1.0]))
        assert result.tolist() == [-32768, 32767]

    def test_out_of_range_values_are_clamped(self):
        result = quantize_pcm16(np.array([-3.0, 2.5, np.nan]))
        assert result.tolist() == [-32768, 32767, 0]

    def test_truncates_toward_zero(self):
        # 0.25 * 32767 = 8191.75 and -0.1 * 32768 = -3276.8
        result = quantize_pcm16(np.array([0.25, -0.1]))
        assert result.tolist() == [8191, -3276]

    def test_interleave_order(self):
        buffer = SampleBuffer.from_channels([[1, 2, 3], [4, 5, 6]], sample_rate=8000)
        assert interleave(buffer).tolist() == [1, 4, 2, 5, 3, 6]


@pytest.mark.unit
class TestExtractRange:
    """Frame range extraction."""

    def test_extracts_exact_frame_count(self, make_buffer):
        buffer = make_buffer(duration_seconds=0.1, sample_rate=8000, channels=2)

        result = extract_range(buffer, 100, 500)

        assert result.frame_count == 400
        assert result.channel_count == 2
        assert result.sample_rate == 8000
        np.testing.assert_array_equal(result.samples, buffer.samples[:, 100:500])

    def test_full_range_allowed(self, make_buffer):
        buffer = make_buffer(duration_seconds=0.01, sample_rate=8000)
        assert extract_range(buffer, 0, buffer.frame_count).frame_count == buffer.frame_count

    def test_result_is_independent_copy(self, make_buffer):
        buffer = make_buffer(duration_seconds=0.01, sample_rate=8000)

        result = extract_range(buffer, 10, 20)

        assert not np.shares_memory(result.samples, buffer.samples)
        assert not result.samples.flags.writeable

    @pytest.mark.parametrize("start,end", [(5, 5), (10, 5), (-1, 10), (0, 81), (80, 81)])
    def test_invalid_range_raises(self, start, end):
        buffer = SampleBuffer(samples=np.linspace(-1, 1, 80), sample_rate=8000)
        before = buffer.samples.copy()

        with pytest.raises(RangeError) as exc_info:
            extract_range(buffer, start, end)

        assert exc_info.value.frame_count == 80
        assert isinstance(exc_info.value, ValueError)
        np.testing.assert_array_equal(buffer.samples, before)

    def test_encode_range(self, make_buffer):
        buffer = make_buffer(duration_seconds=0.01, sample_rate=8000)

        data = encode_range(buffer, 0, 10)

        assert struct.unpack('<I', data[40:44])[0] == 20
