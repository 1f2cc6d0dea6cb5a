"""Pytest configuration and fixtures for Repeat2Me tests."""

import pytest
import tempfile
import logging
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
import wave

from repeat2me.models.audio import SampleBuffer
from repeat2me.storage.resource_store import ResourceStore


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware")
    config.addinivalue_line("markers", "integration: multi-component workflows with mocked hardware")
    config.addinivalue_line("markers", "hardware: needs a real microphone and speakers")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def store():
    """Empty resource store."""
    return ResourceStore()


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # 1024 samples of 16-bit mono audio (sine wave)
    sample_rate = 44100
    duration = 1024 / sample_rate
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def make_buffer():
    """Factory for SampleBuffers with a sine on every channel."""
    def _make(duration_seconds=1.0, sample_rate=44100, channels=1, freq=440.0, amplitude=0.8):
        frames = int(round(duration_seconds * sample_rate))
        t = np.arange(frames) / sample_rate
        rows = [amplitude * np.sin(2 * np.pi * freq * (c + 1) * t) for c in range(channels)]
        return SampleBuffer(samples=np.array(rows, dtype=np.float32), sample_rate=sample_rate)
    return _make


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'index': 0, 'name': 'Mock Microphone', 'maxInputChannels': 1
        }

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)  # Mono
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(44100)

        # ~2.3 seconds of audio
        for _ in range(100):
            wf.writeframes(sample_audio_chunk)

    return str(file_path)


@pytest.fixture
def config_file(temp_data_dir):
    """Minimal YAML config pointing the data directory into the temp dir."""
    path = Path(temp_data_dir) / "repeat2me.yaml"
    path.write_text(
        "audio:\n"
        "  sample_rate: 16000\n"
        "  chunk_size: 512\n"
        "storage:\n"
        "  data_directory: data\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  file_path: data/logs/test.log\n"
        "  console_output: false\n",
        encoding='utf-8'
    )
    return str(path)
