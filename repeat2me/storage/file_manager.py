"""File management module for recordings and logs."""

import logging
import random
import re
import string
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List


logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


class FileManager:
    """Manages file storage for recorded and trimmed clips."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.recordings_dir = self.data_dir / "recordings"
        self.logs_dir = self.data_dir / "logs"

        # Create directory structure
        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.recordings_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    @property
    def playlists_file(self) -> Path:
        return self.data_dir / "playlists.json"

    def _unique_filename(self, name: str) -> str:
        stem = _UNSAFE_CHARS.sub('_', Path(name).stem).strip('_') or "recording"
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        return f"{stem}_{timestamp}_{random_suffix}.wav"

    def save_recording(self, audio_data: bytes, name: str = "recording") -> str:
        """Save WAV bytes under a unique file name and return the path.

        Args:
            audio_data: Complete WAV file bytes
            name: Human readable clip name used as the file stem

        Returns:
            Full path to saved audio file
        """
        audio_file_path = self.recordings_dir / self._unique_filename(name)

        try:
            audio_file_path.write_bytes(audio_data)
        except OSError as e:
            logger.error(f"Error saving audio file: {e}")
            raise

        logger.info(f"Audio file saved: {audio_file_path} ({len(audio_data)} bytes)")
        return str(audio_file_path)

    def load_recording(self, filename: str) -> bytes:
        """Read a recording by file name or path."""
        path = Path(filename)
        if not path.is_absolute() and not path.exists():
            path = self.recordings_dir / filename
        return path.read_bytes()

    def list_recordings(self) -> List[str]:
        """List all recording paths, oldest first."""
        recordings = sorted(self.recordings_dir.glob("*.wav"), key=lambda p: p.stat().st_mtime)
        logger.debug(f"Found {len(recordings)} recordings")
        return [str(path) for path in recordings]

    def delete_recording(self, filename: str) -> bool:
        """Delete a recording.

        Returns:
            True if a file was deleted
        """
        path = self.recordings_dir / Path(filename).name
        if not path.exists():
            logger.warning(f"Recording not found: {path}")
            return False
        path.unlink()
        logger.info(f"Deleted recording: {path}")
        return True

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        audio_files = 0
        for file_path in self.recordings_dir.glob("*.wav"):
            total_size += file_path.stat().st_size
            audio_files += 1

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "audio_files": audio_files,
            "data_directory": str(self.data_dir)
        }
