"""JSON-file playlist store."""

import json
import logging
from pathlib import Path
from typing import List

from ..models.playlist import Playlist

logger = logging.getLogger(__name__)


class JsonPlaylistStore:
    """Persists the ordered playlist list as a JSON array."""

    def __init__(self, path: str):
        self.path = Path(path)

    def get_playlists(self) -> List[Playlist]:
        """Load playlists; a missing or unreadable file yields an empty list."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [Playlist.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading playlists from {self.path}: {e}")
            return []

    def set_playlists(self, playlists: List[Playlist]) -> None:
        """Replace the stored playlists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump([playlist.to_dict() for playlist in playlists], f, indent=2)
        tmp_path.replace(self.path)
        logger.info(f"Saved {len(playlists)} playlists to {self.path}")

    def find(self, name: str) -> Playlist:
        """Playlist with the given name.

        Raises:
            KeyError: No playlist has that name
        """
        for playlist in self.get_playlists():
            if playlist.name == name:
                return playlist
        raise KeyError(f"Playlist not found: {name}")
