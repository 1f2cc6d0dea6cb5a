"""Track and playlist models.

These are owned by the playlist layer; the recording core only produces the
resource URLs they reference.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _clamp_volume(volume: float) -> float:
    return max(0.0, min(1.0, float(volume)))


@dataclass
class Track:
    """A playable recording."""
    id: str
    name: str
    url: str
    duration: float = 0.0
    volume: float = 1.0

    def __post_init__(self):
        self.volume = _clamp_volume(self.volume)

    @classmethod
    def create(cls, name: str, url: str, duration: float = 0.0) -> "Track":
        return cls(id=str(uuid.uuid4()), name=name, url=url, duration=duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "duration": self.duration,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            duration=data.get("duration", 0.0),
            volume=data.get("volume", 1.0),
        )


@dataclass
class Playlist:
    """Named, ordered, optionally looping list of tracks."""
    id: str
    name: str
    tracks: List[Track] = field(default_factory=list)
    is_looping: bool = False
    volume: float = 1.0

    def __post_init__(self):
        self.volume = _clamp_volume(self.volume)

    @classmethod
    def create(cls, name: str) -> "Playlist":
        return cls(id=str(uuid.uuid4()), name=name)

    def index_of(self, track_id: str) -> Optional[int]:
        for index, track in enumerate(self.tracks):
            if track.id == track_id:
                return index
        return None

    def next_index(self, current_index: int) -> Optional[int]:
        """Index of the track to play after ``current_index``.

        Wraps to the first track only when the playlist loops; returns None
        when playback should stop.
        """
        if not self.tracks:
            return None
        if current_index < len(self.tracks) - 1:
            return current_index + 1
        if self.is_looping:
            return 0
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tracks": [track.to_dict() for track in self.tracks],
            "isLooping": self.is_looping,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playlist":
        return cls(
            id=data["id"],
            name=data["name"],
            tracks=[Track.from_dict(t) for t in data.get("tracks", [])],
            is_looping=data.get("isLooping", False),
            volume=data.get("volume", 1.0),
        )
