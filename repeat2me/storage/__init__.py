"""Resource, file and playlist storage."""

from .resource_store import ResourceStore
from .file_manager import FileManager
from .playlist_store import JsonPlaylistStore

__all__ = [
    'ResourceStore',
    'FileManager',
    'JsonPlaylistStore',
]
