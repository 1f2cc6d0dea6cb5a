"""Unit tests for playlist models and the JSON playlist store."""

import json
from pathlib import Path

import pytest

from repeat2me.models.playlist import Playlist, Track
from repeat2me.storage.playlist_store import JsonPlaylistStore


def _playlist(name, count, looping=False):
    playlist = Playlist.create(name)
    playlist.tracks = [Track.create(f"{name}-{i}", f"/clips/{name}-{i}.wav") for i in range(count)]
    playlist.is_looping = looping
    return playlist


@pytest.mark.unit
class TestPlaylistModel:
    """Ordering and looping."""

    def test_next_index_advances(self):
        playlist = _playlist("morning", 3)
        assert playlist.next_index(0) == 1
        assert playlist.next_index(1) == 2

    def test_last_track_stops_without_loop(self):
        assert _playlist("morning", 3).next_index(2) is None

    def test_last_track_wraps_with_loop(self):
        assert _playlist("morning", 3, looping=True).next_index(2) == 0

    def test_single_track_loop(self):
        assert _playlist("solo", 1, looping=True).next_index(0) == 0

    def test_empty_playlist(self):
        assert Playlist.create("empty").next_index(0) is None

    def test_index_of(self):
        playlist = _playlist("morning", 2)
        assert playlist.index_of(playlist.tracks[1].id) == 1
        assert playlist.index_of("nope") is None

    def test_volumes_are_clamped(self):
        assert Track("t", "n", "u", volume=1.5).volume == 1.0
        assert Playlist("p", "n", volume=-0.5).volume == 0.0

    def test_dict_round_trip_uses_camel_case_loop_key(self):
        playlist = _playlist("evening", 2, looping=True)
        playlist.volume = 0.5

        data = playlist.to_dict()

        assert data["isLooping"] is True
        assert Playlist.from_dict(data) == playlist


@pytest.mark.unit
class TestJsonPlaylistStore:
    """Persisted playlists."""

    def test_missing_file_is_empty(self, temp_data_dir):
        assert JsonPlaylistStore(Path(temp_data_dir) / "playlists.json").get_playlists() == []

    def test_set_then_get_preserves_order(self, temp_data_dir):
        store = JsonPlaylistStore(Path(temp_data_dir) / "nested" / "playlists.json")
        playlists = [_playlist("b", 1), _playlist("a", 2, looping=True)]

        store.set_playlists(playlists)

        assert store.get_playlists() == playlists
        assert not (Path(temp_data_dir) / "nested" / "playlists.json.tmp").exists()

    def test_corrupt_file_yields_empty_list(self, temp_data_dir):
        path = Path(temp_data_dir) / "playlists.json"
        path.write_text("{not json", encoding='utf-8')

        assert JsonPlaylistStore(path).get_playlists() == []

    def test_wrong_shape_yields_empty_list(self, temp_data_dir):
        path = Path(temp_data_dir) / "playlists.json"
        path.write_text(json.dumps([{"name": "no id"}]), encoding='utf-8')

        assert JsonPlaylistStore(path).get_playlists() == []

    def test_find(self, temp_data_dir):
        store = JsonPlaylistStore(Path(temp_data_dir) / "playlists.json")
        store.set_playlists([_playlist("a", 1), _playlist("b", 2)])

        assert len(store.find("b").tracks) == 2
        with pytest.raises(KeyError):
            store.find("c")
