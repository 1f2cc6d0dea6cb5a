"""Playback coordinator: one player, playlist advancement and volume mixing."""

import asyncio
import logging
from typing import Callable, Optional

from ..audio.decoder import SampleBufferDecoder
from ..audio.playback import PcmPlayer
from ..errors import DecodeError
from ..models.playlist import Playlist, Track
from ..ui.position_tracker import PlaybackPositionTracker

logger = logging.getLogger(__name__)


class PlaybackCoordinator:
    """Plays at most one track at a time.

    When a track ends the next track of its playlist starts; after the last
    track playback wraps to the first one only if the playlist loops.
    """

    def __init__(
        self,
        decoder: SampleBufferDecoder,
        player: Optional[PcmPlayer] = None,
        on_position: Optional[Callable[[float], None]] = None,
        on_track_change: Optional[Callable[[Optional[Track]], None]] = None,
        global_volume: float = 1.0,
        frame_rate: float = 60.0,
    ):
        """Initialize playback coordinator.

        Args:
            decoder: Decoder for track URLs
            player: Output player, a PcmPlayer on the default device if None
            on_position: Receives the normalized play head while playing
            on_track_change: Called with the new current track, None on stop
            global_volume: Application-wide volume 0..1
            frame_rate: Position updates per second
        """
        self.decoder = decoder
        self.player = player if player is not None else PcmPlayer()
        self.on_position = on_position
        self.on_track_change = on_track_change
        self.frame_rate = frame_rate
        self._global_volume = max(0.0, min(1.0, float(global_volume)))

        self.current_track: Optional[Track] = None
        self.current_playlist: Optional[Playlist] = None
        self._tracker: Optional[PlaybackPositionTracker] = None
        self._pending = None
        self._generation = 0
        self.player.add_ended_callback(self._on_track_ended)

    @property
    def is_playing(self) -> bool:
        return self.player.is_playing

    @property
    def global_volume(self) -> float:
        return self._global_volume

    def effective_volume(self, track: Track, playlist: Optional[Playlist] = None) -> float:
        """Global volume scaled by the playlist and track volumes."""
        volume = self._global_volume * track.volume
        if playlist is not None:
            volume *= playlist.volume
        return max(0.0, min(1.0, volume))

    def set_global_volume(self, volume: float) -> None:
        self._global_volume = max(0.0, min(1.0, float(volume)))
        if self.current_track is not None:
            self.player.volume = self.effective_volume(self.current_track, self.current_playlist)
        logger.debug(f"Global volume set to {self._global_volume:.2f}")

    async def play(self, track: Track, playlist: Optional[Playlist] = None) -> bool:
        """Stop whatever is playing and start ``track`` from the beginning.

        A request superseded by a later ``play`` or ``stop`` while its
        track was decoding is dropped.

        Returns:
            True if the track started, False if the request was superseded

        Raises:
            DecodeError: Track resource could not be decoded
        """
        self._generation += 1
        generation = self._generation
        self._halt()
        try:
            buffer = await self.decoder.decode(track.url)
        except DecodeError:
            if generation != self._generation:
                logger.info(f"Ignoring decode failure of superseded request for '{track.name}'")
                return False
            raise

        if generation != self._generation:
            logger.info(f"Discarding stale decode of '{track.name}' (request {generation}, "
                        f"current {self._generation})")
            return False

        self.current_track = track
        self.current_playlist = playlist
        self.player.load(buffer)
        self.player.volume = self.effective_volume(track, playlist)
        self.player.play()
        self._start_tracker()
        logger.info(f"Playing '{track.name}' ({buffer.duration:.2f}s) at volume {self.player.volume:.2f}")
        if self.on_track_change:
            self.on_track_change(track)
        return True

    async def toggle(self, track: Track, playlist: Optional[Playlist] = None) -> None:
        """Pause or resume ``track`` if it is current, otherwise play it."""
        if self.current_track is not None and self.current_track.id == track.id:
            if self.player.is_playing:
                self.player.pause()
                self._stop_tracker()
            else:
                self.player.play()
                self._start_tracker()
            return
        await self.play(track, playlist)

    def stop(self) -> None:
        """Stop playback and forget the current track."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._generation += 1
        had_track = self.current_track is not None
        self._halt()
        if had_track and self.on_track_change:
            self.on_track_change(None)

    def _halt(self) -> None:
        self._stop_tracker()
        self.player.stop()
        self.current_track = None
        self.current_playlist = None

    def _start_tracker(self) -> None:
        self._stop_tracker()
        if self.on_position is None:
            return
        self._tracker = PlaybackPositionTracker(self.player, self.on_position, self.frame_rate)
        self._tracker.start()

    def _stop_tracker(self) -> None:
        if self._tracker is not None:
            self._tracker.stop()
            self._tracker = None

    def _on_track_ended(self) -> None:
        track, playlist = self.current_track, self.current_playlist
        self._stop_tracker()
        if track is None:
            return
        logger.info(f"Track '{track.name}' ended")

        next_track = None
        if playlist is not None:
            index = playlist.index_of(track.id)
            next_index = playlist.next_index(index) if index is not None else None
            if next_index is not None:
                next_track = playlist.tracks[next_index]

        if next_track is None:
            self.stop()
            return
        self._pending = asyncio.ensure_future(self._advance(next_track, playlist))

    async def _advance(self, track: Track, playlist: Playlist) -> None:
        try:
            await self.play(track, playlist)
        except DecodeError as e:
            logger.error(f"Skipping playlist after decode failure of '{track.name}': {e}")
            self._pending = None
            self.stop()
            if self.on_track_change:
                self.on_track_change(None)
        finally:
            self._pending = None
