"""Main application entry point for Repeat2Me."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .audio.decoder import SampleBufferDecoder
from .config import Repeat2MeConfig
from .errors import CaptureError, Repeat2MeError
from .models.playlist import Playlist, Track
from .storage.file_manager import FileManager
from .storage.playlist_store import JsonPlaylistStore
from .storage.resource_store import ResourceStore
from .ui.terminal_surface import TerminalSurface
from .ui.trim_controller import TrimController
from .ui.waveform import RenderMode, WaveformRenderer

logger = logging.getLogger(__name__)

PREVIEW_HEIGHT = 12
COMPACT_HEIGHT = 4


class App:
    """Command line front end over the recording, trim and playback services."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = Repeat2MeConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

        self.console = Console()
        self.store = ResourceStore()
        self.decoder = SampleBufferDecoder(self.store)
        self.file_manager = FileManager(self.config.get_data_directory())
        self.playlists = JsonPlaylistStore(str(self.file_manager.playlists_file))

    def _surface(self, compact: bool) -> TerminalSurface:
        # Leave room for the panel border
        width = max(10, min(self.console.width - 4, self.config.get('waveform.width', 800)))
        return TerminalSurface(width, COMPACT_HEIGHT if compact else PREVIEW_HEIGHT)

    def _controller(self, surface: TerminalSurface, compact: bool = False) -> TrimController:
        renderer = WaveformRenderer(
            width=surface.width,
            height=surface.height,
            mode=RenderMode.COMPACT if compact else RenderMode.FULL,
            # One terminal cell per pixel, so handles shrink to a single column
            handle_width=1,
        )
        return TrimController(
            renderer=renderer,
            store=self.store,
            surface=surface,
            min_gap=self.config.get('waveform.min_gap_percent', 5.0),
        )

    async def record(self, duration: Optional[float], name: str) -> str:
        from .services.recording_service import RecordingService

        surface = self._surface(compact=True)
        service = RecordingService(self.config, store=self.store, surface=surface)
        service.controller.renderer.mode = RenderMode.COMPACT
        await service.start_recording()

        self.console.print("[bold red]● Recording[/bold red] (Ctrl+C to stop)")
        try:
            if duration:
                await asyncio.sleep(duration)
            else:
                while True:
                    await asyncio.sleep(1)
        except asyncio.CancelledError:
            logger.info("Recording interrupted")
        finally:
            url = await service.stop_recording()
            service.shutdown()

        if url is None:
            raise Repeat2MeError("Recording produced no audio")
        track = service.save_clip(url, name)
        self.console.print(surface)
        self.console.print(f"Saved [bold]{track.name}[/bold] "
                           f"({service.last_recording_duration:.2f}s) to {track.url}")
        return track.url

    async def preview(self, file: str, compact: bool, start: Optional[float], end: Optional[float]) -> None:
        surface = self._surface(compact)
        controller = self._controller(surface, compact)
        buffer = await self.decoder.decode(file)
        controller.load(buffer)
        if start is not None or end is not None:
            controller.select(start if start is not None else 0.0, end if end is not None else 100.0)

        window = controller.trim_window
        start_frame, end_frame = window.to_frames(buffer.frame_count)
        self.console.print(Panel(
            surface,
            title=Path(file).name,
            subtitle=f"{buffer.duration:.2f}s, {buffer.sample_rate}Hz, {buffer.channel_count} ch",
            expand=False,
        ))
        if not compact:
            self.console.print(f"Selection {window.start:.1f}%-{window.end:.1f}% "
                               f"= frames [{start_frame}, {end_frame}), "
                               f"{(end_frame - start_frame) / buffer.sample_rate:.2f}s")

    async def trim(self, file: str, start: float, end: float, output: Optional[str]) -> str:
        surface = self._surface(compact=False)
        controller = self._controller(surface)
        controller.load(await self.decoder.decode(file))
        controller.select(start, end)

        url = controller.apply_trim()
        data = self.store.read(url)
        if output:
            path = Path(output)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            saved = str(path)
        else:
            saved = self.file_manager.save_recording(data, f"{Path(file).stem}_trim")
        self.store.revoke_object_url(url)

        self.console.print(surface)
        self.console.print(f"Trimmed to {controller.buffer.duration:.2f}s, written to {saved}")
        return saved

    async def play(self, files: List[str], playlist_name: Optional[str], loop: bool) -> None:
        from rich.progress import BarColumn, Progress, TextColumn
        from .services.playback_service import PlaybackCoordinator

        if playlist_name:
            playlist = self.playlists.find(playlist_name)
            if loop:
                playlist.is_looping = True
        else:
            playlist = Playlist.create("command line")
            playlist.tracks = [Track.create(name=Path(f).stem, url=f) for f in files]
            playlist.is_looping = loop
        if not playlist.tracks:
            raise Repeat2MeError(f"Nothing to play in '{playlist.name}'")

        finished = asyncio.Event()
        with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
                      console=self.console) as progress:
            task = progress.add_task("", total=1.0)

            def on_track_change(track: Optional[Track]) -> None:
                if track is None:
                    finished.set()
                else:
                    progress.update(task, description=track.name, completed=0.0)

            coordinator = PlaybackCoordinator(
                self.decoder,
                on_position=lambda position: progress.update(task, completed=position),
                on_track_change=on_track_change,
                global_volume=self.config.get('playback.global_volume', 1.0),
                frame_rate=self.config.get('playback.frame_rate', 60),
            )
            try:
                await coordinator.play(playlist.tracks[0], playlist)
                await finished.wait()
            finally:
                coordinator.stop()

    def playlist(self, action: str, name: Optional[str], value: Optional[str]) -> None:
        playlists = self.playlists.get_playlists()

        if action == "list":
            table = Table(title="Playlists")
            table.add_column("Name", style="cyan")
            table.add_column("Tracks", justify="right")
            table.add_column("Volume", justify="right")
            table.add_column("Loop")
            for playlist in playlists:
                table.add_row(playlist.name, str(len(playlist.tracks)),
                              f"{playlist.volume:.2f}", "yes" if playlist.is_looping else "no")
            self.console.print(table)
            return

        if not name:
            raise ValueError(f"playlist {action} needs a playlist name")

        if action == "create":
            if any(p.name == name for p in playlists):
                raise ValueError(f"Playlist already exists: {name}")
            playlists.append(Playlist.create(name))
        else:
            playlist = next((p for p in playlists if p.name == name), None)
            if playlist is None:
                raise KeyError(f"Playlist not found: {name}")
            if action == "add":
                if not value:
                    raise ValueError("playlist add needs a file")
                duration = asyncio.run(self.decoder.decode(value)).duration
                playlist.tracks.append(Track.create(name=Path(value).stem, url=str(Path(value).absolute()),
                                                    duration=duration))
            elif action == "volume":
                if value is None:
                    raise ValueError("playlist volume needs a value between 0 and 1")
                playlist.volume = max(0.0, min(1.0, float(value)))
            elif action == "loop":
                playlist.is_looping = not playlist.is_looping

        self.playlists.set_playlists(playlists)
        self.console.print(f"Playlist '{name}' updated")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/repeat2me.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Repeat2Me application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repeat2me",
        description="Repeat2Me - record, trim and loop spoken affirmations"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Repeat2Me v{__version__}"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    record = commands.add_parser("record", help="Record a clip from the microphone")
    record.add_argument("--duration", type=float, help="Seconds to record (default: until Ctrl+C)")
    record.add_argument("--name", type=str, default="recording", help="Clip name")

    preview = commands.add_parser("preview", help="Show the waveform of an audio file")
    preview.add_argument("file")
    preview.add_argument("--compact", action="store_true", help="Waveform only, no trim overlay")
    preview.add_argument("--start", type=float, help="Selection start in percent")
    preview.add_argument("--end", type=float, help="Selection end in percent")

    trim = commands.add_parser("trim", help="Keep a percentage range of an audio file")
    trim.add_argument("file")
    trim.add_argument("--start", type=float, required=True, help="Start in percent")
    trim.add_argument("--end", type=float, required=True, help="End in percent")
    trim.add_argument("--output", type=str, help="Output WAV path (default: data directory)")

    play = commands.add_parser("play", help="Play files or a saved playlist")
    play.add_argument("files", nargs="*")
    play.add_argument("--playlist", type=str, help="Name of a saved playlist")
    play.add_argument("--loop", action="store_true", help="Restart from the first track after the last")

    playlist = commands.add_parser("playlist", help="Manage saved playlists")
    playlist.add_argument("action", choices=["list", "create", "add", "volume", "loop"])
    playlist.add_argument("name", nargs="?")
    playlist.add_argument("value", nargs="?", help="File for 'add', volume 0..1 for 'volume'")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for Repeat2Me application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "play" and not args.files and not args.playlist:
        parser.error("play needs files or --playlist")

    try:
        app = App(args.config, args.log_level)
        if args.command == "record":
            asyncio.run(app.record(args.duration, args.name))
        elif args.command == "preview":
            asyncio.run(app.preview(args.file, args.compact, args.start, args.end))
        elif args.command == "trim":
            asyncio.run(app.trim(args.file, args.start, args.end, args.output))
        elif args.command == "play":
            asyncio.run(app.play(args.files, args.playlist, args.loop))
        elif args.command == "playlist":
            app.playlist(args.action, args.name, args.value)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except CaptureError as e:
        print(f"❌ {e.user_message}")
        logging.error(f"Capture error: {e}")
        sys.exit(1)
    except (Repeat2MeError, ValueError, KeyError, OSError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
