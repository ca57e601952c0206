"""Command-line entry point for kodictrl.

One-shot commands run a single asyncio session against Kodi. `watch` starts
the Qt core (worker thread plus StateStore) and prints playback changes until
interrupted.
"""

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from dataclasses import replace

from PySide6.QtCore import QCoreApplication, QTimer

from kodictrl import __version__
from kodictrl.api.client import KodiClient
from kodictrl.api.methods import Direction, InputAction
from kodictrl.api.transport import KodiTransport
from kodictrl.core.config import ConfigManager
from kodictrl.core.controller import KodiController
from kodictrl.core.state import StateStore
from kodictrl.core.synchronizer import PlayerSynchronizer
from kodictrl.core.widget_sink import SettingsWidgetSink
from kodictrl.core.worker import KodiWorker
from kodictrl.errors import InvalidEndpointError, KodiError
from kodictrl.models.endpoint import ServerEndpoint
from kodictrl.models.media_item import MediaItem
from kodictrl.models.playback import PlaybackState

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

Intent = Callable[[KodiController, argparse.Namespace], Awaitable[bool]]

_NAVIGATION = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}

_INPUT_ACTIONS = {
    "select": InputAction.SELECT,
    "back": InputAction.BACK,
    "home": InputAction.HOME,
    "info": InputAction.INFO,
    "context-menu": InputAction.CONTEXT_MENU,
}

# Commands that need the active player, discovered with one poll tick first
_PLAYER_INTENTS: dict[str, Intent] = {
    "play-pause": lambda c, _: c.toggle_play_pause(),
    "stop": lambda c, _: c.stop(),
    "forward": lambda c, _: c.seek_forward(),
    "rewind": lambda c, _: c.seek_backward(),
    "seek": lambda c, a: c.seek_to_percentage(a.percent),
}

_APPLICATION_INTENTS: dict[str, Intent] = {
    "volume": lambda c, a: c.set_volume(a.level),
    "volume-up": lambda c, _: c.volume_up(),
    "volume-down": lambda c, _: c.volume_down(),
    "mute": lambda c, _: c.toggle_mute(),
    "text": lambda c, a: c.send_text(a.text),
}


def _percent(value: str) -> int:
    """Parse an integer in 0-100 for argparse."""
    number = int(value)
    if not 0 <= number <= 100:  # noqa: PLR2004
        raise argparse.ArgumentTypeError(f"{value} is not in 0-100")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kodictrl",
        description="kodictrl - Kodi remote control",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--host", default=None, help="Kodi hostname or IP (default: saved)")
    parser.add_argument("--port", type=int, default=None, help="Kodi HTTP port (default: saved)")
    parser.add_argument(
        "--timeout", type=float, default=None, help="request timeout in seconds"
    )
    parser.add_argument(
        "--save", action="store_true", help="remember host/port/timeout for next time"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    commands.add_parser("ping", help="check that Kodi answers")
    commands.add_parser("status", help="show what is playing")
    commands.add_parser("watch", help="follow playback until Ctrl-C")
    for name in _NAVIGATION:
        commands.add_parser(name, help=f"move focus {name}")
    for name, action in _INPUT_ACTIONS.items():
        commands.add_parser(name, help=f"send Input.{action.value}")
    commands.add_parser("play-pause", help="toggle play/pause")
    commands.add_parser("stop", help="stop playback")
    commands.add_parser("forward", help="jump forward 30 seconds")
    commands.add_parser("rewind", help="jump back 30 seconds")
    seek = commands.add_parser("seek", help="jump to a position in percent")
    seek.add_argument("percent", type=_percent)
    volume = commands.add_parser("volume", help="set volume 0-100")
    volume.add_argument("level", type=_percent)
    commands.add_parser("volume-up", help="raise volume one step")
    commands.add_parser("volume-down", help="lower volume one step")
    commands.add_parser("mute", help="toggle mute")
    text = commands.add_parser("text", help="type text into the on-screen keyboard")
    text.add_argument("text")
    return parser


def resolve_endpoint(args: argparse.Namespace, config: ConfigManager) -> ServerEndpoint:
    """Combine saved settings with command-line overrides.

    Raises:
        InvalidEndpointError: If the resulting host/port is unusable.
    """
    endpoint = config.get_endpoint()
    endpoint = endpoint.with_address(
        args.host if args.host is not None else endpoint.host,
        args.port if args.port is not None else endpoint.port,
    )
    if args.timeout is not None:
        endpoint = replace(
            endpoint,
            request_timeout=args.timeout,
            probe_timeout=min(args.timeout, endpoint.probe_timeout),
        )
    endpoint.validate()
    return endpoint


def format_status(playback: PlaybackState, item: MediaItem) -> str:
    """Render one status line."""
    if not playback.has_player:
        return f"Nothing playing (volume {playback.volume})"
    state = "Playing" if playback.is_playing else "Paused"
    details = [item.title]
    if item.year:
        details.append(f"({item.year})")
    line = (
        f"{state}: {' '.join(details)} "
        f"[{playback.formatted_position} / {playback.formatted_duration}]"
    )
    if item.genre_text:
        line += f" {item.genre_text}"
    return f"{line} volume {playback.volume}"


async def run_command(
    args: argparse.Namespace,
    endpoint: ServerEndpoint,
    initial_volume: int = 50,
    transport: KodiTransport | None = None,
) -> int:
    """Run one command against Kodi.

    Args:
        args: Parsed command line.
        endpoint: Where Kodi is.
        initial_volume: Volume to assume until Kodi reports one.
        transport: Transport to use (a new one by default).

    Returns:
        Exit code (0 for success).
    """
    transport = transport or KodiTransport(endpoint)
    transport.set_event_handlers(
        on_failed=lambda e: print(e.user_message, file=sys.stderr),
    )
    async with transport:
        client = KodiClient(transport)
        sync = PlayerSynchronizer(client, initial_volume=initial_volume)
        controller = KodiController(client, sync)
        command: str = args.command

        if command == "ping":
            result = await controller.ping()
            print(result.message)
            return 0 if result else 1

        if command == "status" or command in _PLAYER_INTENTS:
            await sync.tick()
            if not sync.playback.is_connected:
                return 1
            if command == "status":
                print(format_status(sync.playback, sync.media_item))
                return 0
            if sync.active_player_id is None:
                print("Nothing is playing", file=sys.stderr)
                return 1
            ok = await _PLAYER_INTENTS[command](controller, args)
        elif command in _NAVIGATION:
            ok = await controller.navigate(_NAVIGATION[command])
        elif command in _INPUT_ACTIONS:
            ok = await controller.input_action(_INPUT_ACTIONS[command])
        else:
            ok = await _APPLICATION_INTENTS[command](controller, args)

        if ok and command.startswith("volume"):
            print(f"Volume {sync.playback.volume}")
        return 0 if ok else 1


def watch(endpoint: ServerEndpoint, config: ConfigManager) -> int:
    """Follow playback with the Qt worker until interrupted.

    Returns:
        Exit code (0 for success).
    """
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    widget_path = config.get_widget_path()
    widget_sink = SettingsWidgetSink(widget_path) if widget_path else None

    state = StateStore(endpoint)
    worker = KodiWorker(
        endpoint,
        poll_interval=config.get_poll_interval(),
        widget_sink=widget_sink,
        initial_volume=config.get_volume(),
    )

    # Connect worker signals to state store
    worker.playback_changed.connect(state.update_playback)
    worker.media_item_changed.connect(state.update_media_item)
    worker.phase_changed.connect(state.update_phase)
    worker.request_failed.connect(state.report_error)
    worker.request_completed.connect(lambda _method: state.clear_error())

    last_line = ""

    def show_status(*_: object) -> None:
        nonlocal last_line
        if state.is_loading:
            return
        line = format_status(state.playback, state.media_item)
        if line != last_line:
            print(line, flush=True)
            last_line = line

    state.playback_changed.connect(show_status)
    state.media_item_changed.connect(show_status)
    state.connection_changed.connect(
        lambda connected: print("Connected" if connected else "Disconnected", flush=True)
    )
    state.error_occurred.connect(lambda message: print(message, file=sys.stderr, flush=True))

    def shutdown() -> None:
        worker.stop()
        worker.wait(5000)
        config.set_volume(state.playback.volume)
        config.sync()

    app.aboutToQuit.connect(shutdown)

    # Let Python see SIGINT while the Qt loop runs
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    interrupt_timer = QTimer()
    interrupt_timer.timeout.connect(lambda: None)
    interrupt_timer.start(200)

    print(f"Watching Kodi at {endpoint.address} (Ctrl-C to stop)", flush=True)
    worker.start()
    return app.exec()


def main(argv: list[str] | None = None) -> int:
    """Run kodictrl.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    config = ConfigManager()
    try:
        endpoint = resolve_endpoint(args, config)
    except InvalidEndpointError as e:
        print(e.user_message, file=sys.stderr)
        return 1

    if args.save:
        config.save_endpoint(endpoint)
        config.sync()

    if args.command == "watch":
        return watch(endpoint, config)

    try:
        return asyncio.run(run_command(args, endpoint, initial_volume=config.get_volume()))
    except KeyboardInterrupt:
        return 1
    except KodiError as e:
        # Already printed by the failure handler
        logger.debug("Command failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
