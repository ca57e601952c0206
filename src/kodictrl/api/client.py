"""Kodi JSON-RPC API client.

Thin typed layer over KodiTransport: one method per Kodi call the remote
uses, with results parsed into models. Player methods take an explicit
player id; tracking which player is active is the synchronizer's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, cast

from kodictrl.api import methods
from kodictrl.api.methods import Direction, InputAction, VolumeStep
from kodictrl.api.transport import KodiTransport
from kodictrl.errors import KodiError
from kodictrl.models.endpoint import PingResult
from kodictrl.models.media_item import MediaItem
from kodictrl.models.playback import PlayerTime

logger = logging.getLogger(__name__)

PONG = "pong"
_MAX_VOLUME = 100


@dataclass(frozen=True, slots=True)
class ActivePlayer:
    """An entry of Player.GetActivePlayers.

    Attributes:
        player_id: Kodi player id.
        player_type: "video", "audio" or "picture".
    """

    player_id: int
    player_type: str = ""


@dataclass(frozen=True, slots=True)
class PlayerProperties:
    """Parsed Player.GetProperties result.

    Attributes:
        time: Current position.
        total_time: Total duration.
        speed: Playback speed (0 when paused).
    """

    time: PlayerTime
    total_time: PlayerTime
    speed: int = 0

    @property
    def position(self) -> float:
        """Return position in seconds."""
        return float(self.time.to_seconds())

    @property
    def duration(self) -> float:
        """Return duration in seconds."""
        return float(self.total_time.to_seconds())

    @property
    def is_playing(self) -> bool:
        """Return True if the player is running."""
        return self.speed != 0


class KodiClient:
    """Typed Kodi JSON-RPC calls.

    Example:
        async with KodiTransport(ServerEndpoint("192.168.1.50")) as transport:
            client = KodiClient(transport)
            players = await client.get_active_players()
            if players:
                await client.play_pause(players[0].player_id)
    """

    def __init__(self, transport: KodiTransport) -> None:
        """Initialize the client.

        Args:
            transport: Transport used for every call.
        """
        self._transport = transport

    @property
    def transport(self) -> KodiTransport:
        """Return the underlying transport."""
        return self._transport

    # Input

    async def navigate(self, direction: Direction) -> Any:
        """Move the Kodi focus (Input.Up/Down/Left/Right)."""
        return await self._transport.request(methods.Navigate(direction))

    async def input_action(self, action: InputAction) -> Any:
        """Send a parameterless Input.* action (Select, Back, Home, ...)."""
        return await self._transport.request(methods.Input(action))

    async def select(self) -> Any:
        """Confirm the focused item (Input.Select)."""
        return await self.input_action(InputAction.SELECT)

    async def back(self) -> Any:
        """Go back (Input.Back)."""
        return await self.input_action(InputAction.BACK)

    async def send_text(self, text: str) -> Any:
        """Type text into the active keyboard dialog and submit it (Input.SendText)."""
        return await self._transport.request(methods.SendText(text))

    # Player

    async def play_pause(self, player_id: int) -> Any:
        """Toggle play/pause (Player.PlayPause)."""
        return await self._transport.request(methods.PlayPause(player_id))

    async def stop(self, player_id: int) -> Any:
        """Stop playback (Player.Stop)."""
        return await self._transport.request(methods.Stop(player_id))

    async def seek_relative(self, player_id: int, seconds: int) -> Any:
        """Jump by a number of seconds (Player.Seek with seconds)."""
        return await self._transport.request(methods.Seek(player_id, seconds=seconds))

    async def seek_percentage(self, player_id: int, percentage: int) -> Any:
        """Jump to an absolute percentage (Player.Seek with percentage)."""
        return await self._transport.request(methods.Seek(player_id, percentage=percentage))

    async def get_active_players(self) -> list[ActivePlayer]:
        """Return active players (Player.GetActivePlayers).

        Entries without an integer playerid are skipped.
        """
        result = await self._transport.request(methods.GetActivePlayers())
        return _parse_active_players(result)

    async def get_player_properties(self, player_id: int) -> PlayerProperties | None:
        """Return position/duration/speed (Player.GetProperties).

        Returns:
            Parsed properties, or None if time/totaltime are missing, which
            means the player is gone.
        """
        result = await self._transport.request(methods.GetPlayerProperties(player_id))
        return _parse_player_properties(result)

    async def get_item(self, player_id: int) -> MediaItem | None:
        """Return metadata of the playing item (Player.GetItem).

        Returns:
            MediaItem, or None if the result has no item object.
        """
        result = await self._transport.request(methods.GetItem(player_id))
        if isinstance(result, dict):
            item = cast(dict[str, Any], result).get("item")
            if isinstance(item, dict):
                return MediaItem.from_dict(cast(dict[str, Any], item))
        logger.warning("Player.GetItem returned no item: %r", result)
        return None

    # Application

    async def set_volume(self, volume: int) -> int | None:
        """Set absolute volume 0-100 (Application.SetVolume).

        Returns:
            The volume Kodi reports back, if any.
        """
        result = await self._transport.request(methods.SetVolume(volume))
        return _as_volume(result)

    async def step_volume(self, step: VolumeStep) -> int | None:
        """Raise or lower the volume by one step (Application.SetVolume)."""
        result = await self._transport.request(methods.SetVolume(step))
        return _as_volume(result)

    async def toggle_mute(self) -> bool | None:
        """Toggle mute (Application.SetMute).

        Returns:
            The new mute state, if Kodi reports it.
        """
        result = await self._transport.request(methods.ToggleMute())
        return result if isinstance(result, bool) else None

    async def get_volume(self) -> int | None:
        """Return the application volume (Application.GetProperties)."""
        result = await self._transport.request(methods.GetApplicationProperties())
        if isinstance(result, dict):
            return _as_volume(cast(dict[str, Any], result).get("volume"))
        return None

    # Connectivity

    async def ping(self) -> PingResult:
        """Probe Kodi with JSONRPC.Ping.

        Uses the endpoint's probe timeout and never reports to the transport
        event handlers; the caller shows the result itself.

        Returns:
            PingResult, successful only if Kodi answered "pong".
        """
        endpoint = self._transport.endpoint
        try:
            result = await self._transport.request(
                methods.Ping(),
                timeout=endpoint.probe_timeout,
                notify=False,
            )
        except KodiError as e:
            logger.info("Ping to %s failed: %s", endpoint.address, e.user_message)
            return PingResult(False, e.user_message)

        if result == PONG:
            return PingResult(True, f"Connected to Kodi at {endpoint.address}")
        logger.info("Unexpected ping reply from %s: %r", endpoint.address, result)
        return PingResult(False, f"Unexpected reply: {result!r}")


def _as_volume(value: Any) -> int | None:
    """Return value if it is a plausible volume level."""
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _MAX_VOLUME:
        return value
    return None


def _parse_active_players(result: Any) -> list[ActivePlayer]:
    """Parse Player.GetActivePlayers result.

    Kodi's response is a list like:
    [{"playerid": 1, "playertype": "internal", "type": "video"}]
    """
    if not isinstance(result, list):
        logger.warning("Player.GetActivePlayers returned %r", result)
        return []
    players: list[ActivePlayer] = []
    for entry in cast(list[Any], result):
        if not isinstance(entry, dict):
            continue
        typed = cast(dict[str, Any], entry)
        player_id = typed.get("playerid")
        if isinstance(player_id, int) and not isinstance(player_id, bool):
            players.append(ActivePlayer(player_id, str(typed.get("type", ""))))
    return players


def _parse_player_properties(result: Any) -> PlayerProperties | None:
    """Parse Player.GetProperties result.

    Expected shape:
    {"time": {"hours": 0, "minutes": 12, "seconds": 5, "milliseconds": 0},
     "totaltime": {"hours": 1, "minutes": 30, "seconds": 0, "milliseconds": 0},
     "speed": 1}
    """
    if not isinstance(result, dict):
        return None
    typed = cast(dict[str, Any], result)
    time = PlayerTime.from_dict(typed.get("time"))
    total_time = PlayerTime.from_dict(typed.get("totaltime"))
    if time is None or total_time is None:
        return None
    speed = typed.get("speed", 0)
    return PlayerProperties(
        time=time,
        total_time=total_time,
        speed=speed if isinstance(speed, int) else 0,
    )
