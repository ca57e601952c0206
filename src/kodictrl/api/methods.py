"""Typed Kodi JSON-RPC methods.

Each method used by the client is a frozen dataclass that validates its
arguments on construction and renders its own parameter mapping, so no caller
builds parameter dicts by hand.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

_MAX_VOLUME = 100


class Direction(Enum):
    """Navigation directions (Input.<Direction>)."""

    UP = "Up"
    DOWN = "Down"
    LEFT = "Left"
    RIGHT = "Right"


class InputAction(Enum):
    """Parameterless Input.* actions besides navigation."""

    SELECT = "Select"
    BACK = "Back"
    HOME = "Home"
    CONTEXT_MENU = "ContextMenu"
    INFO = "Info"


class VolumeStep(Enum):
    """Relative volume changes understood by Application.SetVolume."""

    INCREMENT = "increment"
    DECREMENT = "decrement"


PLAYER_TIME_PROPERTIES = ("time", "totaltime", "speed")
ITEM_PROPERTIES = ("title", "year", "genre", "thumbnail")
APPLICATION_PROPERTIES = ("volume", "muted")


class RpcMethod:
    """Base for typed methods. Subclasses set `method` and override params()."""

    method: ClassVar[str] = ""

    def params(self) -> dict[str, Any]:
        """Return the JSON-RPC params mapping."""
        return {}


@dataclass(frozen=True)
class Navigate(RpcMethod):
    """Input.Up / Input.Down / Input.Left / Input.Right."""

    direction: Direction

    @property
    def method(self) -> str:  # type: ignore[override]
        """Return Input.<Direction>."""
        return f"Input.{self.direction.value}"


@dataclass(frozen=True)
class Input(RpcMethod):
    """Input.Select / Back / Home / ContextMenu / Info."""

    action: InputAction

    @property
    def method(self) -> str:  # type: ignore[override]
        """Return Input.<Action>."""
        return f"Input.{self.action.value}"


@dataclass(frozen=True)
class SendText(RpcMethod):
    """Input.SendText, always submitting the text."""

    method: ClassVar[str] = "Input.SendText"

    text: str

    def params(self) -> dict[str, Any]:
        """Return text and done flag."""
        return {"text": self.text, "done": True}


@dataclass(frozen=True)
class PlayerCommand(RpcMethod):
    """Base for Player.* methods that take only a player id."""

    player_id: int

    def __post_init__(self) -> None:
        """Reject negative ids."""
        if self.player_id < 0:
            raise ValueError(f"invalid player id {self.player_id}")

    def params(self) -> dict[str, Any]:
        """Return the player id."""
        return {"playerid": self.player_id}


@dataclass(frozen=True)
class PlayPause(PlayerCommand):
    """Player.PlayPause (toggle)."""

    method: ClassVar[str] = "Player.PlayPause"


@dataclass(frozen=True)
class Stop(PlayerCommand):
    """Player.Stop."""

    method: ClassVar[str] = "Player.Stop"


@dataclass(frozen=True)
class Seek(RpcMethod):
    """Player.Seek by relative seconds or absolute percentage.

    Exactly one of seconds/percentage must be given.
    """

    method: ClassVar[str] = "Player.Seek"

    player_id: int
    seconds: int | None = None
    percentage: int | None = None

    def __post_init__(self) -> None:
        """Validate the seek target."""
        if (self.seconds is None) == (self.percentage is None):
            raise ValueError("Seek needs exactly one of seconds or percentage")
        if self.percentage is not None and not 0 <= self.percentage <= 100:  # noqa: PLR2004
            raise ValueError(f"percentage out of range: {self.percentage}")

    def params(self) -> dict[str, Any]:
        """Return player id and seek value."""
        if self.seconds is not None:
            value: dict[str, int] = {"seconds": self.seconds}
        else:
            value = {"percentage": self.percentage or 0}
        return {"playerid": self.player_id, "value": value}


@dataclass(frozen=True)
class GetActivePlayers(RpcMethod):
    """Player.GetActivePlayers."""

    method: ClassVar[str] = "Player.GetActivePlayers"


@dataclass(frozen=True)
class GetPlayerProperties(PlayerCommand):
    """Player.GetProperties for position, duration and speed."""

    method: ClassVar[str] = "Player.GetProperties"

    def params(self) -> dict[str, Any]:
        """Return player id and requested properties."""
        return {"playerid": self.player_id, "properties": list(PLAYER_TIME_PROPERTIES)}


@dataclass(frozen=True)
class GetItem(PlayerCommand):
    """Player.GetItem with the metadata the core displays."""

    method: ClassVar[str] = "Player.GetItem"

    def params(self) -> dict[str, Any]:
        """Return player id and requested properties."""
        return {"playerid": self.player_id, "properties": list(ITEM_PROPERTIES)}


@dataclass(frozen=True)
class SetVolume(RpcMethod):
    """Application.SetVolume to an absolute level or by one step."""

    method: ClassVar[str] = "Application.SetVolume"

    volume: int | VolumeStep

    def __post_init__(self) -> None:
        """Validate absolute levels."""
        if not isinstance(self.volume, VolumeStep) and not 0 <= self.volume <= _MAX_VOLUME:
            raise ValueError(f"volume out of range: {self.volume}")

    def params(self) -> dict[str, Any]:
        """Return the volume value."""
        if isinstance(self.volume, VolumeStep):
            return {"volume": self.volume.value}
        return {"volume": self.volume}


@dataclass(frozen=True)
class ToggleMute(RpcMethod):
    """Application.SetMute toggle."""

    method: ClassVar[str] = "Application.SetMute"

    def params(self) -> dict[str, Any]:
        """Return the toggle value."""
        return {"mute": "toggle"}


@dataclass(frozen=True)
class GetApplicationProperties(RpcMethod):
    """Application.GetProperties for volume and mute state."""

    method: ClassVar[str] = "Application.GetProperties"

    def params(self) -> dict[str, Any]:
        """Return requested properties."""
        return {"properties": list(APPLICATION_PROPERTIES)}


@dataclass(frozen=True)
class Ping(RpcMethod):
    """JSONRPC.Ping, answered with "pong"."""

    method: ClassVar[str] = "JSONRPC.Ping"
