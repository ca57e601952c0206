"""Playback state model and time helpers."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_SECONDS_PER_MINUTE = 60
_SECONDS_PER_HOUR = 3600
_MAX_VOLUME = 100


class PlayerPhase(Enum):
    """Synchronizer state machine phases."""

    DISCONNECTED = "disconnected"
    DISCOVERING = "discovering"
    TRACKING = "tracking"
    SEEKING = "seeking"


def format_time(seconds: float) -> str:
    """Format seconds as M:SS, or H:MM:SS when at least one hour."""
    total = max(0, int(seconds))
    hours, minutes, secs = PlayerTime.from_seconds(total).as_tuple()
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def seek_percentage(position: float, duration: float) -> int | None:
    """Convert a position into the integer percentage Player.Seek expects.

    The fraction is truncated, not rounded.

    Args:
        position: Target position in seconds.
        duration: Total duration in seconds.

    Returns:
        Percentage 0-100, or None when duration is not positive.
    """
    if duration <= 0:
        return None
    return max(0, min(100, int(position / duration * 100)))


@dataclass(frozen=True, slots=True)
class PlayerTime:
    """Kodi time object ({hours, minutes, seconds, milliseconds})."""

    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    milliseconds: int = 0

    def to_seconds(self) -> int:
        """Return whole seconds (milliseconds are ignored)."""
        return self.hours * _SECONDS_PER_HOUR + self.minutes * _SECONDS_PER_MINUTE + self.seconds

    def as_tuple(self) -> tuple[int, int, int]:
        """Return (hours, minutes, seconds)."""
        return (self.hours, self.minutes, self.seconds)

    @classmethod
    def from_seconds(cls, total: int) -> "PlayerTime":
        """Split whole seconds into hours, minutes and seconds."""
        return cls(
            hours=total // _SECONDS_PER_HOUR,
            minutes=(total % _SECONDS_PER_HOUR) // _SECONDS_PER_MINUTE,
            seconds=total % _SECONDS_PER_MINUTE,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "PlayerTime | None":
        """Parse a Kodi time object.

        Returns:
            PlayerTime, or None if data is not a mapping of integers with
            hours/minutes/seconds keys.
        """
        if not isinstance(data, dict):
            return None
        values: dict[str, int] = {}
        for key in ("hours", "minutes", "seconds"):
            value = data.get(key)
            # bool is an int subclass but never a valid time component
            if not isinstance(value, int) or isinstance(value, bool):
                return None
            values[key] = value
        millis = data.get("milliseconds", 0)
        return cls(
            hours=values["hours"],
            minutes=values["minutes"],
            seconds=values["seconds"],
            milliseconds=millis if isinstance(millis, int) else 0,
        )


@dataclass(frozen=True, slots=True)
class PlaybackState:
    """Snapshot of Kodi playback as seen by the synchronizer.

    Replaced as a whole after each poll. A missing active player forces
    position and duration to zero.

    Attributes:
        active_player_id: Kodi player id, or None when nothing is playing.
        position: Current position in seconds.
        duration: Total duration in seconds.
        is_seeking: Whether the user is scrubbing.
        volume: Application volume 0-100.
        is_connected: Whether the last request reached Kodi.
        is_loading: Whether a refresh is in flight.
        is_playing: Whether the player is running (speed != 0).
    """

    active_player_id: int | None = None
    position: float = 0.0
    duration: float = 0.0
    is_seeking: bool = False
    volume: int = 50
    is_connected: bool = False
    is_loading: bool = False
    is_playing: bool = False

    def __post_init__(self) -> None:
        """Enforce the no-player invariant and clamp volume."""
        if self.active_player_id is None:
            object.__setattr__(self, "position", 0.0)
            object.__setattr__(self, "duration", 0.0)
            object.__setattr__(self, "is_playing", False)
        if self.volume < 0 or self.volume > _MAX_VOLUME:
            clamped = max(0, min(_MAX_VOLUME, self.volume))
            logger.warning("Volume %d out of range, clamped to %d", self.volume, clamped)
            object.__setattr__(self, "volume", clamped)

    @property
    def has_player(self) -> bool:
        """Return True if a player is being tracked."""
        return self.active_player_id is not None

    @property
    def progress(self) -> float:
        """Return playback progress as a fraction (0.0 to 1.0)."""
        if self.duration <= 0:
            return 0.0
        return min(1.0, self.position / self.duration)

    @property
    def formatted_position(self) -> str:
        """Return position for display."""
        return format_time(self.position)

    @property
    def formatted_duration(self) -> str:
        """Return duration for display."""
        return format_time(self.duration)
