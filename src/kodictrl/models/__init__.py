"""Data models for the Kodi endpoint, playback state, and current item."""

from kodictrl.models.endpoint import PingResult, ServerEndpoint
from kodictrl.models.media_item import DEFAULT_TITLE, MediaItem
from kodictrl.models.playback import (
    PlaybackState,
    PlayerPhase,
    PlayerTime,
    format_time,
    seek_percentage,
)
from kodictrl.models.widget import WidgetSnapshot

__all__ = [
    "DEFAULT_TITLE",
    "MediaItem",
    "PingResult",
    "PlaybackState",
    "PlayerPhase",
    "PlayerTime",
    "ServerEndpoint",
    "WidgetSnapshot",
    "format_time",
    "seek_percentage",
]
