"""Reduced playback record shared with a home-screen widget process."""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from kodictrl.models.endpoint import ServerEndpoint
from kodictrl.models.media_item import MediaItem
from kodictrl.models.playback import PlaybackState, format_time


@dataclass(frozen=True, slots=True)
class WidgetSnapshot:
    """What the widget needs to render "now playing".

    Attributes:
        title: Item title.
        year: Release year if known.
        genre: Comma-joined genres, or None if there are none.
        current_time: Position in seconds.
        total_time: Duration in seconds.
        is_playing: Whether playback is running.
        thumbnail_url: Absolute image URL through Kodi's image proxy.
        last_updated: When the core wrote this snapshot (UTC).
    """

    title: str
    year: int | None = None
    genre: str | None = None
    current_time: float = 0.0
    total_time: float = 0.0
    is_playing: bool = False
    thumbnail_url: str | None = None
    last_updated: datetime | None = None

    @property
    def progress_percentage(self) -> float:
        """Return progress 0-100."""
        if self.total_time <= 0:
            return 0.0
        return self.current_time / self.total_time * 100

    @property
    def formatted_current_time(self) -> str:
        """Return current time for display."""
        return format_time(self.current_time)

    @property
    def formatted_total_time(self) -> str:
        """Return total time for display."""
        return format_time(self.total_time)

    @classmethod
    def from_state(
        cls,
        playback: PlaybackState,
        item: MediaItem,
        endpoint: ServerEndpoint,
        now: datetime | None = None,
    ) -> "WidgetSnapshot":
        """Derive a snapshot from the synchronizer's state."""
        return cls(
            title=item.title,
            year=item.year,
            genre=item.genre_text or None,
            current_time=playback.position,
            total_time=playback.duration,
            is_playing=playback.is_playing,
            thumbnail_url=endpoint.image_url(item.thumbnail),
            last_updated=now or datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "title": self.title,
            "year": self.year,
            "genre": self.genre,
            "currentTime": self.current_time,
            "totalTime": self.total_time,
            "isPlaying": self.is_playing,
            "thumbnailURL": self.thumbnail_url,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }

    def to_json(self) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WidgetSnapshot":
        """Create from a dict produced by to_dict()."""
        updated = data.get("lastUpdated")
        return cls(
            title=str(data.get("title", "")),
            year=data.get("year"),
            genre=data.get("genre"),
            current_time=float(data.get("currentTime", 0.0)),
            total_time=float(data.get("totalTime", 0.0)),
            is_playing=bool(data.get("isPlaying", False)),
            thumbnail_url=data.get("thumbnailURL"),
            last_updated=datetime.fromisoformat(updated) if updated else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "WidgetSnapshot":
        """Deserialize from a JSON string.

        Raises:
            ValueError: If text is not a JSON object.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("widget snapshot must be a JSON object")
        return cls.from_dict(data)
