"""Metadata of the item currently playing."""

from dataclasses import dataclass
from typing import Any, cast

DEFAULT_TITLE = "Kodi Remote"
UNKNOWN_TITLE = "Unknown Title"


@dataclass(frozen=True, slots=True)
class MediaItem:
    """Current item as reported by Player.GetItem.

    Attributes:
        title: Item title, or the placeholder when nothing plays.
        label: Kodi display label.
        year: Release year if known.
        genres: Genre names in Kodi order.
        thumbnail: Kodi image path (image://...) if any.
    """

    title: str = DEFAULT_TITLE
    label: str = ""
    year: int | None = None
    genres: tuple[str, ...] = ()
    thumbnail: str | None = None

    @property
    def genre_text(self) -> str:
        """Return genres joined for display."""
        return ", ".join(self.genres)

    @property
    def is_placeholder(self) -> bool:
        """Return True if this is the empty default item."""
        return self == MediaItem()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MediaItem":
        """Build from the `item` object of a Player.GetItem result."""
        title = data.get("title")
        label = data.get("label")
        year = data.get("year")
        thumbnail = data.get("thumbnail")

        genres: tuple[str, ...] = ()
        genre_val = data.get("genre")
        if isinstance(genre_val, list):
            genres = tuple(str(g) for g in cast(list[Any], genre_val) if g)
        elif isinstance(genre_val, str) and genre_val:
            genres = (genre_val,)

        # Kodi reports year 0 for items without one
        valid_year = isinstance(year, int) and not isinstance(year, bool) and year > 0

        return cls(
            title=str(title or label or UNKNOWN_TITLE),
            label=str(label) if label else "",
            year=year if valid_year else None,
            genres=genres,
            thumbnail=str(thumbnail) if thumbnail else None,
        )
