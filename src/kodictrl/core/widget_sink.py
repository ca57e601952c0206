"""Write-only sink for the home-screen widget snapshot.

The widget runs in another process and reads a small key-value store. The
core only writes to it; SettingsWidgetSink uses a QSettings INI file that both
processes can open.
"""

import logging
from pathlib import Path
from typing import Protocol

from PySide6.QtCore import QSettings

from kodictrl.models.widget import WidgetSnapshot

logger = logging.getLogger(__name__)

PLAYBACK_DATA_KEY = "playbackData"


class WidgetSnapshotSink(Protocol):
    """Destination for widget snapshots."""

    def write(self, snapshot: WidgetSnapshot) -> None:
        """Store the latest snapshot."""
        ...

    def clear(self) -> None:
        """Remove the stored snapshot (nothing is playing)."""
        ...


class SettingsWidgetSink:
    """Widget sink backed by a shared QSettings INI file.

    Example:
        sink = SettingsWidgetSink(Path("~/.local/share/kodictrl/widget.ini").expanduser())
        sink.write(snapshot)
        # In the widget process:
        latest = SettingsWidgetSink(same_path).load()
    """

    def __init__(self, path: Path) -> None:
        """Initialize the sink.

        Args:
            path: INI file shared with the widget process.
        """
        self._path = path
        self._settings = QSettings(str(path), QSettings.Format.IniFormat)

    @property
    def path(self) -> Path:
        """Return the backing file path."""
        return self._path

    def write(self, snapshot: WidgetSnapshot) -> None:
        """Store the snapshot as JSON and flush it for the other process."""
        self._settings.setValue(PLAYBACK_DATA_KEY, snapshot.to_json())
        self._settings.sync()

    def clear(self) -> None:
        """Remove the stored snapshot."""
        self._settings.remove(PLAYBACK_DATA_KEY)
        self._settings.sync()

    def load(self) -> WidgetSnapshot | None:
        """Read the stored snapshot (widget side).

        Returns:
            The snapshot, or None if absent or unreadable.
        """
        self._settings.sync()
        raw = self._settings.value(PLAYBACK_DATA_KEY, "", str)
        if not raw:
            return None
        try:
            return WidgetSnapshot.from_json(str(raw))
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring unreadable widget snapshot in %s: %s", self._path, e)
            return None
