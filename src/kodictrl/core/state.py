"""Central state store with Qt signals for reactive UI updates.

The StateStore mirrors the synchronizer's snapshots on the Qt owner thread
and emits signals when they change. UI layers connect to these signals; the
core never calls into the UI.
"""

import logging

from PySide6.QtCore import QObject, Signal

from kodictrl.models.endpoint import ServerEndpoint
from kodictrl.models.media_item import MediaItem
from kodictrl.models.playback import PlaybackState, PlayerPhase

logger = logging.getLogger(__name__)


class StateStore(QObject):
    """Observable playback, item, connection and error state.

    Updates arrive through queued signal connections from the worker thread,
    so every slot here runs on the thread that owns the store.

    Example:
        state = StateStore()
        state.playback_changed.connect(lambda p: print(p.formatted_position))
        state.error_occurred.connect(show_banner)
        worker.playback_changed.connect(state.update_playback)
    """

    # Snapshot signals
    playback_changed = Signal(object)  # PlaybackState
    media_item_changed = Signal(object)  # MediaItem
    phase_changed = Signal(object)  # PlayerPhase

    # Derived flags
    connection_changed = Signal(bool)
    loading_changed = Signal(bool)

    # Error channel
    error_occurred = Signal(str)
    error_cleared = Signal()

    def __init__(self, endpoint: ServerEndpoint | None = None) -> None:
        """Initialize the store with empty state.

        Args:
            endpoint: Endpoint used to build thumbnail URLs.
        """
        super().__init__()
        self._endpoint = endpoint or ServerEndpoint()
        self._playback = PlaybackState()
        self._media_item = MediaItem()
        self._phase = PlayerPhase.DISCONNECTED
        self._error_message = ""

    @property
    def endpoint(self) -> ServerEndpoint:
        """Return the endpoint the store reflects."""
        return self._endpoint

    @property
    def playback(self) -> PlaybackState:
        """Return the latest playback snapshot."""
        return self._playback

    @property
    def media_item(self) -> MediaItem:
        """Return the latest item snapshot."""
        return self._media_item

    @property
    def phase(self) -> PlayerPhase:
        """Return the synchronizer phase."""
        return self._phase

    @property
    def is_connected(self) -> bool:
        """Return True if the last request reached Kodi."""
        return self._playback.is_connected

    @property
    def is_loading(self) -> bool:
        """Return True while a refresh is in flight."""
        return self._playback.is_loading

    @property
    def has_error(self) -> bool:
        """Return True if an error message is pending."""
        return bool(self._error_message)

    @property
    def error_message(self) -> str:
        """Return the pending error message, or empty string."""
        return self._error_message

    @property
    def thumbnail_url(self) -> str | None:
        """Return the image URL of the current item's thumbnail."""
        return self._endpoint.image_url(self._media_item.thumbnail)

    def set_endpoint(self, endpoint: ServerEndpoint) -> None:
        """Record a new endpoint after settings were applied."""
        self._endpoint = endpoint

    def update_playback(self, playback: PlaybackState) -> None:
        """Replace the playback snapshot and emit changes.

        Args:
            playback: New snapshot from the synchronizer.
        """
        old = self._playback
        if playback == old:
            return
        self._playback = playback

        self.playback_changed.emit(playback)
        if playback.is_connected != old.is_connected:
            self.connection_changed.emit(playback.is_connected)
        if playback.is_loading != old.is_loading:
            self.loading_changed.emit(playback.is_loading)

    def update_media_item(self, item: MediaItem) -> None:
        """Replace the item snapshot and emit if it changed."""
        if item == self._media_item:
            return
        self._media_item = item
        self.media_item_changed.emit(item)

    def update_phase(self, phase: PlayerPhase) -> None:
        """Record the synchronizer phase."""
        if phase is self._phase:
            return
        self._phase = phase
        self.phase_changed.emit(phase)

    def report_error(self, message: str) -> None:
        """Publish a user-visible error message."""
        logger.debug("Error reported: %s", message)
        self._error_message = message
        self.error_occurred.emit(message)

    def clear_error(self) -> None:
        """Dismiss the pending error message."""
        if not self._error_message:
            return
        self._error_message = ""
        self.error_cleared.emit()

    def clear(self) -> None:
        """Reset to the empty state (worker stopped)."""
        was_connected = self.is_connected
        self._playback = PlaybackState(volume=self._playback.volume)
        self._media_item = MediaItem()
        self.playback_changed.emit(self._playback)
        self.media_item_changed.emit(self._media_item)
        self.update_phase(PlayerPhase.DISCONNECTED)
        if was_connected:
            self.connection_changed.emit(False)
