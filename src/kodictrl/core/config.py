"""Configuration manager using QSettings for persistent storage."""

import logging
from pathlib import Path

from PySide6.QtCore import QSettings

from kodictrl.models.endpoint import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    ServerEndpoint,
)

logger = logging.getLogger(__name__)

# Connection
_KEY_HOST = "connection/host"
_KEY_PORT = "connection/port"
_KEY_REQUEST_TIMEOUT = "connection/request_timeout"
_KEY_PROBE_TIMEOUT = "connection/probe_timeout"

# Playback
_KEY_VOLUME = "playback/volume"

# Polling
_KEY_POLL_INTERVAL = "polling/interval"

# Widget
_KEY_WIDGET_PATH = "widget/path"

DEFAULT_VOLUME = 50
DEFAULT_POLL_INTERVAL = 2


def _clamp(value: object, default: float, low: float, high: float) -> float:
    """Coerce a stored value to a number within [low, high]."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\kodictrl\\kodictrl
    - macOS: ~/Library/Preferences/com.kodictrl.kodictrl.plist
    - Linux: ~/.config/kodictrl/kodictrl.conf

    Example:
        config = ConfigManager()
        endpoint = config.get_endpoint()
        config.save_endpoint(endpoint.with_address("192.168.1.50", 8080))
    """

    def __init__(
        self,
        organization: str = "kodictrl",
        application: str = "kodictrl",
        path: Path | None = None,
    ) -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
            path: Explicit INI file instead of the platform location.
        """
        if path is not None:
            self._settings = QSettings(str(path), QSettings.Format.IniFormat)
        else:
            self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Connection settings ---------------------------------------------------

    def get_host(self) -> str:
        """Return the Kodi host.

        Returns:
            Host string (default "localhost").
        """
        value = self._settings.value(_KEY_HOST, DEFAULT_HOST, str)
        return str(value).strip() if value else DEFAULT_HOST

    def set_host(self, host: str) -> None:
        """Set the Kodi host.

        Args:
            host: Hostname or IP address.
        """
        self._settings.setValue(_KEY_HOST, host.strip())

    def get_port(self) -> int:
        """Return the Kodi HTTP port.

        Returns:
            Port number (default 8080).
        """
        value = self._settings.value(_KEY_PORT, DEFAULT_PORT, int)
        return int(_clamp(value, DEFAULT_PORT, 1, 65535))

    def set_port(self, port: int) -> None:
        """Set the Kodi HTTP port.

        Args:
            port: Port number (1-65535).
        """
        self._settings.setValue(_KEY_PORT, max(1, min(65535, port)))

    def get_request_timeout(self) -> float:
        """Return the command timeout in seconds (default 10)."""
        value = self._settings.value(_KEY_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT, float)
        return _clamp(value, DEFAULT_REQUEST_TIMEOUT, 1.0, 60.0)

    def set_request_timeout(self, seconds: float) -> None:
        """Set the command timeout (1-60 seconds)."""
        self._settings.setValue(_KEY_REQUEST_TIMEOUT, max(1.0, min(60.0, seconds)))

    def get_probe_timeout(self) -> float:
        """Return the connectivity probe timeout in seconds (default 5)."""
        value = self._settings.value(_KEY_PROBE_TIMEOUT, DEFAULT_PROBE_TIMEOUT, float)
        return _clamp(value, DEFAULT_PROBE_TIMEOUT, 1.0, 30.0)

    def set_probe_timeout(self, seconds: float) -> None:
        """Set the connectivity probe timeout (1-30 seconds)."""
        self._settings.setValue(_KEY_PROBE_TIMEOUT, max(1.0, min(30.0, seconds)))

    def get_endpoint(self) -> ServerEndpoint:
        """Build the endpoint from stored values, with defaults for unset keys."""
        return ServerEndpoint(
            host=self.get_host(),
            port=self.get_port(),
            request_timeout=self.get_request_timeout(),
            probe_timeout=self.get_probe_timeout(),
        )

    def save_endpoint(self, endpoint: ServerEndpoint) -> None:
        """Persist host, port and timeouts.

        Args:
            endpoint: Endpoint to save.
        """
        self.set_host(endpoint.host)
        self.set_port(endpoint.port)
        self.set_request_timeout(endpoint.request_timeout)
        self.set_probe_timeout(endpoint.probe_timeout)
        logger.info("Saved Kodi endpoint %s", endpoint.address)

    # -- Playback settings -----------------------------------------------------

    def get_volume(self) -> int:
        """Return the last known volume.

        Returns:
            Volume 0-100 (default 50).
        """
        value = self._settings.value(_KEY_VOLUME, DEFAULT_VOLUME, int)
        return int(_clamp(value, DEFAULT_VOLUME, 0, 100))

    def set_volume(self, volume: int) -> None:
        """Remember the volume.

        Args:
            volume: Volume 0-100.
        """
        self._settings.setValue(_KEY_VOLUME, max(0, min(100, volume)))

    # -- Polling settings ------------------------------------------------------

    def get_poll_interval(self) -> int:
        """Return the poll interval in seconds.

        Returns:
            Interval in seconds (default 2).
        """
        value = self._settings.value(_KEY_POLL_INTERVAL, DEFAULT_POLL_INTERVAL, int)
        return int(_clamp(value, DEFAULT_POLL_INTERVAL, 1, 30))

    def set_poll_interval(self, seconds: int) -> None:
        """Set the poll interval.

        Args:
            seconds: Interval in seconds (1-30).
        """
        self._settings.setValue(_KEY_POLL_INTERVAL, max(1, min(30, seconds)))

    # -- Widget settings -------------------------------------------------------

    def get_widget_path(self) -> Path | None:
        """Return the shared widget snapshot file, or None if disabled."""
        value = self._settings.value(_KEY_WIDGET_PATH, "", str)
        return Path(str(value)).expanduser() if value else None

    def set_widget_path(self, path: Path | None) -> None:
        """Set the shared widget snapshot file (None disables it)."""
        self._settings.setValue(_KEY_WIDGET_PATH, str(path) if path else "")

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
