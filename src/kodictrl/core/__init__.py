"""Core logic layer.

Bridges the async Kodi API to the Qt world.

Classes:
    PlayerSynchronizer: Polls Kodi and tracks the active player.
    KodiController: Turns user intents into API calls.
    StateStore: Central state store with Qt signals.
    KodiWorker: QThread worker running the async core.
    ConfigManager: QSettings wrapper for configuration.
    SettingsWidgetSink: Shared store for the home-screen widget.
"""

from kodictrl.core.config import ConfigManager
from kodictrl.core.controller import KodiController
from kodictrl.core.state import StateStore
from kodictrl.core.synchronizer import PlayerSynchronizer
from kodictrl.core.widget_sink import SettingsWidgetSink, WidgetSnapshotSink
from kodictrl.core.worker import KodiWorker

__all__ = [
    "ConfigManager",
    "KodiController",
    "KodiWorker",
    "PlayerSynchronizer",
    "SettingsWidgetSink",
    "StateStore",
    "WidgetSnapshotSink",
]
