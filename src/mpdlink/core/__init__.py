"""Core logic layer.

This module contains the long-running pieces that sit on top of the
async MPD client.

Classes:
    StatusStore: Thread-safe holder of the latest MPD status.
    MpdStatusWatcher: Background poller that keeps a StatusStore fresh.
    PlaybackController: Ad hoc transport commands on a separate connection.
    ConfigManager: QSettings wrapper for configuration.
"""

from mpdlink.core.config import ConfigManager
from mpdlink.core.controller import PlaybackController
from mpdlink.core.state import StatusStore
from mpdlink.core.watcher import MpdStatusWatcher, WatcherState

__all__ = [
    "ConfigManager",
    "MpdStatusWatcher",
    "PlaybackController",
    "StatusStore",
    "WatcherState",
]
