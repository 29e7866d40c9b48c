"""Configuration manager using QSettings for persistent storage."""

import logging

from PySide6.QtCore import QSettings

from mpdlink.api.mpd import DEFAULT_PORT

logger = logging.getLogger(__name__)

# MPD
_KEY_MPD_HOST = "mpd/host"
_KEY_MPD_PORT = "mpd/port"
_KEY_MPD_POLL_INTERVAL = "mpd/poll_interval"
_KEY_MPD_RECONNECT_DELAY = "mpd/reconnect_delay"
_KEY_MPD_COMMAND_TIMEOUT = "mpd/command_timeout"

DEFAULT_HOST = "127.0.0.1"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\mpdlink\\mpdlink
    - macOS: ~/Library/Preferences/com.mpdlink.mpdlink.plist
    - Linux: ~/.config/mpdlink/mpdlink.conf

    Example:
        config = ConfigManager()
        watcher = MpdStatusWatcher(config.get_mpd_host(), config.get_mpd_port())
    """

    def __init__(self, organization: str = "mpdlink", application: str = "mpdlink") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    def _get_float(self, key: str, default: float) -> float:
        raw = self._settings.value(key, default)
        try:
            return float(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid value for %s: %r", key, raw)
            return default

    # -- MPD settings ----------------------------------------------------------

    def get_mpd_host(self) -> str:
        """Return the MPD host.

        Returns:
            Hostname or IP (default 127.0.0.1).
        """
        value = self._settings.value(_KEY_MPD_HOST, DEFAULT_HOST, str)
        return str(value) if value else DEFAULT_HOST

    def set_mpd_host(self, host: str) -> None:
        """Set the MPD host.

        Args:
            host: Hostname or IP.
        """
        self._settings.setValue(_KEY_MPD_HOST, host)

    def get_mpd_port(self) -> int:
        """Return the MPD port.

        Returns:
            Port number (default 6600).
        """
        value = self._settings.value(_KEY_MPD_PORT, DEFAULT_PORT, int)
        return max(1, min(65535, int(value)))  # type: ignore[arg-type]

    def set_mpd_port(self, port: int) -> None:
        """Set the MPD port.

        Args:
            port: Port number (1-65535).
        """
        self._settings.setValue(_KEY_MPD_PORT, max(1, min(65535, port)))

    def get_mpd_poll_interval(self) -> float:
        """Return the status poll interval in seconds.

        Returns:
            Interval in seconds (default 1.0).
        """
        return _clamp(self._get_float(_KEY_MPD_POLL_INTERVAL, 1.0), 0.1, 60.0)

    def set_mpd_poll_interval(self, seconds: float) -> None:
        """Set the status poll interval.

        Args:
            seconds: Interval in seconds (0.1-60).
        """
        self._settings.setValue(_KEY_MPD_POLL_INTERVAL, _clamp(seconds, 0.1, 60.0))

    def get_mpd_reconnect_delay(self) -> float:
        """Return the delay before each reconnect attempt.

        Returns:
            Delay in seconds (default 5.0).
        """
        return _clamp(self._get_float(_KEY_MPD_RECONNECT_DELAY, 5.0), 0.1, 300.0)

    def set_mpd_reconnect_delay(self, seconds: float) -> None:
        """Set the reconnect delay.

        Args:
            seconds: Delay in seconds (0.1-300).
        """
        self._settings.setValue(_KEY_MPD_RECONNECT_DELAY, _clamp(seconds, 0.1, 300.0))

    def get_mpd_command_timeout(self) -> float | None:
        """Return the connect/reply timeout.

        Returns:
            Timeout in seconds, or None for no timeout (the default).
        """
        value = _clamp(self._get_float(_KEY_MPD_COMMAND_TIMEOUT, 0.0), 0.0, 300.0)
        return value if value > 0 else None

    def set_mpd_command_timeout(self, seconds: float | None) -> None:
        """Set the connect/reply timeout.

        Args:
            seconds: Timeout in seconds (up to 300), or None/0 to disable.
        """
        value = _clamp(seconds, 0.0, 300.0) if seconds else 0.0
        self._settings.setValue(_KEY_MPD_COMMAND_TIMEOUT, value)

    def clear(self) -> None:
        """Clear all settings."""
        self._settings.clear()

    def sync(self) -> None:
        """Force write settings to storage."""
        self._settings.sync()
