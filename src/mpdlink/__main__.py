"""Main entry point: watch an MPD server and log its status."""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from mpdlink.api.mpd import MpdStatus
from mpdlink.core.config import ConfigManager
from mpdlink.core.watcher import MpdStatusWatcher, WatcherState

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser."""
    parser = argparse.ArgumentParser(
        prog="mpdlink",
        description="mpdlink - keep an MPD status snapshot fresh",
    )
    parser.add_argument("host", nargs="?", default=None, help="MPD hostname or IP")
    parser.add_argument("port", nargs="?", type=int, default=None, help="MPD port (default: 6600)")
    parser.add_argument("--interval", type=float, default=None, help="poll interval in seconds")
    parser.add_argument(
        "--reconnect-delay", type=float, default=None, help="seconds to wait before reconnecting",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="connect/reply timeout in seconds (0 = none)",
    )
    parser.add_argument("--save", action="store_true", help="store the given options as defaults")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def main() -> int:
    """Run the watcher until interrupted.

    Returns:
        Exit code (0 for success).
    """
    parsed = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    QCoreApplication.setApplicationName("mpdlink")
    QCoreApplication.setOrganizationName("mpdlink")
    app = QCoreApplication(sys.argv[:1])

    config = ConfigManager()
    if parsed.save:
        if parsed.host:
            config.set_mpd_host(parsed.host)
        if parsed.port is not None:
            config.set_mpd_port(parsed.port)
        if parsed.interval is not None:
            config.set_mpd_poll_interval(parsed.interval)
        if parsed.reconnect_delay is not None:
            config.set_mpd_reconnect_delay(parsed.reconnect_delay)
        if parsed.timeout is not None:
            config.set_mpd_command_timeout(parsed.timeout)
        config.sync()

    host = parsed.host or config.get_mpd_host()
    port = parsed.port if parsed.port is not None else config.get_mpd_port()
    interval = parsed.interval if parsed.interval is not None else config.get_mpd_poll_interval()
    delay = (
        parsed.reconnect_delay
        if parsed.reconnect_delay is not None
        else config.get_mpd_reconnect_delay()
    )
    if parsed.timeout is not None:
        timeout = parsed.timeout if parsed.timeout > 0 else None
    else:
        timeout = config.get_mpd_command_timeout()

    watcher = MpdStatusWatcher(
        host,
        port,
        poll_interval=interval,
        reconnect_delay=delay,
        timeout=timeout,
    )

    def on_status_changed(status: MpdStatus) -> None:
        if status.has_song:
            logger.info(
                "MPD %s: %s - %s (%.0f/%ds, vol %d)",
                status.state,
                status.artist or "?",
                status.title or "?",
                status.elapsed,
                status.duration,
                status.volume,
            )
        else:
            logger.info("MPD %s (vol %d)", status.state or "unknown", status.volume)

    def on_state_changed(state: WatcherState) -> None:
        logger.debug("Watcher state: %s", state.value)

    watcher.status_changed.connect(on_status_changed)
    watcher.state_changed.connect(on_state_changed)

    # Let Python handle SIGINT while Qt's loop runs
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    watcher.start()
    exit_code = app.exec()
    watcher.stop()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
