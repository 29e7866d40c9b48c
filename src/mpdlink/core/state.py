"""Shared status slot.

The StatusStore holds the most recent MpdStatus the watcher decoded. One
writer (the watcher thread) replaces it once per successful poll; any
number of threads may read it. The lock only guards a reference swap, so
readers never wait on network I/O.

The value is never cleared on disconnect: during an outage readers keep
seeing the last known good status. Use age() to judge how stale it is.
"""

import threading
import time

from mpdlink.api.mpd.types import MpdStatus


class StatusStore:
    """Thread-safe holder of the latest MpdStatus.

    Create one per MPD server and hand it to the watcher and to every
    consumer that needs the current status.

    Example:
        store = StatusStore()
        watcher = MpdStatusWatcher("127.0.0.1", store=store)
        watcher.start()
        ...
        status = store.read()
        if status and status.is_playing:
            ...
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._lock = threading.Lock()
        self._status: MpdStatus | None = None
        self._updated_at: float | None = None

    def publish(self, status: MpdStatus) -> None:
        """Replace the held status.

        Args:
            status: Fully decoded status from one poll cycle.
        """
        now = time.monotonic()
        with self._lock:
            self._status = status
            self._updated_at = now

    def read(self) -> MpdStatus | None:
        """Return the most recently published status, or None before the first."""
        with self._lock:
            return self._status

    @property
    def status(self) -> MpdStatus | None:
        """Return the most recently published status."""
        return self.read()

    @property
    def has_status(self) -> bool:
        """Return True once a status has been published."""
        return self.read() is not None

    def age(self) -> float | None:
        """Return seconds since the last publish, or None if never published."""
        with self._lock:
            updated_at = self._updated_at
        if updated_at is None:
            return None
        return time.monotonic() - updated_at
