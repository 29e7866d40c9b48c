"""MPD status watcher.

This module provides a Qt-integrated watcher that keeps a StatusStore fresh.
It runs an asyncio event loop in a background thread and cycles through:

    DISCONNECTED -> CONNECTING -> POLLING -> (on failure) DISCONNECTED

Every failure is logged and turned into a reconnect after a fixed delay.
The loop never gives up; it only ends when its stop event is set.

Polls start on a fixed tick: the time a poll took is subtracted from the
following wait. A poll that overruns the interval is followed by the next
one at once, without catching up on missed ticks.
"""

import asyncio
import enum
import logging
import threading
import time
from collections.abc import Callable

from PySide6.QtCore import QObject, Signal

from mpdlink.api.mpd import DEFAULT_PORT, CommandError, ConnectError, MpdClient, MpdStatus
from mpdlink.core.state import StatusStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_RECONNECT_DELAY = 5.0  # seconds
_SLEEP_SLICE = 0.1  # seconds

ClientFactory = Callable[[], MpdClient]


class WatcherState(enum.Enum):
    """Connection state of the watcher loop."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    POLLING = "polling"
    STOPPED = "stopped"


class MpdStatusWatcher(QObject):
    """Poll MPD status and publish it into a StatusStore.

    The watcher's client is private to its thread. Consumers read the
    store, or connect to the signals below.

    Example:
        store = StatusStore()
        watcher = MpdStatusWatcher("192.168.1.100", store=store)
        watcher.status_changed.connect(lambda s: print(f"MPD: {s.state}"))
        watcher.start()
    """

    # Emitted on every state machine transition
    # Parameter: WatcherState
    state_changed = Signal(object)

    # Emitted on connection state change
    # Parameter: bool (True = connected)
    connection_changed = Signal(bool)

    # Emitted when a polled status differs from the previous one
    # Parameter: MpdStatus
    status_changed = Signal(object)

    # Emitted on connect or poll failure
    # Parameter: str (error message)
    error_occurred = Signal(str)

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        store: StatusStore | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        timeout: float | None = None,
        client_factory: ClientFactory | None = None,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            store: Store to publish into; a new one is created if omitted.
            poll_interval: Seconds between status polls.
            reconnect_delay: Seconds to wait before each reconnect attempt.
            timeout: Optional connect/reply timeout for the watcher's client.
            client_factory: Builds the client for each connection attempt.
                Defaults to MpdClient(host, port, timeout).
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._host = host
        self._port = port
        self._store = store if store is not None else StatusStore()
        self._poll_interval = poll_interval
        self._reconnect_delay = reconnect_delay
        self._timeout = timeout
        self._client_factory = client_factory

        self._state = WatcherState.DISCONNECTED
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_status: MpdStatus | None = None

    @property
    def host(self) -> str:
        """Return the MPD host."""
        return self._host

    @property
    def port(self) -> int:
        """Return the MPD port."""
        return self._port

    @property
    def store(self) -> StatusStore:
        """Return the store this watcher publishes into."""
        return self._store

    @property
    def state(self) -> WatcherState:
        """Return the current state machine state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Return True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def set_poll_interval(self, seconds: float) -> None:
        """Update the poll interval; applies from the next tick."""
        self._poll_interval = seconds

    def start(self) -> None:
        """Start the watcher thread.

        No-op if already running, including a thread that was asked to stop
        but has not finished yet; the store only ever has one writer.
        """
        if self._thread is not None and self._thread.is_alive():
            if self._stop_event.is_set():
                logger.warning(
                    "MpdStatusWatcher for %s:%d is still shutting down; not restarting",
                    self._host,
                    self._port,
                )
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=f"mpd-watcher-{self._host}:{self._port}",
            daemon=True,
        )
        self._thread.start()
        logger.info("MpdStatusWatcher started for %s:%d", self._host, self._port)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the watcher and wait for its thread to finish.

        A thread blocked in an unbounded read only notices the stop once
        the read returns; join() gives up after timeout seconds. Such a
        thread stays tracked (is_running keeps returning True) and discards
        the status it was reading.
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(
                    "MpdStatusWatcher for %s:%d did not stop within %.1fs",
                    self._host,
                    self._port,
                    timeout,
                )
                return
            self._thread = None
            logger.info("MpdStatusWatcher stopped")

    def _run_loop(self) -> None:
        """Background thread: run asyncio event loop."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self.run(self._stop_event))
        finally:
            loop.close()

    def _make_client(self) -> MpdClient:
        if self._client_factory is not None:
            return self._client_factory()
        return MpdClient(self._host, self._port, timeout=self._timeout)

    def _set_state(self, state: WatcherState) -> None:
        if state is self._state:
            return
        logger.debug("MPD watcher: %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)

    async def run(self, stop_event: threading.Event) -> None:
        """Run the reconnect/poll state machine until stop_event is set.

        The first connection attempt is immediate; every retry waits
        reconnect_delay first.

        Args:
            stop_event: Cancellation token checked at each transition.
        """
        first_attempt = True
        while not stop_event.is_set():
            if not first_attempt:
                self._set_state(WatcherState.DISCONNECTED)
                await self._sleep_interruptible(self._reconnect_delay, stop_event)
                if stop_event.is_set():
                    break
            first_attempt = False

            self._set_state(WatcherState.CONNECTING)
            client = self._make_client()
            try:
                await client.connect()
            except ConnectError as e:
                logger.warning(
                    "MPD connection to %s:%d failed: %s. Retrying in %.1fs",
                    self._host,
                    self._port,
                    e,
                    self._reconnect_delay,
                )
                self.error_occurred.emit(str(e))
                continue
            except Exception as e:  # noqa: BLE001
                logger.exception("Unexpected error connecting to MPD: %s", e)
                self.error_occurred.emit(f"Unexpected error: {e}")
                continue

            self.connection_changed.emit(True)
            self._set_state(WatcherState.POLLING)
            try:
                await self._poll_until_failure(client, stop_event)
            finally:
                await client.disconnect()
                self.connection_changed.emit(False)

        self._set_state(WatcherState.STOPPED)

    async def _poll_until_failure(self, client: MpdClient, stop_event: threading.Event) -> None:
        """Poll on a fixed tick until a poll fails or the watcher stops."""
        while not stop_event.is_set():
            started = time.monotonic()
            try:
                await self._poll_status(client, stop_event)
            except CommandError as e:
                logger.warning("Failed to get MPD status: %s. Reconnecting...", e)
                self.error_occurred.emit(str(e))
                return
            except Exception as e:  # noqa: BLE001
                logger.exception("Unexpected error in MPD watcher: %s", e)
                self.error_occurred.emit(f"Unexpected error: {e}")
                return
            elapsed = time.monotonic() - started
            await self._sleep_interruptible(self._poll_interval - elapsed, stop_event)

    async def _poll_status(self, client: MpdClient, stop_event: threading.Event) -> None:
        """Run one poll cycle and publish the result unless stopped meanwhile."""
        status = await client.status()
        if stop_event.is_set():
            logger.debug("Discarding MPD status read after stop")
            return
        self._store.publish(status)
        self._emit_if_status_changed(status)

    def _emit_if_status_changed(self, status: MpdStatus) -> bool:
        """Emit status_changed if status differs from last."""
        if self._last_status is None or status != self._last_status:
            self._last_status = status
            self.status_changed.emit(status)
            return True
        return False

    @staticmethod
    async def _sleep_interruptible(seconds: float, stop_event: threading.Event) -> None:
        """Sleep in small increments to allow quick shutdown."""
        end_time = time.monotonic() + seconds
        while not stop_event.is_set():
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(_SLEEP_SLICE, remaining))
