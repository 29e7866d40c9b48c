"""Controller - issues ad hoc playback commands.

The PlaybackController owns its own MpdClient, separate from the watcher's.
The client is opened on first use and reopened after the connection breaks.
Play/pause decisions are taken from the shared StatusStore, so a button
press does not need its own status round trip.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from mpdlink.api.mpd import DEFAULT_PORT, CommandError, MpdClient
from mpdlink.core.state import StatusStore

logger = logging.getLogger(__name__)


class PlaybackController:
    """Transport controls for a remote-control front end.

    Errors propagate to the caller: ConnectError if the server cannot be
    reached, CommandError if the command fails.

    Example:
        controller = PlaybackController("127.0.0.1", store=watcher.store)
        await controller.toggle_pause()
        await controller.next()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        store: StatusStore | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            store: Shared status used by toggle_pause().
            timeout: Optional connect/reply timeout in seconds.
        """
        self._host = host
        self._port = port
        self._store = store if store is not None else StatusStore()
        self._timeout = timeout
        self._client: MpdClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> MpdClient:
        async with self._lock:
            if self._client is None or not self._client.is_connected:
                client = MpdClient(self._host, self._port, timeout=self._timeout)
                await client.connect()
                self._client = client
            return self._client

    async def _run(self, action: Callable[[MpdClient], Awaitable[None]]) -> None:
        client = await self._get_client()
        try:
            await action(client)
        except CommandError:
            if not client.is_connected:
                logger.info("Dropping broken MPD control connection")
                await client.disconnect()
                self._client = None
            raise

    async def toggle_pause(self) -> None:
        """Pause if playing, resume if paused, start playback otherwise."""
        status = self._store.read()
        if status is not None and status.is_playing:
            await self._run(lambda c: c.pause(True))
        elif status is not None and status.is_paused:
            await self._run(lambda c: c.pause(False))
        else:
            await self._run(lambda c: c.play())

    async def play(self, pos: int = -1) -> None:
        """Start playback at pos, or at the current song."""
        await self._run(lambda c: c.play(pos))

    async def next(self) -> None:
        """Skip to next track."""
        await self._run(lambda c: c.next())

    async def previous(self) -> None:
        """Skip to previous track."""
        await self._run(lambda c: c.previous())

    async def close(self) -> None:
        """Close the control connection if open."""
        if self._client is not None:
            await self._client.disconnect()
            self._client = None
