"""Async MPD client.

This module provides an asyncio-based MPD client for the command subset the
watcher and the playback controller need: status, current song, list
queries, playback transport and mode toggles.

Example:
    async with MpdClient("192.168.1.100") as client:
        status = await client.status()
        if status.is_playing:
            print(f"Playing: {status.title} by {status.artist}")
"""

import asyncio
import logging
from dataclasses import replace
from typing import Self

from mpdlink.api.mpd.connection import DEFAULT_PORT, MpdConnection
from mpdlink.api.mpd.protocol import (
    CommandError,
    DecodeErrorHandler,
    format_command,
    format_list_command,
    parse_list,
    parse_response,
    parse_status,
    parse_track,
)
from mpdlink.api.mpd.types import MpdStatus, MpdTrack

logger = logging.getLogger(__name__)


def _flag(state: bool) -> str:
    return "1" if state else "0"


class MpdClient:
    """Async MPD client.

    Attributes:
        host: MPD server hostname or IP.
        port: MPD server port (default 6600).
        timeout: Optional connect/reply timeout in seconds. None blocks for
            as long as the server keeps the connection open.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float | None = None,
        on_decode_error: DecodeErrorHandler | None = None,
    ) -> None:
        """Initialize MPD client.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            timeout: Optional connect/reply timeout in seconds.
            on_decode_error: Optional hook receiving each response field
                that was dropped because it did not parse.
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self._on_decode_error = on_decode_error

        self._conn: MpdConnection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Return True if connected to MPD."""
        return self._conn is not None and self._conn.is_open

    @property
    def version(self) -> str:
        """Return MPD protocol version from initial handshake."""
        return self._conn.version if self._conn else ""

    async def connect(self) -> None:
        """Connect to MPD server, closing any connection already held.

        Raises:
            ConnectError: If connection fails or the greeting is invalid.
        """
        await self.disconnect()
        self._conn = await MpdConnection.open(self.host, self.port, timeout=self.timeout)

    async def disconnect(self) -> None:
        """Disconnect from MPD server."""
        if self._conn:
            conn, self._conn = self._conn, None
            await conn.close()
            logger.info("Disconnected from MPD at %s:%d", self.host, self.port)

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        """Async context manager exit."""
        await self.disconnect()

    async def _execute(self, command: str) -> list[str]:
        """Send a formatted command line and return the reply lines.

        Raises:
            CommandError: If not connected, MPD rejected the command, or
                the reply could not be read.
        """
        async with self._lock:
            if not self._conn:
                raise CommandError(f"Not connected: cannot send '{command}'")
            return await self._conn.execute(command)

    async def _command(self, cmd: str, *args: str) -> list[str]:
        return await self._execute(format_command(cmd, *args))

    # -------------------------------------------------------------------------
    # Status & Info Commands
    # -------------------------------------------------------------------------

    async def status(self) -> MpdStatus:
        """Get current player status with now-playing metadata.

        Metadata is only requested while playing or paused. If that second
        query fails the status is still returned, with empty metadata.

        Returns:
            MpdStatus with current state, volume, etc.

        Raises:
            CommandError: If the status query itself fails.
        """
        lines = await self._command("status")
        status = parse_status(parse_response(lines), self._on_decode_error)
        if not status.has_song:
            return status

        try:
            song_lines = await self._command("currentsong")
        except CommandError as e:
            logger.warning("Could not get current song: %s", e)
            return status

        track = parse_track(parse_response(song_lines), self._on_decode_error)
        return replace(status, artist=track.artist, album=track.album, title=track.title)

    async def currentsong(self) -> MpdTrack | None:
        """Get current song information.

        Returns:
            MpdTrack if a song is loaded, None otherwise.
        """
        lines = await self._command("currentsong")
        if not lines:
            return None
        track = parse_track(parse_response(lines), self._on_decode_error)
        if not track.file:
            return None
        return track

    async def list_tag(self, tag: str, *filters: str) -> list[str]:
        """List unique values of a tag.

        Args:
            tag: Tag to list, e.g. "artist" or "album".
            *filters: Alternating filter tag and value, e.g.
                ("artist", "Daft Punk") lists that artist's albums.

        Returns:
            Tag values in server order.

        Raises:
            ValueError: If filters are not (tag, value) pairs.
        """
        lines = await self._execute(format_list_command(tag, *filters))
        return parse_list(lines, tag)

    # -------------------------------------------------------------------------
    # Playback Control
    # -------------------------------------------------------------------------

    async def play(self, pos: int = -1) -> None:
        """Start playback.

        Args:
            pos: Position in playlist to start from, or -1 for current.
        """
        if pos >= 0:
            await self._command("play", str(pos))
        else:
            await self._command("play")

    async def playid(self, song_id: int = -1) -> None:
        """Start playback of the song with the given queue ID.

        Args:
            song_id: Song ID, or -1 for current.
        """
        if song_id >= 0:
            await self._command("playid", str(song_id))
        else:
            await self._command("playid")

    async def pause(self, state: bool) -> None:
        """Pause or resume playback.

        Args:
            state: True to pause, False to resume.
        """
        await self._command("pause", _flag(state))

    async def next(self) -> None:
        """Skip to next track."""
        await self._command("next")

    async def previous(self) -> None:
        """Skip to previous track."""
        await self._command("previous")

    # -------------------------------------------------------------------------
    # Playback Options
    # -------------------------------------------------------------------------

    async def random(self, state: bool) -> None:
        """Enable or disable random mode."""
        await self._command("random", _flag(state))

    async def repeat(self, state: bool) -> None:
        """Enable or disable repeat mode."""
        await self._command("repeat", _flag(state))

    async def single(self, state: bool) -> None:
        """Enable or disable single mode."""
        await self._command("single", _flag(state))
