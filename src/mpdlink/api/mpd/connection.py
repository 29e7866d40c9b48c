"""Line-oriented MPD connection.

One MpdConnection owns one TCP stream. It is only handed out after the
server greeting has been verified, and each execute() call consumes exactly
one reply so the stream is left at the start of the next one.

Reads and connects block for as long as the peer keeps the socket open
unless a timeout is given.
"""

import asyncio
import logging
from typing import Self

from mpdlink.api.mpd.protocol import (
    ERROR_PREFIX,
    GREETING_PREFIX,
    SUCCESS_TOKEN,
    CommandError,
    ConnectError,
    parse_ack,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6600


class MpdConnection:
    """A verified connection to an MPD server.

    Use MpdConnection.open() to create one; the constructor does not
    perform any I/O.

    Example:
        conn = await MpdConnection.open("127.0.0.1")
        try:
            lines = await conn.execute("status")
        finally:
            await conn.close()
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        version: str = "",
        timeout: float | None = None,
    ) -> None:
        """Wrap an already greeted stream pair.

        Args:
            reader: Stream reader positioned after the greeting.
            writer: Matching stream writer.
            version: Protocol version announced by the server.
            timeout: Per-reply read timeout in seconds, None for unbounded.
        """
        self._reader: asyncio.StreamReader | None = reader
        self._writer: asyncio.StreamWriter | None = writer
        self._version = version
        self._timeout = timeout

    @classmethod
    async def open(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float | None = None,
    ) -> Self:
        """Connect to MPD and verify the greeting.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            timeout: Connect/greeting timeout in seconds, None for unbounded.
                Also applied to every command reply.

        Returns:
            A connection ready to execute commands.

        Raises:
            ConnectError: If the stream cannot be opened or the server
                does not greet with "OK MPD".
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise ConnectError(f"Connection to {host}:{port} timed out") from e
        except OSError as e:
            raise ConnectError(f"Failed to connect to {host}:{port}: {e}") from e

        conn = cls(reader, writer, timeout=timeout)
        try:
            greeting = await asyncio.wait_for(conn.read_line(), timeout=timeout)
        except TimeoutError as e:
            await conn.close()
            raise ConnectError(f"No greeting from {host}:{port}") from e
        except (OSError, ValueError) as e:
            await conn.close()
            raise ConnectError(f"Failed to read greeting from {host}:{port}: {e}") from e

        if not greeting.startswith(GREETING_PREFIX):
            await conn.close()
            raise ConnectError(f"Invalid MPD greeting: {greeting}")

        conn._version = greeting[len(GREETING_PREFIX) :].strip()
        logger.info("Connected to MPD %s at %s:%d", conn._version, host, port)
        return conn

    @property
    def version(self) -> str:
        """Return MPD protocol version from the greeting."""
        return self._version

    @property
    def is_open(self) -> bool:
        """Return True until close() is called or the stream breaks."""
        return self._writer is not None and not self._writer.is_closing()

    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (OSError, TimeoutError, asyncio.CancelledError) as e:
            logger.debug("Expected error during MPD disconnect: %s", e)

    async def write_line(self, line: str) -> None:
        """Send one line followed by the protocol line terminator."""
        if self._writer is None:
            raise ConnectionResetError("Not connected")
        self._writer.write(f"{line}\n".encode())
        await self._writer.drain()

    async def read_line(self) -> str:
        """Read one line without its terminator.

        Raises:
            ConnectionResetError: If the server closed the stream.
        """
        if self._reader is None:
            raise ConnectionResetError("Not connected")
        raw = await self._reader.readline()
        if not raw.endswith(b"\n"):
            raise ConnectionResetError("Connection closed by MPD")
        return raw.decode("utf-8").rstrip("\r\n")

    async def _read_reply(self) -> list[str]:
        lines: list[str] = []
        while True:
            line = await self.read_line()
            if line == SUCCESS_TOKEN:
                return lines
            if line.startswith(ERROR_PREFIX):
                raise parse_ack(line)
            lines.append(line)

    async def execute(self, command: str) -> list[str]:
        """Send one command and read its reply.

        Args:
            command: Complete command line, without the terminator.

        Returns:
            Reply lines collected before the final OK.

        Raises:
            CommandError: If MPD answered with ACK, or the reply could not
                be read. In the second case the connection is closed.
        """
        logger.debug("MPD command: %s", command)
        try:
            await self.write_line(command)
            return await asyncio.wait_for(self._read_reply(), timeout=self._timeout)
        except CommandError:
            raise
        except TimeoutError as e:
            await self.close()
            raise CommandError(f"Timed out waiting for reply to '{command}'") from e
        except (OSError, ValueError) as e:
            await self.close()
            raise CommandError(f"Failed to execute '{command}': {e}") from e
