"""Tests for the line-oriented MPD connection."""

from unittest.mock import patch

import pytest

from mpdlink.api.mpd.connection import MpdConnection
from mpdlink.api.mpd.protocol import CommandError, ConnectError


class TestOpen:
    """Tests for opening a connection."""

    @pytest.mark.asyncio
    async def test_open_reads_greeting(self, mock_connection) -> None:
        """Test successful open parses the protocol version."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1", 6600)

        assert conn.is_open
        assert conn.version == "0.23.5"
        assert writer.data == []

    @pytest.mark.asyncio
    async def test_open_invalid_greeting(self, mock_connection) -> None:
        """Test that a non-MPD greeting is rejected and the stream closed."""
        reader, writer = mock_connection([b"SSH-2.0-OpenSSH_9.6\n"])

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(ConnectError, match="Invalid MPD greeting"),
        ):
            await MpdConnection.open("127.0.0.1", 6600)

        assert writer.is_closing()

    @pytest.mark.asyncio
    async def test_open_greeting_missing(self, mock_connection) -> None:
        """Test that the server closing before greeting is a connect error."""
        reader, writer = mock_connection([])

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(ConnectError, match="Failed to read greeting"),
        ):
            await MpdConnection.open("127.0.0.1", 6600)

        assert writer.is_closing()

    @pytest.mark.asyncio
    async def test_open_refused(self) -> None:
        """Test that a refused connection raises ConnectError."""
        with (
            patch("asyncio.open_connection", side_effect=ConnectionRefusedError("refused")),
            pytest.raises(ConnectError, match="Failed to connect to 127.0.0.1:6600"),
        ):
            await MpdConnection.open("127.0.0.1", 6600)

    @pytest.mark.asyncio
    async def test_open_timeout(self) -> None:
        """Test connection timeout."""
        with (
            patch("asyncio.open_connection", side_effect=TimeoutError()),
            pytest.raises(ConnectError, match="timed out"),
        ):
            await MpdConnection.open("127.0.0.1", 6600, timeout=1.0)

    @pytest.mark.asyncio
    async def test_open_greeting_timeout(self, hanging_connection) -> None:
        """Test that a silent server is abandoned when a timeout is set."""
        reader, writer = hanging_connection([])

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(ConnectError, match="No greeting"),
        ):
            await MpdConnection.open("127.0.0.1", 6600, timeout=0.05)

        assert writer.is_closing()


class TestExecute:
    """Tests for command execution."""

    @pytest.mark.asyncio
    async def test_execute_returns_lines(self, mock_connection) -> None:
        """Test that reply lines before OK are returned."""
        reader, writer = mock_connection(
            [b"OK MPD 0.23.5\n", b"volume: 50\nstate: play\nOK\n"]
        )

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            lines = await conn.execute("status")

        assert lines == ["volume: 50", "state: play"]
        assert writer.commands == ["status"]

    @pytest.mark.asyncio
    async def test_execute_bare_ok(self, mock_connection) -> None:
        """Test that a command with an empty reply returns no lines."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\n", b"OK\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            assert await conn.execute("play 5") == []

        assert writer.data == [b"play 5\n"]

    @pytest.mark.asyncio
    async def test_execute_strips_carriage_return(self, mock_connection) -> None:
        """Test CRLF terminated replies."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\r\n", b"state: stop\r\nOK\r\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            assert await conn.execute("status") == ["state: stop"]

    @pytest.mark.asyncio
    async def test_execute_ack(self, mock_connection) -> None:
        """Test that ACK raises CommandError and keeps the connection."""
        reader, writer = mock_connection(
            [b"OK MPD 0.23.5\n", b"ACK [5@0] {play} malformed argument\n", b"OK\n"]
        )

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            with pytest.raises(CommandError) as exc_info:
                await conn.execute("play x")

            assert exc_info.value.detail == "[5@0] {play} malformed argument"
            assert exc_info.value.is_ack
            assert conn.is_open
            assert await conn.execute("ping") == []

    @pytest.mark.asyncio
    async def test_execute_eof(self, mock_connection) -> None:
        """Test that the server closing mid-reply is a command error."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\n", b"state: play\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            with pytest.raises(CommandError, match="Failed to execute 'status'") as exc_info:
                await conn.execute("status")

        assert not exc_info.value.is_ack
        assert not conn.is_open
        assert writer.is_closing()

    @pytest.mark.asyncio
    async def test_execute_io_error(self, failing_connection) -> None:
        """Test that a broken socket is a command error."""
        reader, writer = failing_connection(
            [b"OK MPD 0.23.5\n"], ConnectionResetError("reset by peer")
        )

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
            with pytest.raises(CommandError, match="reset by peer"):
                await conn.execute("status")

        assert not conn.is_open

    @pytest.mark.asyncio
    async def test_execute_timeout(self, hanging_connection) -> None:
        """Test that a missing reply times out when a timeout is set."""
        reader, writer = hanging_connection([b"OK MPD 0.23.5\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1", timeout=0.05)
            with pytest.raises(CommandError, match="Timed out"):
                await conn.execute("status")

        assert not conn.is_open

    @pytest.mark.asyncio
    async def test_execute_after_close(self, mock_connection) -> None:
        """Test executing on a closed connection."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")
        await conn.close()

        with pytest.raises(CommandError, match="Not connected"):
            await conn.execute("status")


class TestClose:
    """Tests for closing."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, mock_connection) -> None:
        """Test closing twice."""
        reader, writer = mock_connection([b"OK MPD 0.23.5\n"])

        with patch("asyncio.open_connection", return_value=(reader, writer)):
            conn = await MpdConnection.open("127.0.0.1")

        await conn.close()
        await conn.close()

        assert not conn.is_open
        assert writer.is_closing()
