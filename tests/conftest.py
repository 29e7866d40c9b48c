"""Test fixtures for mpdlink tests."""

import asyncio
from collections.abc import Callable

import pytest
from PySide6.QtCore import QCoreApplication


class MockStreamReader:
    """Mock asyncio StreamReader for testing."""

    def __init__(self, responses: list[bytes]) -> None:
        self._responses = responses
        self._index = 0
        self._buffer = b""

    async def readline(self) -> bytes:
        """Read a line from mock data; returns the remainder at EOF."""
        while b"\n" not in self._buffer:
            if self._index >= len(self._responses):
                data, self._buffer = self._buffer, b""
                return data
            self._buffer += self._responses[self._index]
            self._index += 1

        line, self._buffer = self._buffer.split(b"\n", 1)
        return line + b"\n"


class FailingStreamReader(MockStreamReader):
    """Reader that raises once its scripted data is exhausted."""

    def __init__(self, responses: list[bytes], error: Exception) -> None:
        super().__init__(responses)
        self._error = error

    async def readline(self) -> bytes:
        """Read a line, raising instead of signalling EOF."""
        if b"\n" not in self._buffer and self._index >= len(self._responses):
            raise self._error
        return await super().readline()


class HangingStreamReader(MockStreamReader):
    """Reader that never returns once its scripted data is exhausted."""

    async def readline(self) -> bytes:
        """Read a line, blocking forever instead of signalling EOF."""
        if b"\n" not in self._buffer and self._index >= len(self._responses):
            await asyncio.Event().wait()
        return await super().readline()


class MockStreamWriter:
    """Mock asyncio StreamWriter for testing."""

    def __init__(self) -> None:
        self.data: list[bytes] = []
        self._closed = False

    def write(self, data: bytes) -> None:
        """Record written data."""
        self.data.append(data)

    async def drain(self) -> None:
        """Mock drain."""

    def close(self) -> None:
        """Mark as closed."""
        self._closed = True

    async def wait_closed(self) -> None:
        """Mock wait_closed."""

    def is_closing(self) -> bool:
        """Check if closing."""
        return self._closed

    @property
    def commands(self) -> list[str]:
        """Return written lines decoded, without terminators."""
        return [chunk.decode().rstrip("\n") for chunk in self.data]


StreamPair = tuple[MockStreamReader, MockStreamWriter]


@pytest.fixture
def mock_connection() -> Callable[[list[bytes]], StreamPair]:
    """Create mock reader/writer pairs for testing."""

    def _mock_connection(responses: list[bytes]) -> StreamPair:
        return MockStreamReader(responses), MockStreamWriter()

    return _mock_connection


@pytest.fixture
def failing_connection() -> Callable[[list[bytes], Exception], StreamPair]:
    """Create reader/writer pairs whose reader raises after its data runs out."""

    def _failing_connection(responses: list[bytes], error: Exception) -> StreamPair:
        return FailingStreamReader(responses, error), MockStreamWriter()

    return _failing_connection


@pytest.fixture
def hanging_connection() -> Callable[[list[bytes]], StreamPair]:
    """Create reader/writer pairs whose reader blocks after its data runs out."""

    def _hanging_connection(responses: list[bytes]) -> StreamPair:
        return HangingStreamReader(responses), MockStreamWriter()

    return _hanging_connection


@pytest.fixture
def qapp() -> QCoreApplication:
    """Create a Qt application for testing."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app  # type: ignore[return-value]
