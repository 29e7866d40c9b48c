"""MPD protocol parsing utilities.

MPD uses a simple line-based text protocol:
- The server greets a new connection with "OK MPD <version>"
- Commands are sent as plain text lines
- Responses are key-value pairs: "key: value"
- Responses end with "OK" or "ACK [error@index] {command} message"

Decoding is permissive: a value that fails to parse leaves its field at the
default instead of discarding the whole record.

Reference: https://mpd.readthedocs.io/en/stable/protocol.html
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import fields
from typing import Any

from mpdlink.api.mpd.types import MpdStatus, MpdTrack

logger = logging.getLogger(__name__)

GREETING_PREFIX = "OK MPD"
SUCCESS_TOKEN = "OK"
ERROR_PREFIX = "ACK"
KEY_SEPARATOR = ": "


class MpdError(Exception):
    """Base class for MPD client errors."""


class ConnectError(MpdError):
    """Failed to connect to MPD server or the greeting was not valid."""


class CommandError(MpdError):
    """A command was rejected by MPD or its reply could not be read.

    Attributes:
        detail: Server text after "ACK ", or the I/O failure description.
        code: MPD error code for ACK replies, None for I/O failures.
        command: Command name reported by MPD in the ACK line.
        message: Human readable part of the ACK line.
    """

    def __init__(
        self,
        detail: str,
        code: int | None = None,
        command: str = "",
        message: str = "",
    ) -> None:
        self.detail = detail
        self.code = code
        self.command = command
        self.message = message or detail
        super().__init__(detail)

    @property
    def is_ack(self) -> bool:
        """Return True if MPD rejected the command (as opposed to I/O failure)."""
        return self.code is not None


class DecodeError(MpdError):
    """A single response field could not be decoded.

    Never raised by the decoder itself; handed to the diagnostic hook.
    """

    def __init__(self, key: str, value: str, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot decode {key}={value!r}: {reason}")


DecodeErrorHandler = Callable[[DecodeError], None]

# Pattern for ACK responses: ACK [error@command_listNum] {current_command} message_text
ACK_PATTERN = re.compile(r"ACK \[(\d+)@\d+\] \{(\w*)\} ?(.*)")

# MPD key name mappings to dataclass field names
_TRACK_KEY_MAP: dict[str, str] = {
    "file": "file",
    "title": "title",
    "artist": "artist",
    "album": "album",
    "albumartist": "album_artist",
    "time": "duration",
    "duration": "duration",
    "track": "track",
    "date": "date",
    "genre": "genre",
    "pos": "pos",
    "id": "id",
}

_STATUS_KEY_MAP: dict[str, str] = {
    "state": "state",
    "volume": "volume",
    "repeat": "repeat",
    "random": "random",
    "single": "single",
    "consume": "consume",
    "playlistlength": "playlist_length",
    "song": "song",
    "songid": "song_id",
    "nextsong": "next_song",
    "nextsongid": "next_song_id",
    "elapsed": "elapsed",
    "duration": "duration",
    "bitrate": "bitrate",
    "audio": "audio",
    "error": "error",
}

# Fields that MPD reports as fractional seconds but are stored truncated
_TRUNCATED_FIELDS = frozenset({"duration"})


def parse_response(lines: Iterable[str]) -> dict[str, str]:
    """Parse MPD response lines into a key-value dict.

    Lines are split on the first ": ". Lines without the separator are
    skipped, and a repeated key overwrites the earlier value.

    Args:
        lines: Response lines (without the final OK).

    Returns:
        Dictionary of key-value pairs.
    """
    result: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(KEY_SEPARATOR)
        if sep:
            result[key] = value
    return result


def parse_ack(line: str) -> CommandError:
    """Build a CommandError from an ACK line.

    Args:
        line: The full ACK line as received.

    Returns:
        CommandError whose detail is the text after "ACK ".
    """
    detail = line[len(ERROR_PREFIX) :].lstrip(" ")
    match = ACK_PATTERN.match(line)
    if match:
        return CommandError(
            detail,
            code=int(match.group(1)),
            command=match.group(2),
            message=match.group(3),
        )
    return CommandError(detail, code=0)


def _report(error: DecodeError, on_error: DecodeErrorHandler | None) -> None:
    logger.debug("%s", error)
    if on_error is not None:
        on_error(error)


def _convert(field_type: Any, field_name: str, value: str) -> Any:
    """Convert a raw value to the dataclass field type.

    Raises:
        ValueError: If the value does not parse.
    """
    if field_type is bool:
        return value == "1"
    if field_type is int:
        if field_name in _TRUNCATED_FIELDS:
            return int(float(value))
        return int(value)
    if field_type is float:
        return float(value)
    return value


def _decode_fields(
    data: dict[str, str],
    key_map: dict[str, str],
    field_types: dict[str, Any],
    on_error: DecodeErrorHandler | None,
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for mpd_key, field_name in key_map.items():
        if mpd_key not in data:
            continue
        value = data[mpd_key]
        try:
            kwargs[field_name] = _convert(field_types[field_name], field_name, value)
        except (ValueError, OverflowError) as e:
            _report(DecodeError(mpd_key, value, str(e)), on_error)
    return kwargs


def parse_track(data: dict[str, str], on_error: DecodeErrorHandler | None = None) -> MpdTrack:
    """Parse currentsong data into MpdTrack.

    Tag names are matched case-insensitively ("Artist" and "artist" alike).

    Args:
        data: Key-value dict from parse_response.
        on_error: Optional hook called for each field that failed to decode.

    Returns:
        MpdTrack instance.
    """
    lowered = {key.lower(): value for key, value in data.items()}
    field_types = {f.name: f.type for f in fields(MpdTrack)}
    kwargs = _decode_fields(lowered, _TRACK_KEY_MAP, field_types, on_error)

    # file is required
    if "file" not in kwargs:
        kwargs["file"] = ""

    return MpdTrack(**kwargs)


def parse_status(data: dict[str, str], on_error: DecodeErrorHandler | None = None) -> MpdStatus:
    """Parse status data into MpdStatus.

    Absent keys and values that fail to parse leave the field default.
    Metadata fields (artist, album, title) are not part of the status reply
    and stay empty here.

    Args:
        data: Key-value dict from parse_response.
        on_error: Optional hook called for each field that failed to decode.

    Returns:
        MpdStatus instance.
    """
    field_types = {f.name: f.type for f in fields(MpdStatus)}
    kwargs = _decode_fields(data, _STATUS_KEY_MAP, field_types, on_error)

    # Old servers only send "time: elapsed:duration"
    legacy = data.get("time", "")
    if ":" in legacy and ("elapsed" not in data or "duration" not in data):
        elapsed_str, duration_str = legacy.split(":", 1)
        try:
            if "elapsed" not in data:
                kwargs["elapsed"] = float(elapsed_str)
            if "duration" not in data:
                kwargs["duration"] = int(float(duration_str))
        except (ValueError, OverflowError) as e:
            _report(DecodeError("time", legacy, str(e)), on_error)

    return MpdStatus(**kwargs)


def parse_list(lines: Iterable[str], tag: str) -> list[str]:
    """Extract tag values from a list reply.

    Args:
        lines: Response lines (without the final OK).
        tag: Tag name that was listed; matched case-insensitively.

    Returns:
        Values in the order the server sent them.
    """
    prefix = f"{tag.lower()}{KEY_SEPARATOR}"
    return [line[len(prefix) :] for line in lines if line.lower().startswith(prefix)]


def quote_arg(arg: str) -> str:
    """Wrap an argument in double quotes.

    Backslash and double-quote are escaped as the MPD protocol defines.

    Args:
        arg: The argument to quote.

    Returns:
        Quoted argument.
    """
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def escape_arg(arg: str) -> str:
    """Escape an argument for MPD command.

    MPD requires arguments with spaces or special chars to be quoted.

    Args:
        arg: The argument to escape.

    Returns:
        Escaped argument, quoted if necessary.
    """
    # If no special characters, return as-is
    if arg and not any(c in arg for c in ' "\t\n\\'):
        return arg
    return quote_arg(arg)


def format_command(command: str, *args: str) -> str:
    """Format an MPD command with arguments.

    Args:
        command: The MPD command name.
        *args: Command arguments.

    Returns:
        Formatted command string (without newline).
    """
    if not args:
        return command
    escaped_args = [escape_arg(arg) for arg in args]
    return f"{command} {' '.join(escaped_args)}"


def format_list_command(tag: str, *filters: str) -> str:
    """Format a list command.

    Args:
        tag: Tag to list (e.g. "album").
        *filters: Alternating filter tag names and values.

    Returns:
        Command string such as 'list album artist "Daft Punk"'.

    Raises:
        ValueError: If filters are not given as (tag, value) pairs.
    """
    if len(filters) % 2:
        raise ValueError("list filters must be (tag, value) pairs")
    parts = [f"list {tag}"]
    for i in range(0, len(filters), 2):
        parts.append(f"{filters[i]} {quote_arg(filters[i + 1])}")
    return " ".join(parts)
