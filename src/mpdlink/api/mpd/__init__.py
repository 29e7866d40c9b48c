"""MPD client module.

This module provides an async MPD client, the line connection it runs on,
and the decoders that turn replies into typed records.

Example:
    from mpdlink.api.mpd import MpdClient

    async with MpdClient("192.168.1.100") as client:
        status = await client.status()
        albums = await client.list_tag("album", "artist", "Daft Punk")
"""

from mpdlink.api.mpd.client import MpdClient
from mpdlink.api.mpd.connection import DEFAULT_PORT, MpdConnection
from mpdlink.api.mpd.protocol import CommandError, ConnectError, DecodeError, MpdError
from mpdlink.api.mpd.types import MpdStatus, MpdTrack

__all__ = [
    "DEFAULT_PORT",
    "CommandError",
    "ConnectError",
    "DecodeError",
    "MpdClient",
    "MpdConnection",
    "MpdError",
    "MpdStatus",
    "MpdTrack",
]
