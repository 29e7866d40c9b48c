"""MPD protocol data types.

This module defines frozen dataclasses for decoded MPD replies.
"""

from dataclasses import dataclass

PLAYING_STATES = frozenset({"play", "pause"})


@dataclass(frozen=True)
class MpdTrack:
    """Decoded reply of the currentsong command.

    Only artist, album and title are copied into MpdStatus; the other tags
    are kept for callers of MpdClient.currentsong().

    Attributes:
        file: Song URI relative to the music directory, "" if absent.
        title: Title tag.
        artist: Artist tag.
        album: Album tag.
        album_artist: AlbumArtist tag.
        duration: Song length in seconds, fractional.
        track: Track tag as sent, e.g. "3/12".
        date: Date tag.
        genre: Genre tag.
        pos: Queue position, or -1.
        id: Queue song ID, or -1.
    """

    file: str
    title: str = ""
    artist: str = ""
    album: str = ""
    album_artist: str = ""
    duration: float = 0.0
    track: str = ""
    date: str = ""
    genre: str = ""
    pos: int = -1
    id: int = -1

    @property
    def has_metadata(self) -> bool:
        """Return True if track has title or artist metadata."""
        return bool(self.title or self.artist)


@dataclass(frozen=True)
class MpdStatus:
    """MPD player status, published once per poll cycle.

    Attributes:
        state: Player state - "play", "pause", "stop", or "" if unknown.
        volume: Volume level (0-100), or -1 if not available.
        repeat: Repeat mode enabled.
        random: Random/shuffle mode enabled.
        single: Single mode (stop after current track).
        consume: Consume mode (remove tracks after playing).
        playlist_length: Number of entries in the queue.
        song: Current song position in playlist.
        song_id: Current song ID, or -1.
        next_song: Next song position in playlist.
        next_song_id: Next song ID, or -1.
        duration: Duration of current track in whole seconds.
        elapsed: Elapsed time in seconds.
        bitrate: Current audio bitrate in kbps.
        audio: Audio format string (e.g., "44100:16:2").
        error: Last error reported by the server, if any.
        artist: Artist of the current song (only while playing or paused).
        album: Album of the current song (only while playing or paused).
        title: Title of the current song (only while playing or paused).
    """

    state: str = ""
    volume: int = -1
    repeat: bool = False
    random: bool = False
    single: bool = False
    consume: bool = False
    playlist_length: int = 0
    song: int = 0
    song_id: int = -1
    next_song: int = 0
    next_song_id: int = -1
    duration: int = 0
    elapsed: float = 0.0
    bitrate: int = 0
    audio: str = ""
    error: str = ""
    artist: str = ""
    album: str = ""
    title: str = ""

    @property
    def is_playing(self) -> bool:
        """Return True if currently playing."""
        return self.state == "play"

    @property
    def is_paused(self) -> bool:
        """Return True if paused."""
        return self.state == "pause"

    @property
    def is_stopped(self) -> bool:
        """Return True if stopped."""
        return self.state == "stop"

    @property
    def has_song(self) -> bool:
        """Return True if a song is loaded (playing or paused)."""
        return self.state in PLAYING_STATES

    @property
    def progress(self) -> float:
        """Return playback progress as a fraction (0.0 to 1.0)."""
        if self.duration <= 0:
            return 0.0
        return min(1.0, self.elapsed / self.duration)
