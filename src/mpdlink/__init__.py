"""mpdlink - MPD client with a self-healing status watcher."""

__version__ = "0.1.0"
