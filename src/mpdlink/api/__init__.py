"""API clients for the Music Player Daemon."""
