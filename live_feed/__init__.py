"""live_feed - live activity feed synchronization for the status dashboard."""

__version__ = "0.1.0"
