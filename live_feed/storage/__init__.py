"""Storage layer for live_feed."""

from .snapshot import MAX_ITEMS, SnapshotStore

__all__ = [
    "MAX_ITEMS",
    "SnapshotStore",
]
