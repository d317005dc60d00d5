"""In-memory snapshot storage for live_feed.

The snapshot is the last-known collection of items, newest first. It is
replaced wholesale on every successful fetch and never mutated in place.
"""

from typing import Any, Sequence, Tuple


MAX_ITEMS = 100


class SnapshotStore:
    """Holds the last-known ordered collection, bounded to ``max_items``."""

    def __init__(self, max_items: int = MAX_ITEMS):
        if max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {max_items}")
        self.max_items = max_items
        self._items: Tuple[Any, ...] = ()
        self._initialized = False

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        """Whether no snapshot has ever been stored.

        A store that holds a legitimately empty collection is not empty in
        this sense.
        """
        return not self._initialized

    def replace(self, items: Sequence[Any]) -> Tuple[Any, ...]:
        """Store ``items`` truncated to ``max_items``.

        Args:
            items: The new collection, newest first

        Returns:
            The previous snapshot (empty before the first replace)
        """
        previous = self._items
        self._items = tuple(items[: self.max_items])
        self._initialized = True
        return previous

    def clear(self) -> None:
        """Drop the snapshot and return to the cold-start state."""
        self._items = ()
        self._initialized = False
