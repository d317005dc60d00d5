"""Diff and reconciliation service.

This module compares a freshly fetched collection against the previous
snapshot and works out which items are genuinely new.
"""

from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Optional, Sequence, Tuple

from live_feed.storage.snapshot import MAX_ITEMS


default_identity: Callable[[Any], str] = attrgetter("id")


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation."""

    updated: Tuple[Any, ...]
    new_items: Tuple[Any, ...]


def reconcile(
    previous: Optional[Sequence[Any]],
    fetched: Sequence[Any],
    max_items: int = MAX_ITEMS,
    identity: Callable[[Any], str] = default_identity,
) -> ReconcileResult:
    """Reconcile a fetched collection against the previous snapshot.

    The updated snapshot is the fetch with repeated identities dropped (first
    occurrence wins) and truncated to ``max_items``. New items are the entries
    of the updated snapshot whose identity the previous snapshot lacks, in
    fetch order. Items beyond the window are never reported as new, otherwise
    an entry that fell off the end of the previous window would be announced
    again on every poll.

    Every unknown item counts, not only the unbroken run of unknown items at
    the head of the fetch, so an entry inserted below a known one is still
    reported.

    Args:
        previous: The previous snapshot, or None on cold start
        fetched: The freshly fetched collection, newest first
        max_items: Maximum snapshot size
        identity: Extracts the identity key from an item

    Returns:
        ReconcileResult with the updated snapshot and the new items. On cold
        start ``new_items`` is always empty.
    """
    updated = []
    seen = set()
    for item in fetched:
        if len(updated) >= max_items:
            break
        key = identity(item)
        if key in seen:
            continue
        seen.add(key)
        updated.append(item)

    if previous is None:
        return ReconcileResult(updated=tuple(updated), new_items=())

    known = {identity(item) for item in previous}
    new_items = tuple(item for item in updated if identity(item) not in known)

    return ReconcileResult(updated=tuple(updated), new_items=new_items)
