"""Feed view helpers.

Filtering and grouping applied to a snapshot before it is handed to a renderer.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from live_feed.models.schemas import FeedItem


def filter_items(
    items: Iterable[FeedItem],
    category: str = "all",
    days: Optional[int] = 7,
    now: Optional[datetime] = None,
) -> List[FeedItem]:
    """Filter items by category and date range.

    Args:
        items: Items to filter, newest first
        category: Category value to keep ("all" keeps every category)
        days: Keep only items from the last N days (None keeps all)
        now: Reference time (defaults to the current UTC time)

    Returns:
        Matching items in their original order
    """
    wanted = (category or "all").strip().lower()

    cutoff = None
    if days is not None:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)

    filtered = []
    for item in items:
        if wanted != "all" and item.category.value != wanted:
            continue
        if cutoff is not None and item.timestamp < cutoff:
            continue
        filtered.append(item)

    return filtered


def group_by_day(
    items: Iterable[FeedItem],
    tz: Optional[tzinfo] = None,
) -> Dict[date, List[FeedItem]]:
    """Group items by calendar day, preserving order of first appearance.

    Days are taken in ``tz``; the default is the host's local time zone, so an
    item from late evening lands under that evening rather than the UTC date.
    """
    groups: Dict[date, List[FeedItem]] = {}
    for item in items:
        groups.setdefault(item.timestamp.astimezone(tz).date(), []).append(item)
    return groups
