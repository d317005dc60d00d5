"""Data models for live_feed.

This module defines the feed items produced by the dashboard build step and the
document that wraps them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple


logger = logging.getLogger(__name__)


class FeedCategory(str, Enum):
    """Closed set of activity categories."""

    COMMIT = "commit"
    TASK = "task"
    EVENT = "event"
    ARENA = "arena"
    HEARTBEAT = "heartbeat"
    EMAIL = "email"
    OTHER = "other"


class MalformedPayloadError(ValueError):
    """Raised when a fetched document does not have the expected shape."""


def normalize_category(raw: Any) -> FeedCategory:
    """Map a raw ``type`` value onto a known category.

    Unknown or empty values fall back to ``FeedCategory.OTHER``.
    """
    normalized = str(raw or "").strip().lower()
    try:
        return FeedCategory(normalized)
    except ValueError:
        return FeedCategory.OTHER


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None if it can't be parsed.

    A trailing ``Z`` is accepted and naive values are treated as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class FeedItem:
    """One immutable unit of activity."""

    id: str
    timestamp: datetime
    category: FeedCategory
    title: str
    source: Optional[str] = None
    file: Optional[str] = None

    @classmethod
    def from_dict(cls, entry: dict) -> Optional["FeedItem"]:
        """Build an item from one entry of the upstream ``items`` list.

        Returns None for entries that are missing an id or title or whose
        timestamp can't be parsed.
        """
        if not isinstance(entry, dict):
            return None

        item_id = entry.get("id")
        if item_id is None or str(item_id).strip() == "":
            return None

        title = str(entry.get("title") or "").strip()
        if not title:
            return None

        timestamp = parse_timestamp(entry.get("timestamp"))
        if timestamp is None:
            return None

        return cls(
            id=str(item_id),
            timestamp=timestamp,
            category=normalize_category(entry.get("type")),
            title=title,
            source=entry.get("source") or None,
            file=entry.get("file") or None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "title": self.title,
            "source": self.source,
            "file": self.file,
        }


@dataclass(frozen=True)
class FeedDocument:
    """Represents one fetched activity document."""

    generated: Optional[datetime]
    items: Tuple[FeedItem, ...] = field(default_factory=tuple)


def parse_feed_document(payload: Any) -> FeedDocument:
    """Convert a decoded JSON payload into a FeedDocument.

    Args:
        payload: The decoded JSON value

    Returns:
        The parsed document, items in the order the payload lists them

    Raises:
        MalformedPayloadError: If the payload is not an object, has no items
            list, or has an unparsable ``generated`` value
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raise MalformedPayloadError("Document has no 'items' list")

    generated = None
    if payload.get("generated") is not None:
        generated = parse_timestamp(payload.get("generated"))
        if generated is None:
            raise MalformedPayloadError(
                f"Invalid 'generated' timestamp: {payload.get('generated')!r}"
            )

    items = []
    skipped = 0
    for entry in raw_items:
        item = FeedItem.from_dict(entry)
        if item is None:
            skipped += 1
            continue
        items.append(item)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed feed entries")

    return FeedDocument(generated=generated, items=tuple(items))
