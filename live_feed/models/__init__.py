"""Data models for live_feed."""

from .schemas import (
    FeedCategory,
    FeedDocument,
    FeedItem,
    MalformedPayloadError,
    normalize_category,
    parse_feed_document,
    parse_timestamp,
)

__all__ = [
    "FeedCategory",
    "FeedDocument",
    "FeedItem",
    "MalformedPayloadError",
    "normalize_category",
    "parse_feed_document",
    "parse_timestamp",
]
