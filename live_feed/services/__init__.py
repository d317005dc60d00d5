"""Services for live_feed."""

from .feed_view import filter_items, group_by_day
from .gateway import ActivityGateway, build_source_urls
from .reconcile import ReconcileResult, reconcile

__all__ = [
    "ActivityGateway",
    "build_source_urls",
    "filter_items",
    "group_by_day",
    "ReconcileResult",
    "reconcile",
]
