"""Live feed MCP tools.

This module provides MCP tools for reading the synchronized activity feed and
steering the sync engine.

NOTE: Never use Optional parameters in MCP tools - they break MCP clients.
Use empty string "" for optional strings and 0 for optional integers.
"""

import logging
from typing import Any, Dict

from mcp.server.fastmcp import Context

from live_feed.engine import FeedSyncEngine
from live_feed.runtime import get_runtime
from live_feed.services.feed_view import filter_items, group_by_day
from live_feed.services.gateway import ActivityGateway


logger = logging.getLogger(__name__)


def _isoformat(value) -> Any:
    return value.isoformat() if value is not None else None


def engine_status(engine: FeedSyncEngine) -> Dict[str, Any]:
    """Summarize the engine's poll state for a tool response."""
    state = engine.state
    return {
        "live_status": state.live_status.value,
        "is_suspended": state.is_suspended,
        "current_interval_ms": state.current_interval_ms,
        "consecutive_no_change_count": state.consecutive_no_change_count,
        "last_fetch_at": _isoformat(state.last_fetch_at),
        "last_success_at": _isoformat(state.last_success_at),
        "pending_count": engine.pending_count,
        "has_snapshot": engine.has_snapshot,
        "item_count": len(engine.snapshot),
    }


async def document_metadata(gateway: ActivityGateway) -> Dict[str, Any]:
    """When the activity document was generated and how many items it holds."""
    metadata = await gateway.get_metadata()
    if metadata is None:
        return {"last_updated": None, "activity_count": None}
    return {
        "last_updated": _isoformat(metadata["last_updated"]),
        "activity_count": metadata["activity_count"],
    }


async def get_feed(
    category: str = "all",
    days: int = 0,
    limit: int = 50,
    ctx: Context = None,
) -> Dict[str, Any]:
    """List items from the current activity snapshot, newest first.

    The snapshot is what the sync engine fetched most recently; this tool never
    triggers a network request.

    Args:
        category: Only items of this category (commit, task, event, arena,
            heartbeat, email, other), or "all"
        days: Only items from the last N days (0 means no date filter)
        limit: Maximum number of items to return (default: 50)
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - count: number of items returned
        - items: list of items with id, type, timestamp, title, source, file
        - by_day: item ids grouped by local calendar day, newest day first
        - status: live status, pending count and poll state
        - error: string if success is False
    """
    logger.info(f"get_feed called: category={category}, days={days}, limit={limit}")

    if limit < 1:
        return {
            "success": False,
            "error": f"limit must be at least 1, got {limit}",
        }

    runtime = get_runtime()
    engine = runtime.engine

    items = filter_items(
        engine.snapshot,
        category=category or "all",
        days=days if days > 0 else None,
    )[:limit]

    return {
        "success": True,
        "count": len(items),
        "items": [item.to_dict() for item in items],
        "by_day": [
            {"date": day.isoformat(), "ids": [item.id for item in grouped]}
            for day, grouped in group_by_day(items).items()
        ],
        "status": engine_status(engine),
    }


async def get_sync_status(ctx: Context = None) -> Dict[str, Any]:
    """Report whether the feed is live, how often it polls and what is pending.

    Args:
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - status: live status, interval, no-change count, fetch timestamps,
          pending count
        - sources: URLs the gateway tries, in order
        - last_updated: when the activity document was generated (None if
          it can't be loaded)
        - activity_count: number of items in that document
    """
    logger.info("get_sync_status called")

    runtime = get_runtime()
    return {
        "success": True,
        "status": engine_status(runtime.engine),
        "sources": list(runtime.gateway.urls),
        **(await document_metadata(runtime.gateway)),
    }


async def refresh_feed(ctx: Context = None) -> Dict[str, Any]:
    """Fetch the activity feed now instead of waiting for the next poll.

    Drops the gateway's cached document first, so the reported metadata
    reflects this fetch.

    Args:
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool (False if the fetch failed and the feed is offline)
        - status: poll state after the refresh
        - last_updated, activity_count: metadata of the fetched document
        - error: string if the fetch failed
    """
    logger.info("refresh_feed called")

    runtime = get_runtime()
    engine = runtime.engine
    runtime.gateway.invalidate()
    await engine.poll_now()
    status = engine_status(engine)

    if status["live_status"] != "live":
        return {
            "success": False,
            "status": status,
            "error": "Activity feed could not be fetched; showing last known snapshot",
        }

    return {
        "success": True,
        "status": status,
        **(await document_metadata(runtime.gateway)),
    }


async def acknowledge_feed(ctx: Context = None) -> Dict[str, Any]:
    """Mark all pending new items as seen.

    Args:
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - acknowledged: number of pending items cleared
    """
    logger.info("acknowledge_feed called")

    engine = get_runtime().engine
    acknowledged = engine.pending_count
    engine.acknowledge()

    return {
        "success": True,
        "acknowledged": acknowledged,
    }


async def set_visibility(visible: bool, ctx: Context = None) -> Dict[str, Any]:
    """Tell the sync engine whether the viewer is currently watching the feed.

    While hidden the feed polls slowly and notifications are suppressed. Becoming
    visible clears pending items and fetches immediately.

    Args:
        visible: True when the viewer is looking at the feed
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - status: poll state after the change
    """
    logger.info(f"set_visibility called: visible={visible}")

    runtime = get_runtime()
    runtime.visibility.set_visible(visible)
    if visible:
        await runtime.engine.join()

    return {
        "success": True,
        "status": engine_status(runtime.engine),
    }


# List of feed tools for registration
feed_tools = [
    get_feed,
    get_sync_status,
    refresh_feed,
    acknowledge_feed,
    set_visibility,
]
