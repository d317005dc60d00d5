"""Process-wide feed runtime.

Wires the gateway, the visibility signal and the sync engine together from a
ServerConfig, and keeps the running instance available to the tools.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from live_feed.config import ServerConfig, get_config
from live_feed.engine import FeedSyncEngine, VisibilitySignal
from live_feed.notifiers import LoggingNotifier, VisibilityGatedNotifier
from live_feed.services.gateway import ActivityGateway


logger = logging.getLogger(__name__)


@dataclass
class FeedRuntime:
    """The objects backing one running activity feed."""

    config: ServerConfig
    gateway: ActivityGateway
    visibility: VisibilitySignal
    engine: FeedSyncEngine


def create_runtime(config: Optional[ServerConfig] = None) -> FeedRuntime:
    """Build a runtime from configuration without starting it.

    Raises:
        ValueError: If the configuration yields no source URL or invalid
            engine settings
    """
    if config is None:
        config = get_config()

    gateway = ActivityGateway(
        config.source_urls,
        timeout=config.request_timeout,
        cache_ttl_ms=config.cache_ttl_ms,
    )
    visibility = VisibilitySignal(visible=True)
    engine = FeedSyncEngine(
        gateway.fetch_items,
        notifier=VisibilityGatedNotifier(LoggingNotifier(), visibility),
        lifecycle=visibility,
        base_interval_ms=config.base_interval_ms,
        max_interval_ms=config.max_interval_ms,
        multiplier=config.multiplier,
        max_items=config.max_items,
        name="activity",
    )
    return FeedRuntime(config=config, gateway=gateway, visibility=visibility, engine=engine)


# Singleton runtime
_runtime: Optional[FeedRuntime] = None


def get_runtime() -> FeedRuntime:
    """Get the running feed runtime.

    Raises:
        RuntimeError: If no runtime has been started
    """
    if _runtime is None:
        raise RuntimeError("Feed runtime is not running")
    return _runtime


def set_runtime(runtime: Optional[FeedRuntime]) -> None:
    global _runtime
    _runtime = runtime


@asynccontextmanager
async def runtime_lifespan(server: Any = None, config: Optional[ServerConfig] = None) -> AsyncIterator[FeedRuntime]:
    """Start the feed runtime for the lifetime of the server."""
    runtime = create_runtime(config)
    set_runtime(runtime)
    try:
        await runtime.engine.start()
        logger.info(f"Feed runtime started with sources: {', '.join(runtime.gateway.urls)}")
        yield runtime
    finally:
        runtime.engine.destroy()
        set_runtime(None)
