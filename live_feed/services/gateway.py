"""Activity fetch gateway.

This module loads the activity document over HTTP. The live gateway API is
tried first and the static build output second; any failure is reported as
None rather than as an empty collection.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from live_feed.models.schemas import FeedDocument, FeedItem, parse_feed_document


logger = logging.getLogger(__name__)

DEFAULT_API_PATH = "/api/activity"
DEFAULT_CACHE_TTL_MS = 60_000


def build_source_urls(
    gateway_base: Optional[str],
    api_path: str = DEFAULT_API_PATH,
    static_url: Optional[str] = None,
) -> List[str]:
    """Build the ordered list of URLs to try for the activity document.

    Args:
        gateway_base: Base URL of the live gateway (None or empty to skip)
        api_path: Path of the activity endpoint on the gateway
        static_url: URL of the statically built activity.json

    Returns:
        URLs in the order they should be tried
    """
    urls = []
    base = (gateway_base or "").strip().rstrip("/")
    if base and api_path:
        urls.append(base + "/" + api_path.lstrip("/"))
    if static_url:
        urls.append(static_url)
    return urls


class ActivityGateway:
    """Loads and caches the activity document.

    Successful loads are cached for ``cache_ttl_ms``; concurrent loads share one
    in-flight request.
    """

    def __init__(
        self,
        urls: List[str],
        timeout: float = 30.0,
        cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not urls:
            raise ValueError("ActivityGateway needs at least one source URL")
        self.urls = list(urls)
        self.timeout = timeout
        self.cache_ttl_ms = cache_ttl_ms
        self._clock = clock
        self._cached: Optional[Tuple[FeedDocument, float]] = None
        self._in_flight: Optional["asyncio.Future[Optional[FeedDocument]]"] = None

    async def load(self, force_refresh: bool = False) -> Optional[FeedDocument]:
        """Load the activity document.

        Args:
            force_refresh: Bypass both the cache and any in-flight request

        Returns:
            The parsed document, or None if every source failed
        """
        if not force_refresh:
            if self._cached is not None:
                document, fetched_at = self._cached
                if (self._clock() - fetched_at) * 1000 < self.cache_ttl_ms:
                    return document
            if self._in_flight is not None:
                return await self._in_flight

        task = asyncio.ensure_future(self._load_uncached())
        self._in_flight = task
        try:
            return await task
        finally:
            if self._in_flight is task:
                self._in_flight = None

    async def fetch_items(self) -> Optional[Tuple[FeedItem, ...]]:
        """Force-load the document and return its items, or None on failure."""
        document = await self.load(force_refresh=True)
        if document is None:
            return None
        return document.items

    async def get_metadata(self) -> Optional[Dict[str, Any]]:
        """Get metadata about the current document.

        Returns:
            Dict with last_updated and activity_count, or None if the document
            can't be loaded
        """
        document = await self.load()
        if document is None:
            return None
        return {
            "last_updated": document.generated,
            "activity_count": len(document.items),
        }

    def invalidate(self) -> None:
        """Drop the cached document and forget any in-flight request.

        The next non-forced load goes back to the network.
        """
        self._cached = None
        self._in_flight = None

    async def _load_uncached(self) -> Optional[FeedDocument]:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            headers={"User-Agent": "LiveFeed/1.0 (Activity Sync)"},
        ) as client:
            for url in self.urls:
                try:
                    response = await client.get(
                        url, params={"t": str(int(time.time() * 1000))}
                    )
                    response.raise_for_status()
                    document = parse_feed_document(response.json())
                except httpx.HTTPError as e:
                    logger.warning(f"Failed to fetch {url}: {e}")
                    continue
                except ValueError as e:
                    # Invalid JSON or a document with the wrong shape
                    logger.warning(f"Malformed activity document from {url}: {e}")
                    continue

                self._cached = (document, self._clock())
                logger.debug(f"Loaded {len(document.items)} items from {url}")
                return document

        logger.error(f"Failed to load activity from {len(self.urls)} source(s)")
        return None
