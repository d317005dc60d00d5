"""Decorators applied to every MCP tool.

Both decorators keep the wrapped function's signature (via functools.wraps) so
FastMCP can still introspect the tool parameters.
"""

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict

from live_feed.log_system.correlation import correlation_scope


logger = logging.getLogger(__name__)

Tool = Callable[..., Awaitable[Dict[str, Any]]]


def exception_handler(func: Tool) -> Tool:
    """Turn an exception escaping a tool into an error response."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Tool {func.__name__} failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": f"{type(e).__name__}: {e}",
            }

    return wrapper


def tool_logger(func: Tool) -> Tool:
    """Run a tool under its own correlation ID and log its duration."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        with correlation_scope("tool"):
            started = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.debug(f"Tool {func.__name__} finished in {elapsed_ms:.1f}ms")

    return wrapper
