"""Logging configuration for live_feed.

Logs go to stderr so that stdout stays free for the STDIO transport.
"""

import logging
import sys
from typing import Optional

from live_feed.config import ServerConfig
from live_feed.log_system.correlation import CorrelationIdFilter


LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s"

logger = logging.getLogger("live_feed")


def setup_logging(config: Optional[ServerConfig] = None) -> logging.Logger:
    """Configure the ``live_feed`` logger hierarchy.

    Calling this more than once replaces the previously installed handler.

    Args:
        config: Server configuration (log level is taken from it)

    Returns:
        The package root logger
    """
    level = config.log_level if config is not None else "INFO"

    for handler in list(logger.handlers):
        if getattr(handler, "_live_feed_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    handler._live_feed_handler = True

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
