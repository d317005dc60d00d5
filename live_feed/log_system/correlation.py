"""Correlation IDs for grouping related log lines.

Each poll cycle and each tool call runs under its own correlation ID. IDs live
in a ContextVar, so concurrent asyncio tasks never see each other's values.
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional


_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_initialization_correlation_id: Optional[str] = None


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a new correlation ID of the form ``<prefix>_<hex>``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get() or _initialization_correlation_id


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id.set(correlation_id)


def set_initialization_correlation_id(correlation_id: str) -> None:
    """Set the ID used for log lines emitted before any request context exists."""
    global _initialization_correlation_id
    _initialization_correlation_id = correlation_id


def clear_initialization_correlation_id() -> None:
    global _initialization_correlation_id
    _initialization_correlation_id = None


@contextmanager
def correlation_scope(prefix: str = "req") -> Iterator[str]:
    """Run a block under a fresh correlation ID."""
    correlation_id = generate_correlation_id(prefix)
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True
