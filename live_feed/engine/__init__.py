"""Live synchronization engine for live_feed."""

from .lifecycle import LifecycleEventSource, VisibilitySignal
from .scheduler import (
    BACKOFF_MULTIPLIER,
    BASE_INTERVAL_MS,
    MAX_INTERVAL_MS,
    FeedSyncEngine,
    LiveStatus,
    PollState,
    compute_backoff_interval,
)
from .timer import AsyncioTimer, Timer, TimerHandle

__all__ = [
    "AsyncioTimer",
    "BACKOFF_MULTIPLIER",
    "BASE_INTERVAL_MS",
    "compute_backoff_interval",
    "FeedSyncEngine",
    "LifecycleEventSource",
    "LiveStatus",
    "MAX_INTERVAL_MS",
    "PollState",
    "Timer",
    "TimerHandle",
    "VisibilitySignal",
]
