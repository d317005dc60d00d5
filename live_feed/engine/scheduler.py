"""Poll scheduler for live_feed.

FeedSyncEngine periodically re-fetches a remote collection, reconciles it
against the last snapshot and hands genuinely new items to its notifiers. The
polling interval backs off while nothing changes, drops to a slow fixed cadence
while the host is hidden, and snaps back with an immediate fetch when the host
becomes visible again.

One engine owns one snapshot and one poll state, so every dashboard panel
(activity, status chips, sessions, usage) can run its own instance with its
own source and identity extractor.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from live_feed.engine.lifecycle import LifecycleEventSource
from live_feed.engine.timer import AsyncioTimer, Timer, TimerHandle
from live_feed.log_system.correlation import correlation_scope
from live_feed.notifiers import CallbackNotifier, ChangeNotifier, dispatch
from live_feed.services.reconcile import default_identity, reconcile
from live_feed.storage.snapshot import MAX_ITEMS, SnapshotStore


logger = logging.getLogger(__name__)

BASE_INTERVAL_MS = 10_000
MAX_INTERVAL_MS = 60_000
BACKOFF_MULTIPLIER = 1.5
MAX_BACKOFF_STEPS = 5

Source = Callable[[], Awaitable[Optional[Sequence[Any]]]]


class LiveStatus(str, Enum):
    LIVE = "live"
    OFFLINE = "offline"


@dataclass
class PollState:
    """Mutable poll cycle state owned by one engine."""

    current_interval_ms: float
    consecutive_no_change_count: int = 0
    last_fetch_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    live_status: LiveStatus = LiveStatus.OFFLINE
    is_suspended: bool = False


def compute_backoff_interval(
    no_change_count: int,
    base_interval_ms: float = BASE_INTERVAL_MS,
    multiplier: float = BACKOFF_MULTIPLIER,
    max_interval_ms: float = MAX_INTERVAL_MS,
) -> float:
    """Interval after ``no_change_count`` consecutive quiet polls.

    The exponent saturates at MAX_BACKOFF_STEPS and the result never exceeds
    ``max_interval_ms``.
    """
    steps = min(max(no_change_count, 0), MAX_BACKOFF_STEPS)
    return min(base_interval_ms * multiplier ** steps, max_interval_ms)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedSyncEngine:
    """Keeps a bounded snapshot of a remote collection in sync by polling.

    Example:
        >>> gateway = ActivityGateway(["http://localhost:8000/data/activity.json"])
        >>> engine = FeedSyncEngine(gateway.fetch_items, notifier=LoggingNotifier())
        >>> await engine.start()
        >>> engine.snapshot  # newest first
        >>> engine.destroy()
    """

    def __init__(
        self,
        source: Source,
        *,
        identity: Callable[[Any], str] = default_identity,
        notifier: Optional[ChangeNotifier] = None,
        lifecycle: Optional[LifecycleEventSource] = None,
        timer: Optional[Timer] = None,
        base_interval_ms: float = BASE_INTERVAL_MS,
        max_interval_ms: float = MAX_INTERVAL_MS,
        multiplier: float = BACKOFF_MULTIPLIER,
        max_items: int = MAX_ITEMS,
        clock: Callable[[], datetime] = _utcnow,
        name: str = "activity",
    ):
        """
        Initialize the engine.

        Args:
            source: Async callable returning the current collection (newest
                first), or None when the fetch failed
            identity: Extracts the identity key used for diffing
            notifier: Receives new items after each non-cold-start poll
            lifecycle: Host visibility source (always visible if omitted)
            timer: Schedules the next poll (asyncio loop timer by default)
            base_interval_ms: Interval while items keep changing (default: 10 s)
            max_interval_ms: Backoff ceiling and hidden-host interval (default: 60 s)
            multiplier: Backoff growth per quiet poll (default: 1.5)
            max_items: Snapshot size bound (default: 100)
            clock: Returns the current time for fetch timestamps
            name: Label used in log messages

        Raises:
            ValueError: If the configuration is invalid
        """
        if source is None or not callable(source):
            raise ValueError("FeedSyncEngine requires a callable source")
        if base_interval_ms <= 0:
            raise ValueError(f"base_interval_ms must be positive, got {base_interval_ms}")
        if max_interval_ms < base_interval_ms:
            raise ValueError(
                f"max_interval_ms ({max_interval_ms}) must be >= base_interval_ms ({base_interval_ms})"
            )
        if multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {multiplier}")

        self.name = name
        self.base_interval_ms = base_interval_ms
        self.max_interval_ms = max_interval_ms
        self.multiplier = multiplier

        self._source = source
        self._identity = identity
        self._store = SnapshotStore(max_items)
        self._timer = timer or AsyncioTimer()
        self._clock = clock
        self._notifiers: List[ChangeNotifier] = [notifier] if notifier is not None else []

        self._state = PollState(
            current_interval_ms=base_interval_ms,
            is_suspended=lifecycle is not None and not lifecycle.is_visible,
        )
        self._pending_count = 0

        self._handle: Optional[TimerHandle] = None
        self._in_flight: Optional["asyncio.Future[None]"] = None
        self._resume_pending = False
        self._started = False
        self._destroyed = False

        self._unsubscribe = None
        if lifecycle is not None:
            self._unsubscribe = lifecycle.subscribe(self.handle_visibility_change)

    # Downstream accessors

    @property
    def snapshot(self) -> Tuple[Any, ...]:
        return self._store.items

    @property
    def has_snapshot(self) -> bool:
        return not self._store.is_empty()

    @property
    def live_status(self) -> LiveStatus:
        return self._state.live_status

    @property
    def last_fetch_at(self) -> Optional[datetime]:
        return self._state.last_fetch_at

    @property
    def last_success_at(self) -> Optional[datetime]:
        return self._state.last_success_at

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def state(self) -> PollState:
        """A copy of the current poll state."""
        return replace(self._state)

    @property
    def is_running(self) -> bool:
        return self._started and not self._destroyed

    def add_listener(
        self, listener: Union[ChangeNotifier, Callable[[Sequence[Any]], Any]]
    ) -> ChangeNotifier:
        """Register a notifier or plain callback for new items.

        Returns:
            The registered notifier, for use with remove_listener
        """
        notifier = listener if hasattr(listener, "on_new_items") else CallbackNotifier(listener)
        self._notifiers.append(notifier)
        return notifier

    def remove_listener(self, notifier: ChangeNotifier) -> None:
        if notifier in self._notifiers:
            self._notifiers.remove(notifier)

    def acknowledge(self) -> None:
        """Mark all pending items as seen."""
        self._pending_count = 0

    # Lifecycle

    async def start(self) -> None:
        """Run the cold-start fetch and begin polling.

        Raises:
            RuntimeError: If the engine has been destroyed
        """
        if self._destroyed:
            raise RuntimeError(f"Engine '{self.name}' has been destroyed")
        if self._started:
            return

        self._started = True
        logger.info(
            f"Starting '{self.name}' sync (base={self.base_interval_ms}ms, "
            f"max={self.max_interval_ms}ms, multiplier={self.multiplier})"
        )
        await self.poll_now()

    def destroy(self) -> None:
        """Stop polling for good.

        Cancels the pending timer and detaches from the lifecycle source. A
        fetch already in flight still updates the snapshot.
        """
        if self._destroyed:
            return

        self._destroyed = True
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        logger.info(f"Stopped '{self.name}' sync")

    async def poll_now(self) -> None:
        """Fetch immediately instead of waiting for the next tick.

        Only one fetch runs at a time; a call made while a fetch is in flight
        waits for that fetch instead of starting another.
        """
        if self._destroyed:
            return
        await asyncio.shield(self._begin_poll())

    async def join(self) -> None:
        """Wait for the in-flight fetch, if any, and for any fetch it hands off to."""
        while self._in_flight is not None:
            await asyncio.shield(self._in_flight)

    def handle_visibility_change(self, visible: bool) -> Optional["asyncio.Future[None]"]:
        """React to the host becoming hidden or visible.

        A resume that lands while a fetch started during the hidden period is
        still running waits for it, then polls once more without counting the
        older fetch towards backoff.

        Returns:
            The poll that serves the resume, if any. When an older fetch was
            still running this is that fetch; `join()` also waits for the
            follow-up poll.
        """
        if self._destroyed:
            return None

        if not visible:
            if self._state.is_suspended:
                return None
            self._state.is_suspended = True
            self._resume_pending = False
            logger.info(f"'{self.name}' suspended, polling every {self.max_interval_ms}ms")
            if self._in_flight is None:
                self._arm()
            else:
                # The in-flight cycle re-arms at the suspended cadence.
                self._cancel_timer()
            return None

        if not self._state.is_suspended:
            return None

        self._state.is_suspended = False
        self._state.consecutive_no_change_count = 0
        self._state.current_interval_ms = self.base_interval_ms
        self._pending_count = 0
        logger.info(f"'{self.name}' resumed, fetching now")

        if not self._started:
            return None
        if self._in_flight is not None:
            # The running fetch was started while hidden; poll again once it lands.
            self._resume_pending = True
            return self._in_flight
        return self._begin_poll()

    # Poll cycle

    async def _on_tick(self) -> None:
        self._handle = None
        await self.poll_now()

    def _begin_poll(self) -> "asyncio.Future[None]":
        if self._in_flight is None:
            self._cancel_timer()
            self._in_flight = asyncio.ensure_future(self._run_cycle())
        return self._in_flight

    async def _run_cycle(self) -> None:
        with correlation_scope("poll"):
            try:
                await self._poll_once()
            except Exception:
                logger.exception(f"Unexpected error in '{self.name}' poll cycle")
            finally:
                self._in_flight = None
                if self._resume_pending and not self._destroyed:
                    self._resume_pending = False
                    self._begin_poll()
                else:
                    self._resume_pending = False
                    self._arm()

    async def _poll_once(self) -> None:
        state = self._state
        state.last_fetch_at = self._clock()

        fetched = None
        try:
            fetched = await self._source()
        except Exception as e:
            logger.warning(f"'{self.name}' fetch raised {type(e).__name__}: {e}")

        if fetched is None:
            state.live_status = LiveStatus.OFFLINE
            logger.warning(
                f"'{self.name}' offline, retrying in {state.current_interval_ms:.0f}ms"
            )
            return

        cold_start = self._store.is_empty()
        result = reconcile(
            None if cold_start else self._store.items,
            fetched,
            max_items=self._store.max_items,
            identity=self._identity,
        )
        self._store.replace(result.updated)
        state.live_status = LiveStatus.LIVE
        state.last_success_at = state.last_fetch_at

        if cold_start:
            logger.info(f"'{self.name}' baseline established with {len(result.updated)} items")
            return

        if result.new_items:
            state.consecutive_no_change_count = 0
            state.current_interval_ms = self.base_interval_ms
            self._pending_count += len(result.new_items)
            logger.info(f"'{self.name}' found {len(result.new_items)} new item(s)")
            if not self._destroyed:
                for notifier in list(self._notifiers):
                    dispatch(notifier, result.new_items)
            return

        if self._resume_pending:
            logger.debug(f"'{self.name}' unchanged, leaving backoff to the post-resume fetch")
            return

        state.consecutive_no_change_count += 1
        state.current_interval_ms = compute_backoff_interval(
            state.consecutive_no_change_count,
            self.base_interval_ms,
            self.multiplier,
            self.max_interval_ms,
        )
        logger.debug(
            f"'{self.name}' unchanged ({state.consecutive_no_change_count} in a row), "
            f"next poll in {state.current_interval_ms:.0f}ms"
        )

    def _arm(self) -> None:
        if self._destroyed or not self._started:
            return

        self._cancel_timer()
        if self._state.is_suspended:
            delay_ms = self.max_interval_ms
        else:
            delay_ms = self._state.current_interval_ms
        self._handle = self._timer.schedule(delay_ms / 1000, self._on_tick)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
