"""Shared fixtures and fakes for unit tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import pytest

from live_feed.models.schemas import FeedCategory, FeedItem


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    # The engine schedules with asyncio's loop timers
    return "asyncio"


def make_item(item_id: str, minutes_ago: int = 0, category: FeedCategory = FeedCategory.COMMIT) -> FeedItem:
    return FeedItem(
        id=item_id,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        category=category,
        title=f"Item {item_id}",
        source="git",
    )


def make_items(*item_ids: str) -> List[FeedItem]:
    return [make_item(item_id, minutes_ago=i) for i, item_id in enumerate(item_ids)]


class FakeTimerHandle:
    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimer:
    """Manual timer: nothing fires until a test calls ``fire``."""

    def __init__(self):
        self.scheduled: List[FakeTimerHandle] = []

    def schedule(self, delay_seconds: float, callback) -> FakeTimerHandle:
        handle = FakeTimerHandle(delay_seconds, callback)
        self.scheduled.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [h for h in self.scheduled if not h.cancelled and not h.fired]

    @property
    def next_delay(self) -> Optional[float]:
        pending = self.pending
        assert len(pending) <= 1, f"More than one pending timer: {pending}"
        return pending[0].delay if pending else None

    async def fire(self) -> None:
        pending = self.pending
        assert len(pending) == 1, f"Expected exactly one pending timer, found {len(pending)}"
        handle = pending[0]
        handle.fired = True
        await handle.callback()


class FakeSource:
    """Async source returning queued responses; the last one repeats.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls = 0

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def __call__(self):
        self.calls += 1
        if len(self.responses) > 1:
            response = self.responses.pop(0)
        else:
            response = self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class GatedSource:
    """Async source that blocks until its gate is opened."""

    def __init__(self, result: Any):
        self.result = result
        self.calls = 0
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    async def __call__(self):
        self.calls += 1
        self.entered.set()
        await self.gate.wait()
        return self.result


class RecordingNotifier:
    def __init__(self):
        self.batches: List[List[Any]] = []

    def on_new_items(self, items) -> None:
        self.batches.append(list(items))

    @property
    def ids(self) -> List[List[str]]:
        return [[item.id for item in batch] for batch in self.batches]


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def recorder() -> RecordingNotifier:
    return RecordingNotifier()
