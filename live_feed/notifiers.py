"""Change notifiers.

A notifier receives the list of genuinely new items after each poll. The engine
makes no assumption about what a notifier does and never waits on it: a
notifier that returns an awaitable is scheduled as a background task.
"""

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Protocol, Sequence, Set

if TYPE_CHECKING:
    from live_feed.engine.lifecycle import LifecycleEventSource


logger = logging.getLogger(__name__)

# Strong references to fire-and-forget notifier tasks
_background_tasks: Set[asyncio.Future] = set()


class ChangeNotifier(Protocol):
    def on_new_items(self, items: Sequence[Any]) -> Any:
        ...


def dispatch(notifier: ChangeNotifier, items: Sequence[Any]) -> None:
    """Deliver ``items`` to ``notifier`` without blocking or raising."""
    try:
        result = notifier.on_new_items(items)
    except Exception:
        logger.exception(f"Notifier {notifier!r} failed")
        return

    if inspect.isawaitable(result):
        task = asyncio.ensure_future(result)
        _background_tasks.add(task)
        task.add_done_callback(_finish_background_task)


def _finish_background_task(task: asyncio.Future) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Async notifier failed: {error}", exc_info=error)


class CallbackNotifier:
    """Adapts a plain callable (sync or async) to the notifier interface."""

    def __init__(self, callback: Callable[[Sequence[Any]], Any]):
        self.callback = callback

    def on_new_items(self, items: Sequence[Any]) -> Any:
        return self.callback(items)

    def __repr__(self) -> str:
        return f"CallbackNotifier({getattr(self.callback, '__name__', self.callback)!r})"


class LoggingNotifier:
    """Logs every new item."""

    def __init__(self, logger_name: str = "live_feed.activity"):
        self._logger = logging.getLogger(logger_name)

    def on_new_items(self, items: Sequence[Any]) -> None:
        self._logger.info(f"{len(items)} new item(s)")
        for item in items:
            title = getattr(item, "title", None)
            self._logger.info(f"  + {title if title is not None else item}")


class VisibilityGatedNotifier:
    """Forwards to ``inner`` only while the host is visible.

    Items that arrive while hidden are dropped here; the engine still counts
    them as pending.
    """

    def __init__(self, inner: ChangeNotifier, lifecycle: "LifecycleEventSource"):
        self.inner = inner
        self.lifecycle = lifecycle

    def on_new_items(self, items: Sequence[Any]) -> None:
        if not self.lifecycle.is_visible:
            logger.debug(f"Host hidden, suppressing notification of {len(items)} item(s)")
            return
        dispatch(self.inner, items)


class CompositeNotifier:
    """Fans out to several notifiers; one failing never affects the others."""

    def __init__(self, notifiers: Iterable[ChangeNotifier] = ()):
        self.notifiers: List[ChangeNotifier] = list(notifiers)

    def add(self, notifier: ChangeNotifier) -> None:
        self.notifiers.append(notifier)

    def remove(self, notifier: ChangeNotifier) -> None:
        if notifier in self.notifiers:
            self.notifiers.remove(notifier)

    def on_new_items(self, items: Sequence[Any]) -> None:
        for notifier in list(self.notifiers):
            dispatch(notifier, items)
