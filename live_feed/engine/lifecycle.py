"""Host lifecycle signals.

The engine only needs to know whether the viewer is currently looking at the
feed. Hosts report that through a LifecycleEventSource.
"""

import logging
from typing import Callable, List, Protocol


logger = logging.getLogger(__name__)

VisibilityCallback = Callable[[bool], None]


class LifecycleEventSource(Protocol):
    @property
    def is_visible(self) -> bool:
        ...

    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        """Register for visibility changes and return an unsubscribe callable."""
        ...


class VisibilitySignal:
    """In-process lifecycle source driven by ``set_visible``.

    Subscribers are called synchronously, and only on actual transitions.
    """

    def __init__(self, visible: bool = True):
        self._visible = visible
        self._subscribers: List[VisibilityCallback] = []

    @property
    def is_visible(self) -> bool:
        return self._visible

    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        logger.debug(f"Visibility changed: {'visible' if visible else 'hidden'}")
        for callback in list(self._subscribers):
            callback(visible)
