"""Index readiness signal with observer notification.

Readiness starts false, flips to true when a build finishes and resets to
false when the next corpus load begins. Subscribers are called once per
transition, never for a redundant set.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import threading


logger = logging.getLogger(__name__)

ReadinessCallback = Callable[[bool], None]


class IndexReadiness:
    """Thread-safe boolean state that notifies subscribers on each transition."""

    def __init__(self) -> None:
        self._ready = False
        self._lock = threading.Lock()
        self._subscribers: list[ReadinessCallback] = []

    @property
    def is_ready(self) -> bool:
        return self._ready

    def __bool__(self) -> bool:
        return self._ready

    def subscribe(self, callback: ReadinessCallback, *, replay: bool = True) -> Callable[[], None]:
        """Register ``callback``; it receives the current state immediately when ``replay`` is set.

        Returns a function that removes the subscription.
        """

        with self._lock:
            self._subscribers.append(callback)
            current = self._ready
        if replay:
            callback(current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def mark_ready(self) -> None:
        self._set(True)

    def reset(self) -> None:
        self._set(False)

    def _set(self, value: bool) -> None:
        with self._lock:
            if self._ready == value:
                return
            self._ready = value
            subscribers = list(self._subscribers)
        logger.debug("Index readiness -> %s (%d subscriber(s))", value, len(subscribers))
        for callback in subscribers:
            callback(value)
