from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def thread_timer(seconds: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class Debouncer:
    """Restartable one-shot timer.

    ``trigger()`` (re)starts the countdown; ``callback`` runs once the
    countdown elapses with no further trigger. ``cancel()`` drops a pending
    countdown. A timer that fires after being superseded is ignored.
    """

    def __init__(
        self,
        wait_ms: int,
        callback: Callable[[], None],
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.wait_ms = max(0, wait_ms)
        self._callback = callback
        self._timer_factory = timer_factory or thread_timer
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._timer = self._timer_factory(self.wait_ms / 1000, lambda: self._fire(generation))

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self._callback()
