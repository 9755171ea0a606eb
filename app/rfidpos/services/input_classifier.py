from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from app.rfidpos.services.debounce import Debouncer, TimerFactory

logger = logging.getLogger("rfidpos.input")

SOURCE_MANUAL = "manual"
SOURCE_READER = "reader"


class InputMode(str, Enum):
    MANUAL = "MANUAL"
    READER_BURST = "READER_BURST"


@dataclass(frozen=True)
class ClassifierState:
    mode: InputMode
    buffer: str
    last_event_at: float | None
    auto_submit_pending: bool


class InputClassifier:
    """Tells a keyboard-wedge reader burst apart from human typing.

    A value that grew by more than one character since the last observed
    value is a reader burst; the buffer is then submitted automatically once
    input has been quiet for ``debounce_ms``. Anything else is manual input and
    waits for ``confirm()``. A one-character paste looks like typing and is
    classified as manual.
    """

    def __init__(
        self,
        submit: Callable[[str, str], object],
        *,
        debounce_ms: int = 100,
        clock: Callable[[], float] | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._submit = submit
        self._clock = clock or time.monotonic
        self._debouncer = Debouncer(debounce_ms, self._on_quiescent, timer_factory)
        self._lock = threading.RLock()
        self._mode = InputMode.MANUAL
        self._buffer = ""
        self._last_event_at: float | None = None

    @property
    def mode(self) -> InputMode:
        return self._mode

    @property
    def buffer(self) -> str:
        return self._buffer

    def state(self) -> ClassifierState:
        with self._lock:
            return ClassifierState(
                mode=self._mode,
                buffer=self._buffer,
                last_event_at=self._last_event_at,
                auto_submit_pending=self._debouncer.pending,
            )

    def on_input(self, value: str) -> InputMode:
        with self._lock:
            burst = len(value) > len(self._buffer) + 1
            if burst and self._mode is not InputMode.READER_BURST:
                logger.info("RFID reader detected, automatic scan mode")
            self._mode = InputMode.READER_BURST if burst else InputMode.MANUAL
            self._buffer = value
            self._last_event_at = self._clock()
            if self._mode is InputMode.READER_BURST and value:
                self._debouncer.trigger()
            else:
                self._debouncer.cancel()
            return self._mode

    def confirm(self):
        """Manual submission (Enter key / scan button).

        Returns what ``submit`` returned, or None when the buffer was blank.
        """
        with self._lock:
            value = self._buffer.strip()
            source = SOURCE_READER if self._mode is InputMode.READER_BURST else SOURCE_MANUAL
            self._debouncer.cancel()
            return self._submit_and_reset(value, source)

    def reset(self) -> None:
        with self._lock:
            self._debouncer.cancel()
            self._mode = InputMode.MANUAL
            self._buffer = ""
            self._last_event_at = None

    def _on_quiescent(self) -> None:
        with self._lock:
            if self._mode is not InputMode.READER_BURST:
                return
            self._submit_and_reset(self._buffer.strip(), SOURCE_READER)

    def _submit_and_reset(self, value: str, source: str):
        try:
            if not value:
                return None
            return self._submit(value, source)
        finally:
            self._mode = InputMode.MANUAL
            self._buffer = ""
            self._last_event_at = None
