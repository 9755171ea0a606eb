from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app.rfidpos.core.logging import log_event
from app.rfidpos.repos.activity_log import ActivityLogRepository

logger = logging.getLogger("rfidpos.activity")


def format_line(message: str, at: datetime) -> str:
    return f"[{at.strftime('%H:%M:%S')}] {message}"


class ActivityLog:
    """Operator-facing activity log.

    Every line stays in memory for the lifetime of the process; durable
    storage only keeps the most recent ``durable_limit`` lines. A failed
    durable write is logged and never interrupts the caller.
    """

    def __init__(
        self,
        session_factory,
        *,
        durable_limit: int = 100,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.durable_limit = max(1, durable_limit)
        self._now = now or datetime.now
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def load(self) -> list[str]:
        with self._session_factory() as db:
            lines = ActivityLogRepository(db).list_lines()
        with self._lock:
            self._lines = list(lines)
        return list(lines)

    def add(self, message: str) -> str:
        line = format_line(message, self._now())
        with self._lock:
            self._lines.append(line)
        log_event(logger, "activity", message=message)
        try:
            with self._session_factory() as db:
                repo = ActivityLogRepository(db)
                repo.append(line)
                repo.trim(self.durable_limit)
                db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist activity log line")
        return line

    def lines(self, limit: int | None = None) -> list[str]:
        with self._lock:
            if limit is None:
                return list(self._lines)
            return self._lines[-limit:] if limit > 0 else []

    def stage_replace(self, db, lines: list[str]) -> None:
        # Durable half of an import; the caller commits, then calls reset().
        ActivityLogRepository(db).replace_all(lines[-self.durable_limit:])

    def reset(self, lines: list[str] | None = None) -> None:
        with self._lock:
            self._lines = list(lines or [])
