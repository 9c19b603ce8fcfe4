from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date

from shiftboard.config import get_settings
from shiftboard.errors import RequestInProgressError

logger = logging.getLogger(__name__)

IN_PROGRESS_MESSAGE = "Request already in progress, try again in a moment"


class SubmissionGuard:
    """Process-local, short-lived lock table keyed by request identity.

    An entry older than ``duration`` seconds is stale and gets overwritten by the
    next ``acquire``, so a request that died without releasing blocks its key for
    at most one lock duration. Only covers a single backend process.
    """

    def __init__(self, duration: float = 2.0, clock: Callable[[], float] = time.monotonic):
        self.duration = duration
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._mutex = threading.Lock()

    def acquire(self, key: str) -> bool:
        now = self._clock()
        with self._mutex:
            acquired_at = self._entries.get(key)
            if acquired_at is not None and now - acquired_at < self.duration:
                return False
            self._entries[key] = now
            return True

    def release(self, key: str) -> None:
        with self._mutex:
            self._entries.pop(key, None)

    def is_held(self, key: str) -> bool:
        now = self._clock()
        with self._mutex:
            acquired_at = self._entries.get(key)
            return acquired_at is not None and now - acquired_at < self.duration

    def clear(self) -> None:
        with self._mutex:
            self._entries.clear()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        if not self.acquire(key):
            logger.warning("Duplicate submission rejected for %s", key)
            raise RequestInProgressError(IN_PROGRESS_MESSAGE)
        try:
            yield
        finally:
            self.release(key)


def preference_key(employee_id: str, day: date) -> str:
    return f"pref:{employee_id}:{day.isoformat()}"


def shift_key(employee_id: str, day: date, start: str, end: str) -> str:
    return f"shift:{employee_id}:{day.isoformat()}:{start}:{end}"


def revenue_key(day: date) -> str:
    return f"revenue:{day.isoformat()}"


def time_log_key(employee_id: str, day: date, position: str) -> str:
    return f"timelog:{employee_id}:{day.isoformat()}:{position}"


_guard: SubmissionGuard | None = None


def get_guard() -> SubmissionGuard:
    global _guard
    if _guard is None:
        _guard = SubmissionGuard(duration=get_settings().submission_lock_seconds)
    return _guard


def reset_guard(guard: SubmissionGuard | None = None) -> SubmissionGuard:
    global _guard
    _guard = guard
    return get_guard()
