# student_search/debounce.py
from __future__ import annotations

"""
Debounced query controller.

Raw input values arrive once per keystroke; a committed query is emitted
only after ``delay`` seconds pass with no new input. Clearing the input
commits ``""`` straight away and cancels any pending timer.

Timers come from a scheduler: anything with ``call_later(delay, callback)``
returning a handle with ``cancel()``. An ``asyncio`` event loop fits, as do
the two schedulers below.
"""

import heapq
import itertools
import threading
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

from loguru import logger

from . import config
from .normalize import clean_query


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Wall-clock scheduler on ``threading.Timer``."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock: timers fire only when ``advance`` moves time past them.
    Used for tests and for replaying recorded keystrokes.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, callback))
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if not handle.cancelled:
                callback()
        self.now = target

    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)


class ControllerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class DebouncedQueryController:
    """
    Idle --input--> Pending --input--> Pending (timer restarted)
    Pending --timer--> Idle, emitting the latest input
    any --empty input--> Idle, emitting "" immediately
    """

    def __init__(
        self,
        on_commit: Callable[[str], None],
        delay: float = config.DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        if delay <= 0:
            raise ValueError(f"delay must be positive, got {delay}")
        self._on_commit = on_commit
        self.delay = delay
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._last_raw = ""
        self._closed = False

    @property
    def state(self) -> ControllerState:
        return ControllerState.PENDING if self._handle is not None else ControllerState.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_raw(self) -> str:
        return self._last_raw

    def on_input(self, raw: Optional[str]) -> None:
        with self._lock:
            if self._closed:
                logger.debug("Ignoring input on closed controller: {!r}", raw)
                return
            self._last_raw = raw or ""
            self._cancel_timer()
            if not clean_query(raw):
                emit = True
            else:
                emit = False
                self._generation += 1
                gen = self._generation
                self._handle = self._scheduler.call_later(self.delay, lambda: self._fire(gen))
        if emit:
            self._on_commit("")

    def flush(self) -> bool:
        """Commit a pending query now. Returns False when nothing was pending."""
        with self._lock:
            if self._handle is None or self._closed:
                return False
            gen = self._generation
        self._fire(gen)
        return True

    def cancel(self) -> None:
        """Drop a pending commit without emitting it."""
        with self._lock:
            self._cancel_timer()

    def close(self) -> None:
        """Tear down: cancel the timer and stop emitting for good."""
        with self._lock:
            self._cancel_timer()
            self._closed = True

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            # stale timers (superseded or cancelled) must not emit
            if self._closed or generation != self._generation or self._handle is None:
                return
            self._handle.cancel()
            self._handle = None
            committed = clean_query(self._last_raw)
        self._on_commit(committed)
