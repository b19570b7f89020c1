"""Deferred callbacks used to pace shot resolution.

GameSession never sleeps. It hands each delayed step to a scheduler, which
decides when the step actually runs:

• ImmediateScheduler – run now, in FIFO order, without recursion
• ManualScheduler    – run when the owner advances a virtual clock
• ThreadingScheduler – run on a daemon ``threading.Timer``
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Tuple

from typing_extensions import Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    def call_later(self, delay: float, fn: Callback) -> None:
        ...


class ImmediateScheduler:
    """Ignore delays and run callbacks straight away.

    A callback scheduled from inside another callback is queued and run after
    it returns, so a long chain of AI shots stays flat on the stack.
    """

    def __init__(self) -> None:
        self._pending: Deque[Callback] = deque()
        self._draining = False

    def call_later(self, delay: float, fn: Callback) -> None:
        self._pending.append(fn)
        if self._draining:
            return
        self._draining = True
        try:
            while self._pending:
                self._pending.popleft()()
        finally:
            self._draining = False
            self._pending.clear()


class ManualScheduler:
    """Virtual clock for tests: nothing runs until ``advance()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._heap: List[Tuple[float, int, Callback]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, fn: Callback) -> None:
        heapq.heappush(self._heap, (self.now + max(delay, 0.0), next(self._counter), fn))

    @property
    def pending(self) -> int:
        return len(self._heap)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run every callback now due; return how many ran."""
        target = self.now + seconds
        ran = 0
        while self._heap and self._heap[0][0] <= target:
            due, _, fn = heapq.heappop(self._heap)
            self.now = due
            fn()
            ran += 1
        self.now = target
        return ran

    def run_all(self, limit: int = 100_000) -> int:
        """Run callbacks until none are left (or *limit* is hit)."""
        ran = 0
        while self._heap and ran < limit:
            due, _, fn = heapq.heappop(self._heap)
            self.now = max(self.now, due)
            fn()
            ran += 1
        return ran


class ThreadingScheduler:
    """Real-time pacing on daemon timer threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    def call_later(self, delay: float, fn: Callback) -> None:
        timer = threading.Timer(max(delay, 0.0), self._run, args=(fn,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()

    def _run(self, fn: Callback) -> None:
        try:
            fn()
        except Exception:
            # Timer threads have no caller to propagate to.
            logger.exception("scheduled callback %r failed", fn)

    def shutdown(self) -> None:
        """Cancel timers that have not fired yet."""
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers.clear()
