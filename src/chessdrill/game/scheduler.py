"""Virtual-time scheduler.

:class:`ManualScheduler` keeps a virtual clock that only moves when told
to, which makes every trainer transition deterministic in tests and in
`--fast` drills. Live drills use :class:`~chessdrill.game.qt_bridge.QtScheduler`.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable

from chessdrill.game.interfaces import IScheduler, ITimerHandle


class ManualTimerHandle(ITimerHandle):
    __slots__ = ("due_ms", "callback", "_active")

    def __init__(self, due_ms: int, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self._active = True

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def fire(self) -> None:
        if not self._active:
            return
        self._active = False
        self.callback()


class ManualScheduler(IScheduler):
    """Virtual-time scheduler. Callbacks run in due order, then FIFO."""

    __slots__ = ("_now_ms", "_queue", "_seq")

    def __init__(self) -> None:
        self._now_ms = 0
        self._queue: list[tuple[int, int, ManualTimerHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now_ms + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    # ── Clock ────────────────────────────────────────────────────────────

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def now(self) -> float:
        """Virtual time in seconds, usable as a trainer clock."""
        return self._now_ms / 1000.0

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    # ── Driving ──────────────────────────────────────────────────────────

    def _drop_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)

    def next_due_ms(self) -> int | None:
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def run_next(self) -> bool:
        """Jump to the earliest pending callback and fire it."""
        due = self.next_due_ms()
        if due is None:
            return False
        _, _, handle = heapq.heappop(self._queue)
        self._now_ms = max(self._now_ms, due)
        handle.fire()
        return True

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward, firing everything that becomes due.

        Returns the number of callbacks fired.
        """
        target = self._now_ms + delta_ms
        fired = 0
        while (due := self.next_due_ms()) is not None and due <= target:
            self.run_next()
            fired += 1
        self._now_ms = target
        return fired

    def run_until_idle(
        self,
        max_callbacks: int = 10_000,
        stop: Callable[[], bool] | None = None,
    ) -> int:
        """Fire callbacks until none are pending or *stop* returns true."""
        fired = 0
        while fired < max_callbacks:
            if stop is not None and stop():
                break
            if not self.run_next():
                break
            fired += 1
        return fired
