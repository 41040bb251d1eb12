"""Session countdown and puzzle stopwatch."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

TimeSource = Callable[[], float]


@dataclass(frozen=True, slots=True)
class ClockSnapshot:
    """Serializable clock state."""

    elapsed: float
    is_running: bool
    is_paused: bool


class SessionClock:
    """Countdown for a training session.

    Paused spans do not count towards elapsed time. Time comes from
    *time_source* (``time.monotonic`` by default) so tests can drive it
    from a virtual scheduler clock.
    """

    __slots__ = (
        "_duration",
        "_time_source",
        "_started_at",
        "_paused_at",
        "_paused_total",
        "_stopped_elapsed",
    )

    def __init__(self, duration_seconds: float, time_source: TimeSource | None = None) -> None:
        self._duration = duration_seconds
        self._time_source = time_source or time.monotonic
        self._started_at: float | None = None
        self._paused_at: float | None = None
        self._paused_total = 0.0
        self._stopped_elapsed: float | None = None

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def is_running(self) -> bool:
        return self._started_at is not None and self._stopped_elapsed is None

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    def start(self) -> None:
        self._started_at = self._time_source()
        self._paused_at = None
        self._paused_total = 0.0
        self._stopped_elapsed = None

    def stop(self) -> None:
        if self.is_running:
            self._stopped_elapsed = self.elapsed()

    def pause(self) -> None:
        if self.is_running and self._paused_at is None:
            self._paused_at = self._time_source()

    def resume(self) -> None:
        if self._paused_at is not None:
            self._paused_total += self._time_source() - self._paused_at
            self._paused_at = None

    def elapsed(self) -> float:
        if self._stopped_elapsed is not None:
            return self._stopped_elapsed
        if self._started_at is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else self._time_source()
        return max(0.0, now - self._started_at - self._paused_total)

    def remaining(self) -> float:
        return max(0.0, self._duration - self.elapsed())

    def is_expired(self) -> bool:
        return self.remaining() <= 0.0

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            elapsed=self.elapsed(),
            is_running=self.is_running,
            is_paused=self.is_paused,
        )
