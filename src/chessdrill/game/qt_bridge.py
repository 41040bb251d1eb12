"""Qt event-loop scheduler backed by single-shot ``QTimer`` objects."""

from __future__ import annotations

from collections.abc import Callable

from PyQt6.QtCore import QObject, QTimer

from chessdrill.game.interfaces import IScheduler, ITimerHandle


class QtTimerHandle(ITimerHandle):
    __slots__ = ("_timer", "_active", "_on_done")

    def __init__(self, timer: QTimer, on_done: Callable[[QtTimerHandle], None]) -> None:
        self._timer = timer
        self._active = True
        self._on_done = on_done

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._timer.stop()
        self._on_done(self)

    @property
    def active(self) -> bool:
        return self._active

    def _fire(self, callback: Callable[[], None]) -> None:
        if not self._active:
            return
        self._active = False
        self._on_done(self)
        callback()


class QtScheduler(IScheduler):
    """Schedules trainer callbacks on the thread owning *parent*.

    Pending timers are kept referenced until they fire or are cancelled so
    Python's GC cannot collect them early.
    """

    __slots__ = ("_parent", "_handles")

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent
        self._handles: dict[QtTimerHandle, QTimer] = {}

    @property
    def pending_count(self) -> int:
        return len(self._handles)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        handle = QtTimerHandle(timer, self._release)
        timer.timeout.connect(lambda: handle._fire(callback))
        self._handles[handle] = timer
        timer.start(max(0, int(delay_ms)))
        return handle

    def cancel_all(self) -> None:
        for handle in list(self._handles):
            handle.cancel()

    def _release(self, handle: QtTimerHandle) -> None:
        timer = self._handles.pop(handle, None)
        if timer is not None:
            timer.deleteLater()
