"""Tests for the QTimer-backed scheduler."""

from __future__ import annotations

from PyQt6.QtTest import QTest

from chessdrill.game.qt_bridge import QtScheduler


class TestQtScheduler:
    def test_callback_fires(self, qapp: object) -> None:
        scheduler = QtScheduler()
        fired: list[int] = []
        handle = scheduler.call_later(0, lambda: fired.append(1))
        assert scheduler.pending_count == 1

        QTest.qWait(50)
        assert fired == [1]
        assert not handle.active
        assert scheduler.pending_count == 0

    def test_cancelled_callback_does_not_fire(self, qapp: object) -> None:
        scheduler = QtScheduler()
        fired: list[int] = []
        handle = scheduler.call_later(10, lambda: fired.append(1))
        handle.cancel()
        assert scheduler.pending_count == 0

        QTest.qWait(50)
        assert fired == []

    def test_cancel_all(self, qapp: object) -> None:
        scheduler = QtScheduler()
        fired: list[int] = []
        for n in range(3):
            scheduler.call_later(10, lambda n=n: fired.append(n))
        scheduler.cancel_all()

        QTest.qWait(50)
        assert fired == []
        assert scheduler.pending_count == 0
