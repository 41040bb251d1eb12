"""Training layer: trainer state machine, rules adapter, schedulers, clock.

Quick start::

    from chessdrill.core import parse_games
    from chessdrill.game import ChessRulesEngine, ManualScheduler, PuzzleTrainer

    scheduler = ManualScheduler()
    trainer = PuzzleTrainer(ChessRulesEngine(), scheduler, clock=scheduler.now)
    trainer.load_puzzles(parse_games(pgn_text))
    trainer.start_puzzle(0)
    trainer.attempt_san("e4")
    scheduler.run_until_idle()

The Qt scheduler lives in :mod:`chessdrill.game.qt_bridge` so importing
this package does not pull in PyQt6.
"""

from chessdrill.game.clock import ClockSnapshot, SessionClock
from chessdrill.game.interfaces import (
    AppliedMove,
    IRulesEngine,
    IScheduler,
    ITimerHandle,
    MoveOutcome,
    SessionEndReason,
    TrainerPhase,
    TrainerStatus,
)
from chessdrill.game.rules import ChessRulesEngine
from chessdrill.game.scheduler import ManualScheduler
from chessdrill.game.settings import TrainerSettings
from chessdrill.game.state import (
    MoveCompleted,
    PuzzleAttempt,
    PuzzleComplete,
    PuzzleStart,
    SessionComplete,
    SessionStats,
    StatusChange,
    TraversalFrame,
)
from chessdrill.game.trainer import PuzzleTrainer, TrainerEvents

__all__ = [
    # Interfaces
    "AppliedMove",
    "IRulesEngine",
    "IScheduler",
    "ITimerHandle",
    "MoveOutcome",
    "SessionEndReason",
    "TrainerPhase",
    "TrainerStatus",
    # Concrete
    "ChessRulesEngine",
    "ClockSnapshot",
    "ManualScheduler",
    "PuzzleTrainer",
    "SessionClock",
    "TrainerEvents",
    "TrainerSettings",
    # Records / events
    "MoveCompleted",
    "PuzzleAttempt",
    "PuzzleComplete",
    "PuzzleStart",
    "SessionComplete",
    "SessionStats",
    "StatusChange",
    "TraversalFrame",
]
