"""Abstract interfaces for the training layer.

Follows Dependency Inversion: the high-level PuzzleTrainer depends on
these ABCs, not on python-chess or a concrete timer implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, StrEnum, auto

from chessdrill.core.enums import Color

# ── Trainer FSM states ───────────────────────────────────────────────────────


class TrainerPhase(IntEnum):
    """Finite-state-machine states of one puzzle traversal."""

    IDLE = auto()
    AUTO_PLAYING_OPPONENT = auto()
    AWAITING_PLAYER_MOVE = auto()
    ENTERING_VARIATION = auto()
    EXITING_VARIATION = auto()
    AUTO_PLAYING_BAD_LINE = auto()
    COMPLETED = auto()


class TrainerStatus(StrEnum):
    """Status notifications emitted to the presentation layer."""

    YOUR_TURN = "your_turn"
    INCORRECT = "incorrect"
    ENTERING_VARIATION = "entering_variation"
    EXITING_VARIATION = "exiting_variation"
    RETURN_TO_MAINLINE = "return_to_mainline"
    PLAYER_BAD_VARIATION = "player_bad_variation"
    PLAYER_GOOD_VARIATION = "player_good_variation"


class MoveOutcome(StrEnum):
    """How a player move attempt was classified."""

    CORRECT = "correct"
    GOOD_LINE = "good_line"
    BAD_LINE = "bad_line"
    INCORRECT = "incorrect"
    ILLEGAL = "illegal"
    REJECTED = "rejected"  # not the player's turn to move


class SessionEndReason(StrEnum):
    EXHAUSTED = "exhausted"
    TIMEOUT = "timeout"
    MANUAL = "manual"


# ── Rules engine ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class AppliedMove:
    """A move the rules engine accepted and applied."""

    san: str
    from_square: str
    to_square: str
    is_capture: bool = False


class IRulesEngine(ABC):
    """Interface for move legality and position keeping."""

    @abstractmethod
    def load(self, fen: str | None = None) -> None:
        """Set up *fen*, or the standard start when ``None``.

        Raises ``ValueError`` for an invalid position string.
        """

    @abstractmethod
    def fen(self) -> str:
        """Export the current position."""

    @abstractmethod
    def turn(self) -> Color:
        """Side to move."""

    @abstractmethod
    def push_san(self, san: str) -> AppliedMove | None:
        """Apply a SAN move. Returns ``None`` if it is illegal."""

    @abstractmethod
    def push_squares(
        self, from_square: str, to_square: str, promotion: str | None = None
    ) -> AppliedMove | None:
        """Apply a move given by squares. Returns ``None`` if it is illegal."""

    @abstractmethod
    def undo(self) -> None:
        """Take back the last applied move."""

    @abstractmethod
    def legal_moves(self) -> list[str]:
        """All legal moves in SAN."""


# ── Scheduler ────────────────────────────────────────────────────────────────


class ITimerHandle(ABC):
    """A pending delayed callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from firing. Safe to call more than once."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until the callback has fired or been cancelled."""


class IScheduler(ABC):
    """Fire-once delayed callbacks on a single logical timeline."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ITimerHandle:
        """Run *callback* once after *delay_ms* milliseconds."""
