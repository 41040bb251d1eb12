"""Traversal context, attempt records and trainer event payloads."""

from __future__ import annotations

from dataclasses import dataclass, field

from chessdrill.core.enums import Color
from chessdrill.core.notation.models import Arrow, Highlight, MoveNode
from chessdrill.game.interfaces import SessionEndReason, TrainerPhase, TrainerStatus


@dataclass(slots=True)
class TraversalFrame:
    """Saved context pushed when traversal leaves a move sequence.

    ``fen`` is the position to restore when the frame is popped: the
    position *before* the branched move.
    """

    moves: list[MoveNode]
    index: int
    fen: str
    pending: list[list[MoveNode]] = field(default_factory=list)
    total_variations: int = 0
    variations_done: bool = True
    player_initiated: bool = False


@dataclass(frozen=True, slots=True)
class PuzzleAttempt:
    """One finished (or abandoned) puzzle."""

    puzzle_index: int
    solved: bool
    elapsed_ms: int
    mistakes: int


@dataclass(frozen=True, slots=True)
class SessionStats:
    attempted: int
    solved: int
    elapsed_seconds: int
    puzzles_per_minute: float
    success_rate: float


# ── Event payloads ───────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PuzzleStart:
    puzzle_index: int
    total_puzzles: int
    player_color: Color


@dataclass(frozen=True, slots=True)
class MoveCompleted:
    san: str
    from_square: str
    to_square: str
    move_index: int
    is_capture: bool = False
    correct: bool | None = None  # None for auto-played moves
    # Annotations of the recorded move
    symbols: str = ""
    comment: str = ""
    arrows: tuple[Arrow, ...] = ()
    highlights: tuple[Highlight, ...] = ()


@dataclass(frozen=True, slots=True)
class StatusChange:
    status: TrainerStatus
    phase: TrainerPhase
    move_index: int = 0
    is_variation: bool = False
    mistakes: int = 0
    variation_number: int = 0
    total_variations: int = 0


@dataclass(frozen=True, slots=True)
class PuzzleComplete:
    attempt: PuzzleAttempt
    total_attempts: int
    total_solved: int
    partial: bool = False
    skipped: bool = False

    @property
    def solved(self) -> bool:
        return self.attempt.solved


@dataclass(frozen=True, slots=True)
class SessionComplete:
    reason: SessionEndReason
    duration_seconds: int
    attempts: tuple[PuzzleAttempt, ...]

    @property
    def puzzles_attempted(self) -> int:
        return len(self.attempts)

    @property
    def puzzles_solved(self) -> int:
        return sum(1 for attempt in self.attempts if attempt.solved)
