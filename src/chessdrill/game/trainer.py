"""PuzzleTrainer: replays annotated games as move-finding drills.

Coordinates: rules engine, scheduler, session clock and the traversal
stack. Emits events via simple callbacks so the UI / tests can subscribe.

Traversal walks a ``(moves, index)`` pair. Entering a variation pushes a
:class:`TraversalFrame` and swaps the pair wholesale; exhausting a
sequence pops the frame and restores it. Every step that waits (opponent
replies, variation pauses, refutation playback) goes through the injected
scheduler, so a session can be driven deterministically.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass, field

from chessdrill.core.enums import Color
from chessdrill.core.notation.models import GameRecord, MoveNode
from chessdrill.core.notation.san import same_move
from chessdrill.game.clock import SessionClock, TimeSource
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

_LOGGER = logging.getLogger(__name__)

# ── Event definitions ────────────────────────────────────────────────────────

PuzzleStartCallback = Callable[[PuzzleStart], None]
MoveCallback = Callable[[MoveCompleted], None]
StatusCallback = Callable[[StatusChange], None]
PuzzleCompleteCallback = Callable[[PuzzleComplete], None]
SessionCompleteCallback = Callable[[SessionComplete], None]
TimerCallback = Callable[[int], None]  # remaining seconds


@dataclass
class TrainerEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_puzzle_start: list[PuzzleStartCallback] = field(default_factory=list)
    on_move: list[MoveCallback] = field(default_factory=list)
    on_status: list[StatusCallback] = field(default_factory=list)
    on_puzzle_complete: list[PuzzleCompleteCallback] = field(default_factory=list)
    on_session_complete: list[SessionCompleteCallback] = field(default_factory=list)
    on_timer: list[TimerCallback] = field(default_factory=list)


# ── Trainer ──────────────────────────────────────────────────────────────────


class PuzzleTrainer:
    """Drives one training session over a list of parsed games.

    Thread-safety: all methods and scheduled callbacks must run on one
    thread (the scheduler's). The parsed games are never mutated and may
    be shared between trainers; everything else here is per-session.
    """

    __slots__ = (
        "_rules",
        "_scheduler",
        "_settings",
        "_time",
        "_session_clock",
        "_puzzles",
        "_attempts",
        "_puzzle_index",
        "_moves",
        "_index",
        "_stack",
        "_variations_done",
        "_player_color",
        "_mistakes",
        "_moves_played",
        "_puzzle_started_at",
        "_phase",
        "_active",
        "_paused",
        "_session_running",
        "_ended",
        "_pending",
        "_tick",
        "_generation",
        "events",
    )

    def __init__(
        self,
        rules: IRulesEngine,
        scheduler: IScheduler,
        settings: TrainerSettings | None = None,
        clock: TimeSource | None = None,
    ) -> None:
        self._rules = rules
        self._scheduler = scheduler
        self._settings = settings or TrainerSettings()
        self._time = clock or time.monotonic
        self._session_clock = SessionClock(self._settings.session_seconds, self._time)
        self._puzzles: list[GameRecord] = []
        self._attempts: list[PuzzleAttempt] = []
        self._pending: ITimerHandle | None = None
        self._tick: ITimerHandle | None = None
        self._generation = 0
        self._active = False
        self._paused = False
        self._session_running = False
        self._ended = False
        self._clear_puzzle_state()
        self.events = TrainerEvents()

    def _clear_puzzle_state(self) -> None:
        self._puzzle_index = -1
        self._moves: list[MoveNode] = []
        self._index = 0
        self._stack: list[TraversalFrame] = []
        self._variations_done = False
        self._player_color = Color.WHITE
        self._mistakes = 0
        self._moves_played = 0
        self._puzzle_started_at = 0.0
        self._phase = TrainerPhase.IDLE

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def rules(self) -> IRulesEngine:
        return self._rules

    @property
    def settings(self) -> TrainerSettings:
        return self._settings

    @property
    def session_clock(self) -> SessionClock:
        return self._session_clock

    @property
    def phase(self) -> TrainerPhase:
        return self._phase

    @property
    def puzzle_index(self) -> int:
        return self._puzzle_index

    @property
    def puzzle_count(self) -> int:
        return len(self._puzzles)

    @property
    def player_color(self) -> Color:
        return self._player_color

    @property
    def mistakes(self) -> int:
        return self._mistakes

    @property
    def move_index(self) -> int:
        return self._index

    @property
    def current_moves(self) -> list[MoveNode]:
        return self._moves

    @property
    def stack_depth(self) -> int:
        return len(self._stack)

    @property
    def is_in_variation(self) -> bool:
        return bool(self._stack)

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def attempts(self) -> tuple[PuzzleAttempt, ...]:
        return tuple(self._attempts)

    @property
    def expected_move(self) -> MoveNode | None:
        """The move the player must find, while one is awaited."""
        if self._phase != TrainerPhase.AWAITING_PLAYER_MOVE:
            return None
        if self._index >= len(self._moves):
            return None
        return self._moves[self._index]

    def hint(self) -> str | None:
        node = self.expected_move
        return node.san if node is not None else None

    # ── Puzzle selection ─────────────────────────────────────────────────

    def load_puzzles(self, games: Iterable[GameRecord]) -> None:
        self._puzzles = list(games)

    def next_puzzle_index(self, solved: Collection[int] = ()) -> int:
        """First puzzle not in *solved*, or -1 when all are done."""
        for idx in range(len(self._puzzles)):
            if idx not in solved:
                return idx
        return -1

    def start_next_puzzle(self, solved: Collection[int] = ()) -> bool:
        """Start the next unsolved puzzle; end the session when none remain."""
        excluded = set(solved)
        while (idx := self.next_puzzle_index(excluded)) >= 0:
            if self.start_puzzle(idx):
                return True
            excluded.add(idx)
        self.end_session(SessionEndReason.EXHAUSTED)
        return False

    def start_puzzle(self, puzzle_index: int, player_color: Color | None = None) -> bool:
        """Set up puzzle *puzzle_index* and begin traversal.

        The player defaults to the side to move in the game's FEN, else the
        side of its first move.
        """
        if not 0 <= puzzle_index < len(self._puzzles):
            return False

        game = self._puzzles[puzzle_index]
        try:
            self._rules.load(game.fen)
        except ValueError:
            _LOGGER.warning(
                "Puzzle %d has an invalid starting position %r; skipping",
                puzzle_index,
                game.fen,
            )
            return False

        self._cancel_pending()
        self._clear_puzzle_state()
        self._puzzle_index = puzzle_index
        self._moves = game.mainline()
        if player_color is not None:
            self._player_color = player_color
        elif game.fen:
            self._player_color = self._rules.turn()
        elif self._moves:
            self._player_color = Color.WHITE if self._moves[0].is_white else Color.BLACK
        self._puzzle_started_at = self._time()
        self._active = True
        self._ended = False

        _LOGGER.debug(
            "Starting puzzle %d (%d moves, player %s)",
            puzzle_index,
            len(self._moves),
            self._player_color,
        )
        for cb in self.events.on_puzzle_start:
            cb(PuzzleStart(puzzle_index, len(self._puzzles), self._player_color))
        self._process_next()
        return True

    # ── Player input ─────────────────────────────────────────────────────

    def attempt_move(
        self, from_square: str, to_square: str, promotion: str | None = None
    ) -> MoveOutcome:
        """Submit a board move. Illegal moves change nothing."""
        if not self._can_accept_move():
            return MoveOutcome.REJECTED
        fen_before = self._rules.fen()
        applied = self._rules.push_squares(from_square, to_square, promotion)
        return self._judge(applied, fen_before)

    def attempt_san(self, san: str) -> MoveOutcome:
        """Submit a move in SAN."""
        if not self._can_accept_move():
            return MoveOutcome.REJECTED
        fen_before = self._rules.fen()
        applied = self._rules.push_san(san)
        return self._judge(applied, fen_before)

    def _can_accept_move(self) -> bool:
        return (
            self._active
            and not self._paused
            and self._phase == TrainerPhase.AWAITING_PLAYER_MOVE
            and self._index < len(self._moves)
        )

    def _judge(self, applied: AppliedMove | None, fen_before: str) -> MoveOutcome:
        if applied is None:
            return MoveOutcome.ILLEGAL

        expected = self._moves[self._index]

        if same_move(applied.san, expected.san):
            move_index = self._index
            self._moves_played += 1
            self._index += 1
            self._set_phase(TrainerPhase.AUTO_PLAYING_OPPONENT)
            self._schedule(self._settings.move_delay_ms, self._process_next)
            self._emit_move(applied, expected, move_index, correct=True)
            return MoveOutcome.CORRECT

        variation = self._find_player_variation(expected, applied.san)
        if variation is not None:
            self._moves_played += 1
            is_bad = variation[0].is_bad
            self._emit_move(applied, variation[0], self._index, correct=not is_bad)
            if is_bad:
                self._enter_bad_line(variation, fen_before)
                return MoveOutcome.BAD_LINE
            self._enter_good_line(variation, fen_before)
            return MoveOutcome.GOOD_LINE

        self._rules.undo()
        self._mistakes += 1
        self._emit_status(TrainerStatus.INCORRECT)
        return MoveOutcome.INCORRECT

    @staticmethod
    def _find_player_variation(expected: MoveNode, san: str) -> list[MoveNode] | None:
        for variation in expected.variations:
            if variation and same_move(variation[0].san, san):
                return variation
        return None

    # ── Traversal ────────────────────────────────────────────────────────

    def _is_player_move(self, node: MoveNode) -> bool:
        return node.is_white == (self._player_color == Color.WHITE)

    def _process_next(self) -> None:
        if self._index >= len(self._moves):
            if self._stack:
                self._exit_variation()
            else:
                self._complete_puzzle()
            return

        node = self._moves[self._index]
        player_turn = self._is_player_move(node)

        # Only the opponent's branch points are explored automatically;
        # player-side alternatives wait for the player to play them.
        if not player_turn and not self._variations_done:
            variations = [v for v in node.variations if v]
            if variations:
                self._variations_done = True
                self._start_variation_exploration(variations)
                return

        self._variations_done = False
        if player_turn:
            self._await_player()
            return

        self._set_phase(TrainerPhase.AUTO_PLAYING_OPPONENT)
        self._schedule(self._settings.move_delay_ms, lambda: self._auto_play(node))

    def _auto_play(self, node: MoveNode) -> None:
        if self._execute(node, self._index) is None:
            return
        self._index += 1
        self._process_next()

    def _await_player(self) -> None:
        self._set_phase(TrainerPhase.AWAITING_PLAYER_MOVE)
        self._emit_status(TrainerStatus.YOUR_TURN)

    def _execute(self, node: MoveNode, move_index: int) -> AppliedMove | None:
        applied = self._rules.push_san(node.san)
        if applied is None:
            _LOGGER.warning(
                "Puzzle %d: move %s is illegal in %s; skipping puzzle",
                self._puzzle_index,
                node.label,
                self._rules.fen(),
            )
            self._skip_puzzle()
            return None
        self._moves_played += 1
        self._emit_move(applied, node, move_index)
        return applied

    # ── Variations ───────────────────────────────────────────────────────

    def _start_variation_exploration(self, variations: list[list[MoveNode]]) -> None:
        frame = TraversalFrame(
            moves=self._moves,
            index=self._index,
            fen=self._rules.fen(),
            pending=variations[1:],
            total_variations=len(variations),
            variations_done=True,
        )
        self._stack.append(frame)
        self._enter_variation(frame, variations[0], 1)

    def _enter_variation(
        self, frame: TraversalFrame, variation: list[MoveNode], number: int
    ) -> None:
        self._moves = variation
        self._index = 0
        self._variations_done = False
        # The variation replaces the branched move: rewind to before it.
        self._rules.load(frame.fen)
        self._set_phase(TrainerPhase.ENTERING_VARIATION)
        self._emit_status(
            TrainerStatus.ENTERING_VARIATION,
            variation_number=number,
            total_variations=frame.total_variations,
        )
        self._schedule(self._settings.variation_delay_ms, self._process_next)

    def _exit_variation(self) -> None:
        frame = self._stack.pop()
        self._set_phase(TrainerPhase.EXITING_VARIATION)

        if frame.pending:
            self._schedule(
                self._settings.variation_pause_ms,
                lambda: self._enter_next_sibling(frame),
            )
        elif frame.player_initiated:
            # The mainline move was never played: hand the board back.
            self._restore(frame)
            self._emit_status(TrainerStatus.RETURN_TO_MAINLINE)
            self._schedule(self._settings.return_delay_ms, self._await_player)
        else:
            self._schedule(
                self._settings.variation_pause_ms,
                lambda: self._return_from_variation(frame),
            )

    def _enter_next_sibling(self, frame: TraversalFrame) -> None:
        variation = frame.pending.pop(0)
        number = frame.total_variations - len(frame.pending)
        self._stack.append(frame)
        self._enter_variation(frame, variation, number)

    def _return_from_variation(self, frame: TraversalFrame) -> None:
        self._restore(frame)
        self._emit_status(TrainerStatus.EXITING_VARIATION)
        self._schedule(self._settings.variation_pause_ms, self._process_next)

    def _restore(self, frame: TraversalFrame) -> None:
        self._moves = frame.moves
        self._index = frame.index
        self._variations_done = frame.variations_done
        self._rules.load(frame.fen)

    def _enter_good_line(self, variation: list[MoveNode], fen_before: str) -> None:
        self._stack.append(
            TraversalFrame(
                moves=self._moves,
                index=self._index,
                fen=fen_before,
                variations_done=False,
                player_initiated=True,
            )
        )
        # The player already played the variation's first move.
        self._moves = variation
        self._index = 1
        self._variations_done = False
        self._set_phase(TrainerPhase.ENTERING_VARIATION)
        self._emit_status(TrainerStatus.PLAYER_GOOD_VARIATION)
        self._schedule(self._settings.variation_delay_ms, self._process_next)

    def _enter_bad_line(self, variation: list[MoveNode], fen_before: str) -> None:
        self._mistakes += 1
        self._stack.append(
            TraversalFrame(
                moves=self._moves,
                index=self._index,
                fen=fen_before,
                variations_done=self._variations_done,
                player_initiated=True,
            )
        )
        self._set_phase(TrainerPhase.AUTO_PLAYING_BAD_LINE)
        self._emit_status(TrainerStatus.PLAYER_BAD_VARIATION)
        self._play_bad_line(variation, 1)

    def _play_bad_line(self, variation: list[MoveNode], index: int) -> None:
        """Replay the refutation passively, whichever side each move is."""
        if index >= len(variation):
            self._set_phase(TrainerPhase.EXITING_VARIATION)
            self._emit_status(TrainerStatus.RETURN_TO_MAINLINE)
            self._schedule(self._settings.return_delay_ms, self._restore_from_bad_line)
            return

        def step() -> None:
            if self._execute(variation[index], index) is None:
                return
            self._play_bad_line(variation, index + 1)

        self._schedule(self._settings.bad_line_delay_ms, step)

    def _restore_from_bad_line(self) -> None:
        self._restore(self._stack.pop())
        self._await_player()

    # ── Completion ───────────────────────────────────────────────────────

    def _record_attempt(self, solved: bool) -> PuzzleAttempt:
        elapsed_ms = int(round((self._time() - self._puzzle_started_at) * 1000))
        attempt = PuzzleAttempt(
            puzzle_index=self._puzzle_index,
            solved=solved,
            elapsed_ms=max(0, elapsed_ms),
            mistakes=self._mistakes,
        )
        self._attempts.append(attempt)
        return attempt

    def _complete_puzzle(self) -> None:
        attempt = self._record_attempt(solved=self._mistakes == 0)
        self._finish_puzzle(attempt)

    def _skip_puzzle(self) -> None:
        attempt = self._record_attempt(solved=False)
        self._finish_puzzle(attempt, skipped=True)

    def _finish_puzzle(
        self, attempt: PuzzleAttempt, *, partial: bool = False, skipped: bool = False
    ) -> None:
        self._cancel_pending()
        self._stack.clear()
        self._set_phase(TrainerPhase.COMPLETED)
        payload = PuzzleComplete(
            attempt=attempt,
            total_attempts=len(self._attempts),
            total_solved=sum(1 for a in self._attempts if a.solved),
            partial=partial,
            skipped=skipped,
        )
        for cb in self.events.on_puzzle_complete:
            cb(payload)

    # ── Session ──────────────────────────────────────────────────────────

    def start_timer(self) -> None:
        """Start the session countdown."""
        if self._tick is not None:
            self._tick.cancel()
        self._session_clock = SessionClock(self._settings.session_seconds, self._time)
        self._session_clock.start()
        self._session_running = True
        self._ended = False
        self._tick = self._scheduler.call_later(
            self._settings.timer_interval_ms, self._on_tick
        )

    def _on_tick(self) -> None:
        self._tick = None
        if not self._session_running:
            return
        if not self._paused:
            remaining = self._session_clock.remaining()
            for cb in self.events.on_timer:
                cb(math.ceil(remaining))
            if remaining <= 0:
                self.end_session(SessionEndReason.TIMEOUT)
                return
        self._tick = self._scheduler.call_later(
            self._settings.timer_interval_ms, self._on_tick
        )

    def toggle_pause(self) -> bool:
        """Pause or resume. Returns the new paused state."""
        self._paused = not self._paused
        if self._paused:
            self._session_clock.pause()
        else:
            self._session_clock.resume()
        return self._paused

    def end_session(self, reason: SessionEndReason = SessionEndReason.MANUAL) -> None:
        """Stop everything and report the session's attempts."""
        if self._ended:
            return
        self._ended = True
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self._cancel_pending()

        in_progress = (
            self._puzzle_index >= 0
            and self._phase not in (TrainerPhase.IDLE, TrainerPhase.COMPLETED)
            and self._moves_played > 0
        )
        self._active = False
        self._session_running = False
        self._session_clock.stop()

        if in_progress:
            self._finish_puzzle(self._record_attempt(solved=False), partial=True)
        self._stack.clear()
        self._set_phase(TrainerPhase.IDLE)

        duration = min(
            int(self._session_clock.elapsed()), int(self._settings.session_seconds)
        )
        _LOGGER.info(
            "Session ended (%s): %d attempted, %d solved",
            reason,
            len(self._attempts),
            sum(1 for a in self._attempts if a.solved),
        )
        payload = SessionComplete(
            reason=reason,
            duration_seconds=duration,
            attempts=tuple(self._attempts),
        )
        for cb in self.events.on_session_complete:
            cb(payload)

    def reset(self) -> None:
        """Drop all session state and pending timers."""
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self._cancel_pending()
        self._active = False
        self._paused = False
        self._session_running = False
        self._ended = False
        self._attempts = []
        self._session_clock = SessionClock(self._settings.session_seconds, self._time)
        self._clear_puzzle_state()
        self._rules.load(None)

    def session_stats(self) -> SessionStats:
        attempted = len(self._attempts)
        solved = sum(1 for a in self._attempts if a.solved)
        elapsed = int(self._session_clock.elapsed())
        ppm = round(solved / (elapsed / 60), 2) if elapsed > 0 else 0.0
        rate = round(solved / attempted * 100, 1) if attempted else 0.0
        return SessionStats(
            attempted=attempted,
            solved=solved,
            elapsed_seconds=elapsed,
            puzzles_per_minute=ppm,
            success_rate=rate,
        )

    # ── Internal helpers ─────────────────────────────────────────────────

    def _schedule(self, delay_ms: int, callback: Callable[[], None]) -> None:
        """Replace the pending traversal step with *callback*."""
        self._cancel_pending()
        generation = self._generation

        def fire() -> None:
            if generation != self._generation:
                return
            self._pending = None
            if not self._active:
                return
            callback()

        self._pending = self._scheduler.call_later(delay_ms, fire)

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _set_phase(self, phase: TrainerPhase) -> None:
        self._phase = phase

    def _emit_move(
        self,
        applied: AppliedMove,
        node: MoveNode,
        move_index: int,
        correct: bool | None = None,
    ) -> None:
        payload = MoveCompleted(
            san=applied.san,
            from_square=applied.from_square,
            to_square=applied.to_square,
            move_index=move_index,
            is_capture=applied.is_capture,
            correct=correct,
            symbols=node.symbols,
            comment=node.comment,
            arrows=tuple(node.arrows),
            highlights=tuple(node.highlights),
        )
        for cb in self.events.on_move:
            cb(payload)

    def _emit_status(
        self,
        status: TrainerStatus,
        *,
        variation_number: int = 0,
        total_variations: int = 0,
    ) -> None:
        payload = StatusChange(
            status=status,
            phase=self._phase,
            move_index=self._index,
            is_variation=bool(self._stack),
            mistakes=self._mistakes,
            variation_number=variation_number,
            total_variations=total_variations,
        )
        for cb in self.events.on_status:
            cb(payload)
