"""Terminal entry point: inspect a PGN file or drill its games."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from chessdrill.core.notation import GameRecord, MoveNode, parse_games
from chessdrill.game import (
    ChessRulesEngine,
    IScheduler,
    ManualScheduler,
    MoveCompleted,
    MoveOutcome,
    PuzzleComplete,
    PuzzleStart,
    PuzzleTrainer,
    SessionComplete,
    SessionEndReason,
    StatusChange,
    TrainerPhase,
    TrainerSettings,
    TrainerStatus,
)
from chessdrill.game.clock import TimeSource

_LOGGER = logging.getLogger(__name__)

_STATUS_MESSAGES: dict[TrainerStatus, str] = {
    TrainerStatus.INCORRECT: "Incorrect, try again.",
    TrainerStatus.EXITING_VARIATION: "Back to the main line.",
    TrainerStatus.RETURN_TO_MAINLINE: "Find a better move.",
    TrainerStatus.PLAYER_BAD_VARIATION: "That move is refuted. Watch:",
    TrainerStatus.PLAYER_GOOD_VARIATION: "Good alternative! Keep going.",
}


# ── Inspect ──────────────────────────────────────────────────────────────────


def _format_moves(moves: list[MoveNode], depth: int, lines: list[str]) -> None:
    indent = "  " * depth
    for node in moves:
        text = f"{indent}{node.label}{node.symbols}"
        if node.comment:
            text += f"  {{{node.comment}}}"
        if node.arrows or node.highlights:
            text += f"  [{len(node.arrows)} arrows, {len(node.highlights)} squares]"
        lines.append(text)
        for variation in node.variations:
            lines.append(f"{indent}  (")
            _format_moves(variation, depth + 2, lines)
            lines.append(f"{indent}  )")


def format_game(game: GameRecord, index: int) -> str:
    """Human-readable dump of a parsed game tree."""
    title = f"#{index + 1} {game.white} - {game.black} {game.result}"
    lines = [title]
    if game.fen:
        lines.append(f"FEN: {game.fen}")
    if game.comment:
        lines.append(f"{{{game.comment}}}")
    _format_moves(game.moves, 1, lines)
    return "\n".join(lines)


# ── Drill ────────────────────────────────────────────────────────────────────

_POLL_MS = 20


class _QtDriver:
    """Runs trainer steps on a Qt event loop between terminal prompts."""

    __slots__ = ("app", "scheduler")

    def __init__(self) -> None:
        from PyQt6.QtCore import QCoreApplication

        from chessdrill.game.qt_bridge import QtScheduler

        self.app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
        self.scheduler = QtScheduler()

    def pump(self, stop: Callable[[], bool]) -> None:
        """Spin the event loop until *stop* returns true."""
        from PyQt6.QtCore import QEventLoop, QTimer

        if stop():
            return
        loop = QEventLoop()
        poll = QTimer()
        poll.setInterval(_POLL_MS)

        def check() -> None:
            if stop():
                loop.quit()

        poll.timeout.connect(check)
        poll.start()
        loop.exec()
        poll.stop()


def _format_annotations(event: MoveCompleted) -> list[str]:
    lines: list[str] = []
    if event.comment:
        lines.append(f"    {{{event.comment}}}")
    if event.arrows:
        arrows = ", ".join(f"{a.from_square}-{a.to_square}" for a in event.arrows)
        lines.append(f"    arrows: {arrows}")
    if event.highlights:
        squares = ", ".join(h.square for h in event.highlights)
        lines.append(f"    squares: {squares}")
    return lines


def run_drill(
    games: list[GameRecord],
    settings: TrainerSettings,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
    live: bool = False,
) -> list[PuzzleComplete]:
    """Drill *games* interactively. Returns the puzzle results.

    A live drill waits out the configured delays on a Qt event loop and
    times puzzles by the wall clock; otherwise steps run on a virtual clock
    and complete immediately.
    """
    scheduler: IScheduler
    clock: TimeSource | None
    if live:
        driver = _QtDriver()
        scheduler, clock, pump = driver.scheduler, None, driver.pump
    else:
        manual = ManualScheduler()
        scheduler, clock = manual, manual.now

        def pump(stop: Callable[[], bool]) -> None:
            manual.run_until_idle(stop=stop)

    rules = ChessRulesEngine(default_promotion=settings.default_promotion)
    trainer = PuzzleTrainer(rules, scheduler, settings, clock=clock)
    trainer.load_puzzles(games)

    done: set[int] = set()
    results: list[PuzzleComplete] = []
    ended: list[SessionComplete] = []

    def on_start(event: PuzzleStart) -> None:
        write(
            f"Puzzle {event.puzzle_index + 1}/{event.total_puzzles}: "
            f"you play {event.player_color}"
        )

    def on_move(event: MoveCompleted) -> None:
        if event.correct is None:
            write(f"  {event.san}{event.symbols}")
        for line in _format_annotations(event):
            write(line)

    def on_status(event: StatusChange) -> None:
        if event.status == TrainerStatus.ENTERING_VARIATION:
            write(f"Variation {event.variation_number} of {event.total_variations}:")
        elif event.status in _STATUS_MESSAGES:
            write(_STATUS_MESSAGES[event.status])

    def on_complete(event: PuzzleComplete) -> None:
        done.add(event.attempt.puzzle_index)
        results.append(event)
        verdict = "solved" if event.solved else f"{event.attempt.mistakes} mistake(s)"
        write(f"Puzzle complete: {verdict} in {event.attempt.elapsed_ms / 1000:.1f}s")

    def on_session(event: SessionComplete) -> None:
        ended.append(event)
        write(
            f"Session over ({event.reason}): "
            f"{event.puzzles_solved}/{event.puzzles_attempted} solved"
        )

    trainer.events.on_puzzle_start.append(on_start)
    trainer.events.on_move.append(on_move)
    trainer.events.on_status.append(on_status)
    trainer.events.on_puzzle_complete.append(on_complete)
    trainer.events.on_session_complete.append(on_session)

    def waiting() -> bool:
        return bool(ended) or trainer.phase in (
            TrainerPhase.AWAITING_PLAYER_MOVE,
            TrainerPhase.COMPLETED,
        )

    trainer.start_timer()
    trainer.start_next_puzzle(done)
    while not ended:
        pump(waiting)
        if ended:
            break
        if trainer.phase == TrainerPhase.COMPLETED:
            trainer.start_next_puzzle(done)
            continue
        if trainer.session_clock.is_expired():
            trainer.end_session(SessionEndReason.TIMEOUT)
            break

        try:
            line = read("your move> ").strip()
        except EOFError:
            line = "quit"
        if line in ("quit", "exit"):
            trainer.end_session(SessionEndReason.MANUAL)
            break
        if line == "hint":
            write(f"Hint: {trainer.hint()}")
            continue
        if not line:
            continue
        if trainer.attempt_san(line) == MoveOutcome.ILLEGAL:
            write(f"Illegal move: {line}")

    return results


# ── CLI ──────────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chessdrill",
        description="Drill annotated PGN games move by move.",
    )
    parser.add_argument("pgn", type=Path, help="PGN file with one or more games")
    parser.add_argument(
        "--inspect", action="store_true", help="print the parsed move trees and exit"
    )
    parser.add_argument(
        "--fast", action="store_true", help="auto-play without delays"
    )
    parser.add_argument(
        "--minutes", type=float, default=10.0, help="session length (default: 10)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Launch the chessdrill terminal app."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        pgn_text = args.pgn.read_text(encoding="utf-8")
    except OSError as exc:
        _LOGGER.error("Cannot read %s: %s", args.pgn, exc)
        return 2

    games = parse_games(pgn_text)
    if not games:
        print(f"No games found in {args.pgn}")
        return 1

    if args.inspect:
        for idx, game in enumerate(games):
            print(format_game(game, idx))
            print()
        return 0

    session_seconds = args.minutes * 60
    if args.fast:
        settings = TrainerSettings.fast(session_seconds=session_seconds)
    else:
        settings = TrainerSettings(session_seconds=session_seconds)
    run_drill(games, settings, live=not args.fast)
    return 0


if __name__ == "__main__":
    sys.exit(main())
