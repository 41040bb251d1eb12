"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass, field

from chessdrill.core.notation.nag import is_bad_nag_list, nags_to_symbols


@dataclass(frozen=True, slots=True)
class Arrow:
    """A directional arrow drawn from one square to another."""

    from_square: str
    to_square: str
    color: str


@dataclass(frozen=True, slots=True)
class Highlight:
    """A coloured square highlight."""

    square: str
    color: str


@dataclass(slots=True)
class MoveNode:
    """One ply of a move tree.

    ``variations`` holds alternatives to *this* move: each one continues
    from the position before the move was played.
    """

    san: str
    move_number: int = 1
    is_white: bool = True
    nags: list[int] = field(default_factory=list)
    comment: str = ""
    arrows: list[Arrow] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
    variations: list[list[MoveNode]] = field(default_factory=list)

    @property
    def is_bad(self) -> bool:
        return is_bad_nag_list(self.nags)

    @property
    def symbols(self) -> str:
        return nags_to_symbols(self.nags)

    @property
    def label(self) -> str:
        """Numbered move text, e.g. ``12. Nf3`` or ``12... Nf6``."""
        dots = "." if self.is_white else "..."
        return f"{self.move_number}{dots} {self.san}"


@dataclass(slots=True)
class GameRecord:
    """A parsed game: headers, starting position and the mainline tree."""

    headers: dict[str, str]
    moves: list[MoveNode]
    fen: str | None = None
    comment: str = ""

    @property
    def white(self) -> str:
        return self.headers.get("White", "White")

    @property
    def black(self) -> str:
        return self.headers.get("Black", "Black")

    @property
    def result(self) -> str:
        return self.headers.get("Result", "*")

    @property
    def eco(self) -> str:
        return self.headers.get("ECO", "")

    def mainline(self) -> list[MoveNode]:
        """Return the first-choice path through the tree."""
        return list(self.moves)
