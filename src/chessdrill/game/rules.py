"""python-chess backed implementation of :class:`IRulesEngine`."""

from __future__ import annotations

import chess

from chessdrill.core.enums import Color
from chessdrill.game.interfaces import AppliedMove, IRulesEngine

_PROMOTION_PIECES: dict[str, chess.PieceType] = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


class ChessRulesEngine(IRulesEngine):
    """Rules engine wrapping a :class:`chess.Board`."""

    __slots__ = ("_board", "_default_promotion")

    def __init__(self, fen: str | None = None, default_promotion: str = "q") -> None:
        if default_promotion.lower() not in _PROMOTION_PIECES:
            raise ValueError(f"Invalid promotion piece: {default_promotion!r}")
        self._default_promotion = default_promotion.lower()
        self._board = chess.Board()
        if fen is not None:
            self.load(fen)

    def load(self, fen: str | None = None) -> None:
        if fen is None:
            self._board.reset()
            return
        # chess.Board raises ValueError on malformed FEN.
        self._board = chess.Board(fen)

    def fen(self) -> str:
        return self._board.fen()

    def turn(self) -> Color:
        return Color.WHITE if self._board.turn == chess.WHITE else Color.BLACK

    def push_san(self, san: str) -> AppliedMove | None:
        try:
            move = self._board.parse_san(san)
        except ValueError:
            return None
        return self._push(move)

    def push_squares(
        self, from_square: str, to_square: str, promotion: str | None = None
    ) -> AppliedMove | None:
        try:
            from_sq = chess.parse_square(from_square)
            to_sq = chess.parse_square(to_square)
        except ValueError:
            return None

        move = chess.Move(from_sq, to_sq)
        if not self._board.is_legal(move):
            piece = _PROMOTION_PIECES.get(
                (promotion or self._default_promotion).lower()
            )
            if piece is None:
                return None
            move = chess.Move(from_sq, to_sq, promotion=piece)
            if not self._board.is_legal(move):
                return None
        return self._push(move)

    def undo(self) -> None:
        if self._board.move_stack:
            self._board.pop()

    def legal_moves(self) -> list[str]:
        return [self._board.san(move) for move in self._board.legal_moves]

    def _push(self, move: chess.Move) -> AppliedMove:
        applied = AppliedMove(
            san=self._board.san(move),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            is_capture=self._board.is_capture(move),
        )
        self._board.push(move)
        return applied
