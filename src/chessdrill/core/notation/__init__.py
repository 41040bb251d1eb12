"""Notation package: PGN tokenizing, move-tree parsing and serialization."""

from chessdrill.core.notation.annotations import (
    DecodedComment,
    map_color,
    parse_comment,
)
from chessdrill.core.notation.models import Arrow, GameRecord, Highlight, MoveNode
from chessdrill.core.notation.nag import (
    BAD_NAGS,
    NAG_SYMBOLS,
    is_bad_nag_list,
    nag_to_symbol,
)
from chessdrill.core.notation.pgn import (
    build_pgn,
    movetext_from_tree,
    parse_game,
    parse_games,
    parse_headers,
    parse_movetext,
    split_games,
)
from chessdrill.core.notation.san import normalize_san, same_move
from chessdrill.core.notation.tokens import Token, TokenKind, tokenize

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

__all__ = [
    "STARTING_FEN",
    # Models
    "Arrow",
    "GameRecord",
    "Highlight",
    "MoveNode",
    # Lexing
    "Token",
    "TokenKind",
    "tokenize",
    # Comments
    "DecodedComment",
    "map_color",
    "parse_comment",
    # NAGs / SAN
    "BAD_NAGS",
    "NAG_SYMBOLS",
    "is_bad_nag_list",
    "nag_to_symbol",
    "normalize_san",
    "same_move",
    # PGN
    "build_pgn",
    "movetext_from_tree",
    "parse_game",
    "parse_games",
    "parse_headers",
    "parse_movetext",
    "split_games",
]
