"""Core domain layer: move trees and notation with zero external dependencies.

Quick start::

    from chessdrill.core import parse_games

    for game in parse_games(pgn_text):
        for node in game.mainline():
            print(node.label, node.symbols, len(node.variations))
"""

from chessdrill.core.enums import Color
from chessdrill.core.notation import (
    STARTING_FEN,
    GameRecord,
    MoveNode,
    build_pgn,
    normalize_san,
    parse_games,
)

__all__ = [
    "Color",
    "GameRecord",
    "MoveNode",
    "STARTING_FEN",
    "build_pgn",
    "normalize_san",
    "parse_games",
]
