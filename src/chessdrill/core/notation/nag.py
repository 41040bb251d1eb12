"""Numeric annotation glyphs (NAGs) and their display symbols."""

from __future__ import annotations

from collections.abc import Iterable

NAG_GOOD = 1
NAG_POOR = 2
NAG_BRILLIANT = 3
NAG_BLUNDER = 4
NAG_SPECULATIVE = 5
NAG_DUBIOUS = 6

#: Moves carrying one of these codes are treated as objectively poor.
BAD_NAGS: frozenset[int] = frozenset({NAG_POOR, NAG_BLUNDER})

NAG_SYMBOLS: dict[int, str] = {
    1: "!",
    2: "?",
    3: "!!",
    4: "??",
    5: "!?",
    6: "?!",
    7: "□",
    10: "=",
    13: "∞",
    14: "⩲",
    15: "⩱",
    16: "±",
    17: "∓",
    18: "+-",
    19: "-+",
    22: "⨀",
    32: "⟳",
    36: "→",
    40: "↑",
    132: "⇆",
    138: "⊕",
}

# Two-character symbols must be tried before their one-character prefixes.
SYMBOL_NAGS: dict[str, int] = {
    "!!": NAG_BRILLIANT,
    "??": NAG_BLUNDER,
    "!?": NAG_SPECULATIVE,
    "?!": NAG_DUBIOUS,
    "!": NAG_GOOD,
    "?": NAG_POOR,
}


def nag_to_symbol(nag: int) -> str:
    """Display symbol for *nag*, or ``""`` when it has none."""
    return NAG_SYMBOLS.get(nag, "")


def nags_to_symbols(nags: Iterable[int]) -> str:
    return "".join(nag_to_symbol(nag) for nag in nags)


def is_bad_nag_list(nags: Iterable[int]) -> bool:
    return any(nag in BAD_NAGS for nag in nags)
