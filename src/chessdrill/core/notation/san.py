"""SAN (Standard Algebraic Notation) helpers."""

from __future__ import annotations

import re

_DECORATION_RE = re.compile(r"[+#!?=\s]")


def normalize_castling(san: str) -> str:
    """Rewrite zero-digit castling (``0-0``) with the letter O."""
    if san.startswith("0-0-0"):
        return "O-O-O" + san[5:]
    if san.startswith("0-0"):
        return "O-O" + san[3:]
    return san


def normalize_san(san: str) -> str:
    """Strip check, mate, annotation and promotion decoration from *san*.

    ``Nf3+``, ``Nf3#`` and ``Nf3!`` all become ``Nf3``; ``e8=Q+`` becomes
    ``e8Q``. Normalizing twice is a no-op.
    """
    return _DECORATION_RE.sub("", normalize_castling(san.strip()))


def same_move(a: str, b: str) -> bool:
    return normalize_san(a) == normalize_san(b)
