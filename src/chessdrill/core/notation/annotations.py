"""Graphical comment directives: ``[%cal ...]`` arrows and ``[%csl ...]`` squares."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from chessdrill.core.notation.models import Arrow, Highlight

_ARROW_RE = re.compile(r"\[%cal\s+([^\]]+)\]")
_HIGHLIGHT_RE = re.compile(r"\[%csl\s+([^\]]+)\]")
# Engine evaluation, model and clock tags are removed without decoding.
_OTHER_DIRECTIVE_RE = re.compile(r"\[%\w+\s+[^\]]*\]")
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_COLOR = "#3498db"

COLOR_CODES: dict[str, str] = {
    "R": "#e74c3c",
    "G": "#2ecc71",
    "B": "#3498db",
    "Y": "#f1c40f",
    "C": "#1abc9c",
    "M": "#9b59b6",
}
_CODE_BY_COLOR: dict[str, str] = {v: k for k, v in COLOR_CODES.items()}


@dataclass(slots=True)
class DecodedComment:
    """Comment text with its graphical directives pulled out."""

    text: str = ""
    arrows: list[Arrow] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)


def map_color(code: str) -> str:
    """Hex colour for a one-letter colour *code*; unknown codes use blue."""
    return COLOR_CODES.get(code.upper(), DEFAULT_COLOR)


def color_code(color: str) -> str:
    """Inverse of :func:`map_color`."""
    return _CODE_BY_COLOR.get(color.lower(), "B")


def clean_comment(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_comment(raw: str) -> DecodedComment:
    """Extract arrows and highlights from *raw* and return the cleaned text."""
    decoded = DecodedComment()

    def _arrows(match: re.Match[str]) -> str:
        for entry in match.group(1).split(","):
            entry = entry.strip()
            if len(entry) >= 5:
                decoded.arrows.append(
                    Arrow(
                        from_square=entry[1:3],
                        to_square=entry[3:5],
                        color=map_color(entry[0]),
                    )
                )
        return ""

    def _highlights(match: re.Match[str]) -> str:
        for entry in match.group(1).split(","):
            entry = entry.strip()
            if len(entry) >= 3:
                decoded.highlights.append(
                    Highlight(square=entry[1:3], color=map_color(entry[0]))
                )
        return ""

    text = _ARROW_RE.sub(_arrows, raw)
    text = _HIGHLIGHT_RE.sub(_highlights, text)
    text = _OTHER_DIRECTIVE_RE.sub("", text)
    decoded.text = clean_comment(text)
    return decoded
