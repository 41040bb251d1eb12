"""Lexer for PGN movetext (the part of a game after its header tags)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from chessdrill.core.notation.nag import SYMBOL_NAGS
from chessdrill.core.notation.san import normalize_castling


class TokenKind(StrEnum):
    MOVE = "move"
    MOVE_NUMBER = "move_number"
    COMMENT = "comment"
    VARIATION_START = "variation_start"
    VARIATION_END = "variation_end"
    NAG = "nag"
    RESULT = "result"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed movetext token.

    ``value`` is the move/comment/result text, or the number for
    ``MOVE_NUMBER`` and ``NAG`` tokens. ``is_black`` is only meaningful for
    move numbers written with three dots.
    """

    kind: TokenKind
    value: str | int = ""
    is_black: bool = False


RESULT_TOKENS = ("1-0", "0-1", "1/2-1/2", "*")

_NAG_RE = re.compile(r"\$(\d+)")
_RESULT_RE = re.compile(r"1-0|0-1|1/2-1/2|\*")
_MOVE_NUMBER_RE = re.compile(r"(\d+)(\.\.\.|\.)")
_SAN_RE = re.compile(
    r"(?:O-O-O|O-O|0-0-0|0-0)[+#]?"
    r"|[KQRBN][a-h]?[1-8]?x?[a-h][1-8][+#]?"
    r"|(?:[a-h]x)?[a-h][1-8](?:=?[QRBN])?[+#]?"
)
_SYMBOL_RE = re.compile(r"!!|\?\?|!\?|\?!|!|\?")


def _scan_brace_comment(text: str, start: int) -> tuple[str, int]:
    """Read a ``{...}`` comment starting at *start*, honouring nested braces."""
    depth = 1
    idx = start + 1
    total = len(text)
    while idx < total:
        ch = text[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start + 1 : idx], idx + 1
        idx += 1
    # Unterminated: the rest of the text is the comment.
    return text[start + 1 :], total


def tokenize(text: str) -> list[Token]:
    """Split movetext into tokens. Unrecognized characters are dropped."""
    tokens: list[Token] = []
    idx = 0
    total = len(text)

    while idx < total:
        ch = text[idx]

        if ch.isspace():
            idx += 1
            continue

        if ch == "{":
            comment, idx = _scan_brace_comment(text, idx)
            tokens.append(Token(TokenKind.COMMENT, comment))
            continue

        if ch == ";":
            end = text.find("\n", idx + 1)
            if end < 0:
                end = total
            tokens.append(Token(TokenKind.COMMENT, text[idx + 1 : end]))
            idx = end
            continue

        if ch == "(":
            tokens.append(Token(TokenKind.VARIATION_START))
            idx += 1
            continue

        if ch == ")":
            tokens.append(Token(TokenKind.VARIATION_END))
            idx += 1
            continue

        match = _NAG_RE.match(text, idx)
        if match:
            tokens.append(Token(TokenKind.NAG, int(match.group(1))))
            idx = match.end()
            continue

        match = _RESULT_RE.match(text, idx)
        if match:
            tokens.append(Token(TokenKind.RESULT, match.group(0)))
            idx = match.end()
            continue

        match = _MOVE_NUMBER_RE.match(text, idx)
        if match:
            tokens.append(
                Token(
                    TokenKind.MOVE_NUMBER,
                    int(match.group(1)),
                    is_black=len(match.group(2)) == 3,
                )
            )
            idx = match.end()
            continue

        match = _SAN_RE.match(text, idx)
        if match:
            tokens.append(Token(TokenKind.MOVE, normalize_castling(match.group(0))))
            idx = match.end()
            continue

        match = _SYMBOL_RE.match(text, idx)
        if match:
            tokens.append(Token(TokenKind.NAG, SYMBOL_NAGS[match.group(0)]))
            idx = match.end()
            continue

        idx += 1

    return tokens
