"""PGN parsing into move trees, and serialization back to PGN."""

from __future__ import annotations

import logging
import re

from chessdrill.core.notation.annotations import (
    DecodedComment,
    color_code,
    parse_comment,
)
from chessdrill.core.notation.models import GameRecord, MoveNode
from chessdrill.core.notation.tokens import Token, TokenKind, tokenize

_LOGGER = logging.getLogger(__name__)

_PGN_TAG_RE = re.compile(r'\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]')


def _is_header_line(line: str) -> bool:
    # ``[%cal ...]`` style directives are comment content, never tags.
    return line.startswith("[") and line.endswith("]") and not line.startswith("[%")


def _brace_depth(line: str, depth: int) -> int:
    for ch in line:
        if ch == ";" and depth == 0:
            break
        if ch == "{":
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
    return depth


def _header_flags(lines: list[str]) -> list[bool]:
    """Mark the lines that are tag lines; lines inside a ``{}`` comment never are."""
    flags: list[bool] = []
    depth = 0
    for line in lines:
        is_header = depth == 0 and _is_header_line(line)
        flags.append(is_header)
        if not is_header:
            depth = _brace_depth(line, depth)
    return flags


def _append_comment(node: MoveNode, decoded: DecodedComment) -> None:
    if decoded.text:
        if node.comment:
            node.comment = f"{node.comment} {decoded.text}"
        else:
            node.comment = decoded.text
    node.arrows.extend(decoded.arrows)
    node.highlights.extend(decoded.highlights)


# ── Tree builder ─────────────────────────────────────────────────────────────


class _TreeBuilder:
    """Recursive-descent consumer of a token stream.

    Every nested sequence is parsed by the same :meth:`parse_sequence`
    call; the only state shared between calls is the token cursor.
    """

    __slots__ = ("_tokens", "_pos")

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def parse_leading_comment(self) -> str:
        parts: list[str] = []
        while (token := self._peek()) is not None and token.kind == TokenKind.COMMENT:
            text = parse_comment(str(token.value)).text
            if text:
                parts.append(text)
            self._pos += 1
        return " ".join(parts)

    def parse_top_level(self) -> list[MoveNode]:
        moves = self.parse_sequence()
        # Stray closing parenthesis at top level: skip it and keep going.
        while self._peek() is not None:
            self._pos += 1
            moves.extend(self.parse_sequence())
        return moves

    def parse_sequence(self) -> list[MoveNode]:
        moves: list[MoveNode] = []
        move_number = 1
        expect_white = True

        while (token := self._peek()) is not None:
            if token.kind == TokenKind.VARIATION_END:
                break

            if token.kind == TokenKind.MOVE_NUMBER:
                move_number = int(token.value)
                expect_white = not token.is_black
                self._pos += 1
                continue

            if token.kind == TokenKind.MOVE:
                self._pos += 1
                node = MoveNode(
                    san=str(token.value),
                    move_number=move_number,
                    is_white=expect_white,
                )
                self._absorb_annotations(node)
                self._absorb_variations(node)
                moves.append(node)
                if expect_white:
                    expect_white = False
                else:
                    expect_white = True
                    move_number += 1
                continue

            if token.kind == TokenKind.COMMENT:
                if moves:
                    _append_comment(moves[-1], parse_comment(str(token.value)))
                self._pos += 1
                continue

            # Results, and NAGs with no move to attach to.
            self._pos += 1

        return moves

    def _absorb_annotations(self, node: MoveNode) -> None:
        while (token := self._peek()) is not None:
            if token.kind == TokenKind.NAG:
                node.nags.append(int(token.value))
            elif token.kind == TokenKind.COMMENT:
                _append_comment(node, parse_comment(str(token.value)))
            else:
                return
            self._pos += 1

    def _absorb_variations(self, node: MoveNode) -> None:
        while (token := self._peek()) is not None and (
            token.kind == TokenKind.VARIATION_START
        ):
            self._pos += 1
            node.variations.append(self.parse_sequence())
            closing = self._peek()
            if closing is not None and closing.kind == TokenKind.VARIATION_END:
                self._pos += 1
            # Comments between variation groups describe the branch point.
            while (token := self._peek()) is not None and (
                token.kind == TokenKind.COMMENT
            ):
                _append_comment(node, parse_comment(str(token.value)))
                self._pos += 1


def parse_movetext(movetext: str) -> tuple[str, list[MoveNode]]:
    """Parse movetext into ``(game_comment, mainline)``."""
    builder = _TreeBuilder(tokenize(movetext))
    game_comment = builder.parse_leading_comment()
    return game_comment, builder.parse_top_level()


# ── Headers and game splitting ───────────────────────────────────────────────


def parse_headers(text: str) -> dict[str, str]:
    """Extract ``[Tag "value"]`` pairs, several per line allowed.

    Tag lines with no well-formed pair are skipped.
    """
    headers: dict[str, str] = {}
    lines = [raw_line.strip() for raw_line in text.splitlines()]
    for line, is_header in zip(lines, _header_flags(lines)):
        if not is_header:
            continue
        matches = list(_PGN_TAG_RE.finditer(line))
        if not matches:
            _LOGGER.debug("Skipping malformed PGN header line: %s", line)
            continue
        for match in matches:
            key, raw_value = match.groups()
            headers[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
    return headers


def extract_movetext(text: str) -> str:
    """Return everything except header tags and ``%`` escape lines."""
    lines = [raw_line.strip() for raw_line in text.splitlines()]
    kept: list[str] = []
    for line, is_header in zip(lines, _header_flags(lines)):
        if not line or is_header or line.startswith("%"):
            continue
        kept.append(line)
    return "\n".join(kept)


def split_games(pgn_text: str) -> list[str]:
    """Split a PGN document into per-game text blocks.

    A header block seen after moves starts a new game; blank lines alone
    never split. Free text before the first header is dropped; text with
    no headers at all is a single game.
    """
    lines = [raw_line.strip() for raw_line in pgn_text.splitlines()]
    flags = _header_flags(lines)
    if True in flags:
        first_header = flags.index(True)
        lines = lines[first_header:]
        flags = flags[first_header:]

    games: list[str] = []
    current: list[str] = []
    has_moves = False

    for line, is_header in zip(lines, flags):
        if is_header:
            if has_moves:
                games.append("\n".join(current))
                current = []
                has_moves = False
        elif line and not line.startswith("%"):
            has_moves = True
        current.append(line)

    if any(current):
        games.append("\n".join(current))
    return games


def parse_game(game_text: str) -> GameRecord | None:
    """Parse a single game block. Returns ``None`` when it holds no moves."""
    headers = parse_headers(game_text)
    game_comment, moves = parse_movetext(extract_movetext(game_text))
    if not moves:
        return None
    return GameRecord(
        headers=headers,
        moves=moves,
        fen=headers.get("FEN") or None,
        comment=game_comment,
    )


def parse_games(pgn_text: str) -> list[GameRecord]:
    """Parse every game in *pgn_text*, silently dropping empty ones."""
    games: list[GameRecord] = []
    for idx, game_text in enumerate(split_games(pgn_text)):
        game = parse_game(game_text)
        if game is None:
            _LOGGER.debug("Dropping game block %d: no moves", idx)
            continue
        games.append(game)
    return games


# ── Serialization ────────────────────────────────────────────────────────────


def _comment_text(node: MoveNode) -> str:
    parts: list[str] = []
    if node.arrows:
        arrows = ",".join(
            f"{color_code(a.color)}{a.from_square}{a.to_square}" for a in node.arrows
        )
        parts.append(f"[%cal {arrows}]")
    if node.highlights:
        squares = ",".join(f"{color_code(h.color)}{h.square}" for h in node.highlights)
        parts.append(f"[%csl {squares}]")
    if node.comment:
        # PGN comments cannot contain a closing brace.
        parts.append(node.comment.replace("}", "]"))
    return " ".join(parts)


def _sequence_parts(moves: list[MoveNode], parts: list[str]) -> None:
    need_number = True
    for node in moves:
        if node.is_white:
            parts.append(f"{node.move_number}.")
        elif need_number:
            parts.append(f"{node.move_number}...")
        parts.append(node.san)
        parts.extend(f"${nag}" for nag in node.nags)
        need_number = False

        comment = _comment_text(node)
        if comment:
            parts.append(f"{{{comment}}}")
            need_number = True

        for variation in node.variations:
            body: list[str] = []
            _sequence_parts(variation, body)
            parts.append(f"({' '.join(body)})")
            need_number = True


def movetext_from_tree(moves: list[MoveNode], result_token: str = "*") -> str:
    """Build PGN movetext, including nested variations, from a move tree."""
    parts: list[str] = []
    _sequence_parts(moves, parts)
    parts.append(result_token)
    return " ".join(parts)


def build_pgn(game: GameRecord) -> str:
    """Build a single-game PGN document from a :class:`GameRecord`."""
    lines: list[str] = []
    for key, value in game.headers.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{escaped}"]')
    if game.fen and "FEN" not in game.headers:
        lines.append(f'[FEN "{game.fen}"]')
    lines.append("")
    movetext = movetext_from_tree(game.moves, game.result)
    if game.comment:
        movetext = f"{{{game.comment.replace('}', ']')}}} {movetext}"
    lines.append(movetext)
    lines.append("")
    return "\n".join(lines)
