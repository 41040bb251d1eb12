"""Tests for PGN parsing into move trees and PGN export."""

from chessdrill.core.notation import (
    GameRecord,
    MoveNode,
    build_pgn,
    movetext_from_tree,
    parse_game,
    parse_games,
    parse_headers,
    parse_movetext,
    split_games,
)
from chessdrill.core.notation.annotations import COLOR_CODES
from chessdrill.core.notation.models import Arrow

BRANCH_MOVETEXT = "1. Rxd7 Kxd7 (1... Rxb4+? 2. Bxb4 Kxd7 3. Kb5) 2. Kxb5 *"


def _sans(moves: list[MoveNode]) -> list[str]:
    return [node.san for node in moves]


class TestMainline:
    def test_linear_game(self) -> None:
        games = parse_games("1. e4 e5 2. Nf3 *")
        assert len(games) == 1
        moves = games[0].moves
        assert _sans(moves) == ["e4", "e5", "Nf3"]
        assert all(not node.variations for node in moves)

    def test_move_numbers_and_sides(self) -> None:
        _, moves = parse_movetext("1. e4 e5 2. Nf3 Nc6")
        assert [(n.move_number, n.is_white) for n in moves] == [
            (1, True),
            (1, False),
            (2, True),
            (2, False),
        ]

    def test_black_start(self) -> None:
        _, moves = parse_movetext("12... Nf6 13. Bg5")
        assert (moves[0].move_number, moves[0].is_white) == (12, False)
        assert (moves[1].move_number, moves[1].is_white) == (13, True)

    def test_missing_move_numbers(self) -> None:
        _, moves = parse_movetext("e4 e5 Nf3")
        assert [(n.move_number, n.is_white) for n in moves] == [
            (1, True),
            (1, False),
            (2, True),
        ]

    def test_result_tokens_discarded(self) -> None:
        _, moves = parse_movetext("1. e4 1-0")
        assert _sans(moves) == ["e4"]

    def test_mainline_is_a_copy(self) -> None:
        game = parse_games("1. e4 e5 *")[0]
        line = game.mainline()
        line.pop()
        assert len(game.moves) == 2


class TestVariations:
    def test_branch_structure(self) -> None:
        _, moves = parse_movetext(BRANCH_MOVETEXT)
        assert _sans(moves) == ["Rxd7", "Kxd7", "Kxb5"]
        assert moves[0].variations == []
        assert len(moves[1].variations) == 1

        line = moves[1].variations[0]
        assert _sans(line) == ["Rxb4+", "Bxb4", "Kxd7", "Kb5"]
        assert line[0].nags == [2]
        assert line[0].is_bad
        assert [(n.move_number, n.is_white) for n in line] == [
            (1, False),
            (2, True),
            (2, False),
            (3, True),
        ]

    def test_multiple_variations_keep_order(self) -> None:
        _, moves = parse_movetext("1. e4 e5 (1... c5) (1... e6) (1... c6) 2. Nf3")
        assert [_sans(v) for v in moves[1].variations] == [["c5"], ["e6"], ["c6"]]
        assert _sans(moves) == ["e4", "e5", "Nf3"]

    def test_nested_variations(self) -> None:
        _, moves = parse_movetext(
            "1. e4 e5 (1... c5 2. Nf3 (2. c3 d5) 2... d6) 2. Nf3 *"
        )
        sicilian = moves[1].variations[0]
        assert _sans(sicilian) == ["c5", "Nf3", "d6"]
        assert _sans(sicilian[1].variations[0]) == ["c3", "d5"]

    def test_unclosed_variation(self) -> None:
        _, moves = parse_movetext("1. e4 (1. d4 d5")
        assert _sans(moves) == ["e4"]
        assert _sans(moves[0].variations[0]) == ["d4", "d5"]

    def test_stray_closing_paren(self) -> None:
        _, moves = parse_movetext("1. e4 ) e5")
        assert _sans(moves) == ["e4", "e5"]

    def test_variation_lengths(self) -> None:
        _, moves = parse_movetext("1. d4 d5 2. c4 e6 (2... c6 3. Nf3 Nf6) 3. Nc3 *")
        assert len(moves) == 5
        assert len(moves[3].variations[0]) == 3


class TestComments:
    def test_comment_after_move(self) -> None:
        _, moves = parse_movetext("1. e4 {best by test} e5")
        assert moves[0].comment == "best by test"
        assert moves[1].comment == ""

    def test_consecutive_comments_joined(self) -> None:
        _, moves = parse_movetext("1. e4 {first} {second} e5")
        assert moves[0].comment == "first second"

    def test_comment_between_variations_goes_to_branch(self) -> None:
        _, moves = parse_movetext("1. e4 e5 (1... c5) {between} (1... e6) 2. Nf3")
        assert moves[1].comment == "between"
        assert len(moves[1].variations) == 2

    def test_comment_after_move_number(self) -> None:
        _, moves = parse_movetext("1. e4 2. {late} Nf3")
        assert moves[0].comment == "late"

    def test_leading_comment_is_game_comment(self) -> None:
        game = parse_games("{Intro text} 1. e4 *")[0]
        assert game.comment == "Intro text"
        assert game.moves[0].comment == ""

    def test_arrows_attached_to_move(self) -> None:
        _, moves = parse_movetext("1. e4 {[%cal Ge2e4] Center} e5")
        assert moves[0].arrows == [Arrow("e2", "e4", COLOR_CODES["G"])]
        assert moves[0].comment == "Center"

    def test_nags_from_symbols_and_codes(self) -> None:
        _, moves = parse_movetext("1. e4!? e5 $2 2. Nf3 $1 $14")
        assert moves[0].nags == [5]
        assert moves[1].nags == [2]
        assert moves[2].nags == [1, 14]


class TestHeaders:
    def test_parse_headers(self) -> None:
        headers = parse_headers('[Event "Test"]\n[White "Alice"]\n[Black "Bob"]')
        assert headers == {"Event": "Test", "White": "Alice", "Black": "Bob"}

    def test_escaped_quotes(self) -> None:
        headers = parse_headers('[White "A \\"B\\""]')
        assert headers["White"] == 'A "B"'

    def test_several_tags_on_one_line(self) -> None:
        games = parse_games('[White "A"] [Black "B"]\n\n1. e4 *')
        assert games[0].headers == {"White": "A", "Black": "B"}

    def test_fen_tag_sharing_a_line(self) -> None:
        fen = "4k3/8/8/8/8/8/8/4K2R w K - 0 1"
        game = parse_game(f'[Event "E"] [FEN "{fen}"]\n\n1. O-O *')
        assert game is not None
        assert game.fen == fen

    def test_malformed_header_skipped(self) -> None:
        headers = parse_headers('[Event "Ok"]\n[Broken]\n[Site "x"]')
        assert headers == {"Event": "Ok", "Site": "x"}

    def test_fen_header(self) -> None:
        fen = "4k3/8/8/8/8/8/8/4K2R w K - 0 1"
        game = parse_game(f'[FEN "{fen}"]\n\n1. O-O *')
        assert game is not None
        assert game.fen == fen

    def test_record_accessors(self) -> None:
        game = parse_game(
            '[White "Alice"]\n[Result "1-0"]\n[ECO "C20"]\n\n1. e4 1-0'
        )
        assert game is not None
        assert game.white == "Alice"
        assert game.black == "Black"
        assert game.result == "1-0"
        assert game.eco == "C20"


class TestSplitting:
    def test_two_games(self) -> None:
        pgn = '[Event "A"]\n\n1. e4 *\n\n[Event "B"]\n\n1. d4 *\n'
        games = parse_games(pgn)
        assert [g.headers["Event"] for g in games] == ["A", "B"]
        assert _sans(games[1].moves) == ["d4"]

    def test_blank_lines_do_not_split(self) -> None:
        games = parse_games('[Event "A"]\n\n1. e4 e5\n\n2. Nf3 *')
        assert len(games) == 1
        assert _sans(games[0].moves) == ["e4", "e5", "Nf3"]

    def test_empty_game_dropped(self) -> None:
        pgn = '[Event "A"]\n\n*\n\n[Event "B"]\n\n1. d4 *'
        games = parse_games(pgn)
        assert [g.headers["Event"] for g in games] == ["B"]

    def test_preamble_without_moves_dropped(self) -> None:
        games = parse_games('My puzzle collection\n[Event "A"]\n\n1. e4 *')
        assert len(games) == 1
        assert games[0].headers == {"Event": "A"}

    def test_preamble_with_move_like_text_dropped(self) -> None:
        games = parse_games('Puzzles for 1.e4 players\n[Event "P1"]\n\n1. d4 d5 *\n')
        assert len(games) == 1
        assert games[0].headers == {"Event": "P1"}
        assert _sans(games[0].moves) == ["d4", "d5"]

    def test_directive_line_inside_comment_does_not_split(self) -> None:
        pgn = '[Event "P1"]\n\n1. e4 {good\n[%cal Ge2e4]\n} e5 2. Nf3 *'
        games = parse_games(pgn)
        assert len(games) == 1
        moves = games[0].moves
        assert _sans(moves) == ["e4", "e5", "Nf3"]
        assert moves[0].comment == "good"
        assert moves[0].arrows == [Arrow("e2", "e4", COLOR_CODES["G"])]

    def test_bracket_line_inside_comment_is_not_a_header(self) -> None:
        pgn = '[Event "P1"]\n\n1. e4 {see\n[White "X"]\n} e5 *'
        games = parse_games(pgn)
        assert len(games) == 1
        assert "White" not in games[0].headers

    def test_escape_lines_ignored(self) -> None:
        games = parse_games('% exported by a tool\n[Event "A"]\n\n1. e4 *')
        assert _sans(games[0].moves) == ["e4"]

    def test_split_blocks(self) -> None:
        blocks = split_games('[Event "A"]\n1. e4 *\n[Event "B"]\n1. d4 *')
        assert len(blocks) == 2
        assert blocks[1].startswith('[Event "B"]')

    def test_no_games(self) -> None:
        assert parse_games("") == []
        assert parse_games("just some words") == []


class TestExport:
    def test_movetext_with_variation(self) -> None:
        _, moves = parse_movetext(BRANCH_MOVETEXT)
        assert movetext_from_tree(moves) == (
            "1. Rxd7 Kxd7 (1... Rxb4+ $2 2. Bxb4 Kxd7 3. Kb5) 2. Kxb5 *"
        )

    def test_comment_and_arrow_export(self) -> None:
        _, moves = parse_movetext("1. e4 {[%cal Ge2e4] Center} e5")
        assert movetext_from_tree(moves, "1-0") == (
            "1. e4 {[%cal Ge2e4] Center} 1... e5 1-0"
        )

    def test_closing_brace_in_comment_escaped(self) -> None:
        moves = [MoveNode("e4", comment="a } b")]
        assert movetext_from_tree(moves) == "1. e4 {a ] b} *"

    def test_build_pgn_reparses_to_same_tree(self) -> None:
        fen = "4k3/3n4/8/1r6/KP6/3R4/8/4B3 w - - 0 1"
        game = GameRecord(
            headers={"Event": 'Quote "test"', "Result": "*"},
            moves=parse_movetext(BRANCH_MOVETEXT)[1],
            fen=fen,
            comment="Win the rook",
        )
        text = build_pgn(game)
        assert f'[FEN "{fen}"]' in text

        again = parse_games(text)[0]
        assert again.headers["Event"] == 'Quote "test"'
        assert again.fen == fen
        assert again.comment == "Win the rook"
        assert again.moves == game.moves
