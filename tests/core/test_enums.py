"""Tests for core enumerations."""

import pytest

from chessdrill.core.enums import Color


class TestColor:
    def test_opposite(self) -> None:
        assert Color.WHITE.opposite == Color.BLACK
        assert Color.BLACK.opposite == Color.WHITE

    def test_fen_char_round_trip(self) -> None:
        for color in Color:
            assert Color.from_fen_char(color.fen_char) == color

    def test_invalid_fen_char(self) -> None:
        with pytest.raises(ValueError):
            Color.from_fen_char("x")

    def test_str(self) -> None:
        assert str(Color.WHITE) == "white"
        assert f"{Color.BLACK}" == "black"
