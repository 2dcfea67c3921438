from __future__ import annotations

import pytest

from chesscore.engine.move import Move, MoveKind, notation, parse_move, square_to_str, str_to_square
from chesscore.engine.types import PieceKind


def test_square_names_follow_rows_and_columns() -> None:
    assert square_to_str((0, 0)) == "a8"
    assert square_to_str((7, 7)) == "h1"
    assert square_to_str((6, 4)) == "e2"
    assert str_to_square("e2") == (6, 4)
    with pytest.raises(ValueError):
        str_to_square("i1")
    with pytest.raises(ValueError):
        square_to_str((8, 0))


def test_notation_marks_captures() -> None:
    assert notation((6, 4), (4, 4), False) == "e2-e4"
    assert notation((4, 4), (3, 3), True) == "e4xd5"
    assert Move((3, 4), (2, 3), MoveKind.EN_PASSANT).notation == "e5xd6"
    assert Move((7, 4), (7, 6), MoveKind.CASTLE_KING_SIDE).notation == "e1-g1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("e2e4", ((6, 4), (4, 4), None)),
        ("e2-e4", ((6, 4), (4, 4), None)),
        ("E4xD5", ((4, 4), (3, 3), None)),
        ("e7e8n", ((1, 4), (0, 4), PieceKind.KNIGHT)),
    ],
)
def test_parse_move(text, expected) -> None:
    assert parse_move(text) == expected


@pytest.mark.parametrize("text", ["", "e2", "e2e9", "e7e8k", "e7e8p", "e2e4e5"])
def test_parse_move_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_move(text)
