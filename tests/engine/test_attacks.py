from __future__ import annotations

import pytest

from chesscore.engine.board import Board
from chesscore.engine.move import str_to_square
from chesscore.engine.types import Color


POSITIONS = [
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
    "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
    "4r1k1/5ppp/8/3q4/8/2N5/PP3PPP/4R1K1 b - - 0 1",
]


def test_attacked_means_pseudo_legal_destination() -> None:
    b = Board.startpos()
    # Pushes count, including the double step; empty pawn diagonals do not
    assert b.is_attacked(str_to_square("e3"), Color.WHITE)
    assert b.is_attacked(str_to_square("e4"), Color.WHITE)
    assert not b.is_attacked(str_to_square("e5"), Color.WHITE)
    assert b.is_attacked(str_to_square("d5"), Color.BLACK)
    b2 = Board.from_fen("4k3/8/8/8/8/8/4P3/4K3 w - - 0 1")
    assert not b2.is_attacked(str_to_square("d3"), Color.WHITE)
    assert not b2.is_attacked(str_to_square("f3"), Color.WHITE)


def test_pawn_diagonal_attacks_enemy_piece() -> None:
    b = Board.from_fen("4k3/8/8/8/8/3n4/4P3/4K3 w - - 0 1")
    assert b.is_attacked(str_to_square("d3"), Color.WHITE)
    assert not b.is_attacked(str_to_square("f3"), Color.WHITE)


def test_en_passant_target_counts_whichever_side_is_to_move() -> None:
    fen = "4k3/8/8/3pP3/8/8/8/4K3 {} - d6 0 1"
    for stm in ("w", "b"):
        b = Board.from_fen(fen.format(stm))
        assert b.is_attacked(str_to_square("d6"), Color.WHITE)
        assert b.side_to_move is (Color.WHITE if stm == "w" else Color.BLACK)


@pytest.mark.parametrize("fen", POSITIONS)
@pytest.mark.parametrize("color", [Color.WHITE, Color.BLACK])
def test_attacked_iff_some_generated_move_lands_there(fen: str, color: Color) -> None:
    b = Board.from_fen(fen)
    destinations = {
        m.to_sq for sq, _piece in b.pieces(color) for m in b.pseudo_legal_moves(sq, castling=False)
    }
    for row in range(8):
        for col in range(8):
            assert b.is_attacked((row, col), color) == ((row, col) in destinations), (row, col)


def test_square_held_by_attacker_is_not_attacked() -> None:
    b = Board.startpos()
    # d1 queen is defended by its neighbours, but that is not an attack
    assert not b.is_attacked(str_to_square("d1"), Color.WHITE)


def test_slider_attack_is_blocked() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/4P3/4R1K1 w - - 0 1")
    assert b.is_attacked(str_to_square("e2"), Color.WHITE) is False  # own pawn
    assert b.is_attacked(str_to_square("e5"), Color.WHITE) is False  # beyond the pawn
    assert b.is_attacked(str_to_square("a1"), Color.WHITE)


def test_off_board_square_is_never_attacked() -> None:
    b = Board.startpos()
    assert b.is_attacked((8, 3), Color.WHITE) is False


def test_attack_queries_do_not_change_turn() -> None:
    b = Board.startpos()
    b.is_attacked(str_to_square("e5"), Color.BLACK)
    b.attacked_squares(Color.BLACK)
    assert b.side_to_move is Color.WHITE
