from __future__ import annotations

import random

import pytest

from chesscore.engine.board import STARTPOS_FEN, Board
from chesscore.engine.game import ONGOING, Game
from chesscore.engine.move import Move, str_to_square as sq
from chesscore.engine.types import PROMOTION_KINDS, Color


def _observable(game: Game) -> tuple:
    return (
        game.board.copy(),
        dict(game.checks),
        game.outcome,
        {c: list(p) for c, p in game.captured.items()},
        list(game.history),
    )


def test_commit_then_undo_restores_start() -> None:
    game = Game.new()
    before = _observable(game)
    assert game.commit(sq("e2"), sq("e4"))
    assert game.undo()
    assert _observable(game) == before
    assert game.to_fen() == STARTPOS_FEN


def test_commit_moves_exactly_one_piece_and_toggles_turn() -> None:
    game = Game.new()
    before = game.board.copy()
    assert game.commit(sq("g1"), sq("f3"))
    changed = [
        (r, c)
        for r in range(8)
        for c in range(8)
        if game.board.squares[r][c] != before.squares[r][c]
    ]
    assert sorted(changed) == sorted([sq("g1"), sq("f3")])
    assert game.get_piece(sq("g1")) is None
    assert game.get_piece(sq("f3")) == before.piece_at(sq("g1"))
    assert game.side_to_move is Color.BLACK


def test_capture_goes_to_mover_list_and_back() -> None:
    game = Game.new()
    for m in ("e2e4", "d7d5"):
        assert game.commit(sq(m[:2]), sq(m[2:]))
    assert game.commit(sq("e4"), sq("d5"))
    assert [p.symbol for p in game.captured[Color.WHITE]] == ["p"]
    assert game.captured[Color.BLACK] == []
    assert game.move_history() == ["e2-e4", "d7-d5", "e4xd5"]

    assert game.undo()
    assert game.captured[Color.WHITE] == []
    assert game.get_piece(sq("d5")).symbol == "p"
    assert game.get_piece(sq("e4")).symbol == "P"


@pytest.mark.parametrize(
    "from_sq, to_sq",
    [
        (sq("e4"), sq("e5")),  # empty origin
        (sq("e7"), sq("e5")),  # opponent's piece
        (sq("e2"), sq("e5")),  # not a legal destination
        ((8, 4), (4, 4)),  # off the board
        (sq("e2"), (-1, 4)),
    ],
)
def test_rejected_commit_changes_nothing(from_sq, to_sq) -> None:
    game = Game.new()
    before = _observable(game)
    assert game.commit(from_sq, to_sq) is False
    assert _observable(game) == before


def test_undo_on_empty_history_fails() -> None:
    game = Game.new()
    assert game.undo() is False
    assert game.board == Board.startpos()


def test_reset_discards_history() -> None:
    game = Game.new()
    for m in ("e2e4", "d7d5", "e4d5"):
        assert game.commit(sq(m[:2]), sq(m[2:]))
    game.reset()
    assert game.board == Board.startpos()
    assert game.history == []
    assert game.captured == {Color.WHITE: [], Color.BLACK: []}
    assert game.outcome == ONGOING
    assert game.undo() is False


@pytest.mark.parametrize("seed", range(6))
def test_random_walk_round_trips_every_ply(seed: int) -> None:
    rng = random.Random(seed)
    game = Game.new()
    for _ in range(60):
        moves = game.all_legal_moves()
        if not moves:
            break
        move = rng.choice(moves)
        promo = rng.choice(PROMOTION_KINDS)
        before = _observable(game)
        assert game.commit(move.from_sq, move.to_sq, promo)
        assert game.undo()
        assert _observable(game) == before
        assert game.commit(move.from_sq, move.to_sq, promo)


def test_full_unwind_returns_to_start() -> None:
    rng = random.Random(42)
    game = Game.new()
    plies = 0
    for _ in range(40):
        moves = game.all_legal_moves()
        if not moves:
            break
        m = rng.choice(moves)
        assert game.commit(m.from_sq, m.to_sq)
        plies += 1
    for _ in range(plies):
        assert game.undo()
    assert game.board == Board.startpos()
    assert game.captured == {Color.WHITE: [], Color.BLACK: []}
    assert game.undo() is False


def test_moving_from_empty_square_raises() -> None:
    b = Board.startpos()
    with pytest.raises(ValueError):
        b.simulate(Move(sq("e4"), sq("e5")))
    with pytest.raises(ValueError):
        b.make_move(Move(sq("e4"), sq("e5")))
    assert b == Board.startpos()
