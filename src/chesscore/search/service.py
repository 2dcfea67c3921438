from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional

from chesscore.engine.game import Game
from chesscore.engine.move import Move, MoveKind
from chesscore.engine.types import Piece


# Above this many captures, pick randomly among the best few
TOP_CAPTURES = 3


@dataclass(frozen=True)
class Candidate:
    move: Move
    captured: Optional[Piece]
    dangerous: bool

    @property
    def capture_value(self) -> int:
        return self.captured.value if self.captured is not None else 0


class MoveSelector:
    """Capture-first move picker for the side to move.

    Ranking:
    - captures, most valuable victim first (random among the top three when
      more than three are available)
    - otherwise a random move whose destination is not attacked afterwards
    - otherwise any random legal move

    The game is never mutated; danger is judged on a board copy.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def candidates(self, game: Game) -> List[Candidate]:
        board = game.board
        out: List[Candidate] = []
        for m in board.all_legal_moves():
            if m.kind is MoveKind.EN_PASSANT:
                captured = board.piece_at((m.from_sq[0], m.to_sq[1]))
            else:
                captured = board.piece_at(m.to_sq)
            out.append(Candidate(m, captured, self._is_dangerous(game, m)))
        return out

    def _is_dangerous(self, game: Game, move: Move) -> bool:
        work = game.board.simulate(move)
        return work.is_attacked(move.to_sq, game.side_to_move.opponent)

    def select(self, game: Game) -> Optional[Move]:
        if game.outcome.is_over:
            return None
        pool = self.candidates(game)
        if not pool:
            return None

        captures = [c for c in pool if c.captured is not None]
        if captures:
            captures.sort(key=lambda c: c.capture_value, reverse=True)
            if len(captures) > TOP_CAPTURES:
                return self.rng.choice(captures[:TOP_CAPTURES]).move
            return captures[0].move

        safe = [c for c in pool if not c.dangerous]
        if safe:
            return self.rng.choice(safe).move
        return self.rng.choice(pool).move
