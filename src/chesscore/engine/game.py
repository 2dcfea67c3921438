from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .board import Board
from .move import HistoryEntry, Move
from .types import PROMOTION_KINDS, Color, Piece, PieceKind, Square


logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


@dataclass(frozen=True)
class GameOutcome:
    status: OutcomeStatus = OutcomeStatus.ONGOING
    winner: Optional[Color] = None

    @property
    def is_over(self) -> bool:
        return self.status is not OutcomeStatus.ONGOING


ONGOING = GameOutcome()
STALEMATE = GameOutcome(OutcomeStatus.STALEMATE)


def checkmate(winner: Color) -> GameOutcome:
    return GameOutcome(OutcomeStatus.CHECKMATE, winner)


def _no_captures() -> Dict[Color, List[Piece]]:
    return {Color.WHITE: [], Color.BLACK: []}


def _no_checks() -> Dict[Color, bool]:
    return {Color.WHITE: False, Color.BLACK: False}


@dataclass
class Game:
    """Game wrapper around a board with history, captures and status.

    Responsibility: validate and commit moves, undo them, and keep the check
    flags and outcome current after every change.

    ``captured`` is keyed by the capturing color. Once the outcome is
    checkmate or stalemate ``commit`` refuses further moves; ``undo`` still
    steps back.
    """

    board: Board
    history: List[HistoryEntry] = field(default_factory=list)
    captured: Dict[Color, List[Piece]] = field(default_factory=_no_captures)
    checks: Dict[Color, bool] = field(default_factory=_no_checks)
    outcome: GameOutcome = ONGOING

    def __post_init__(self) -> None:
        # Positions loaded from FEN may already be check, mate or stalemate
        self._update_status()

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(board=Board.from_fen(fen))

    def to_fen(self) -> str:
        return self.board.to_fen()

    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    def reset(self) -> None:
        """Return to the standard starting position and drop all history."""
        self.board = Board.startpos()
        self.history = []
        self.captured = _no_captures()
        self.checks = _no_checks()
        self.outcome = ONGOING

    # --- Queries ---
    def get_piece(self, sq: Square) -> Optional[Piece]:
        return self.board.piece_at(sq)

    def legal_moves(self, sq: Square) -> List[Move]:
        return self.board.legal_moves(sq)

    def all_legal_moves(self) -> List[Move]:
        return self.board.all_legal_moves()

    def is_attacked(self, sq: Square, color: Color) -> bool:
        return self.board.is_attacked(sq, color)

    def in_check(self, color: Optional[Color] = None) -> bool:
        return self.checks[self.side_to_move if color is None else color]

    def move_history(self) -> List[str]:
        return [entry.notation for entry in self.history]

    def last_move(self) -> Optional[HistoryEntry]:
        return self.history[-1] if self.history else None

    # --- Mutators ---
    def commit(
        self, from_sq: Square, to_sq: Square, promotion: Optional[PieceKind] = None
    ) -> bool:
        """Play ``from_sq -> to_sq`` for the side to move.

        Returns:
            bool: False (with no state change) when the game is over, the
                origin does not hold a piece of the side to move, the
                destination is not legal, or ``promotion`` is not a piece a
                pawn may become.
        """
        if self.outcome.is_over:
            logger.debug("commit rejected: game over", extra={"outcome": self.outcome.status.value})
            return False
        if promotion is not None:
            try:
                promotion = PieceKind(promotion)
            except ValueError:
                logger.debug("commit rejected: unknown promotion kind")
                return False
            if promotion not in PROMOTION_KINDS:
                logger.debug("commit rejected: bad promotion", extra={"promotion": promotion.value})
                return False
        move = next((m for m in self.board.legal_moves(from_sq) if m.to_sq == to_sq), None)
        if move is None:
            logger.debug("commit rejected: illegal", extra={"from_sq": from_sq, "to_sq": to_sq})
            return False

        entry = self.board.make_move(move, promotion)
        if entry.captured is not None:
            self.captured[entry.mover].append(entry.captured)
        self.history.append(entry)
        self._update_status()
        return True

    def undo(self) -> bool:
        """Take back the most recent move; False when there is none."""
        if not self.history:
            logger.debug("undo rejected: empty history")
            return False
        entry = self.history.pop()
        self.board.unmake_move(entry)
        if entry.captured is not None:
            self.captured[entry.mover].pop()
        self._update_status()
        return True

    def _update_status(self) -> None:
        stm = self.side_to_move
        in_check = self.board.in_check(stm)
        self.checks[stm] = in_check
        # The side that just moved cannot have left itself in check
        self.checks[stm.opponent] = False
        if self.board.has_legal_moves():
            self.outcome = ONGOING
        elif in_check:
            self.outcome = checkmate(stm.opponent)
        else:
            self.outcome = STALEMATE
