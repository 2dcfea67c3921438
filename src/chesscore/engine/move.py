from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .types import CastlingRights, Color, Piece, PieceKind, PROMOTION_KINDS, Square, on_board


class MoveKind(str, Enum):
    NORMAL = "normal"
    CAPTURE = "capture"
    DOUBLE_STEP = "double-step"
    EN_PASSANT = "en-passant"
    CASTLE_KING_SIDE = "castle-king-side"
    CASTLE_QUEEN_SIDE = "castle-queen-side"

    @property
    def is_castle(self) -> bool:
        return self in (MoveKind.CASTLE_KING_SIDE, MoveKind.CASTLE_QUEEN_SIDE)

    @property
    def is_capture(self) -> bool:
        return self in (MoveKind.CAPTURE, MoveKind.EN_PASSANT)


@dataclass(frozen=True)
class Move:
    """Generated move candidate.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        kind (MoveKind): Rule that produced the move.
        ep_target (Optional[Square]): Square skipped by a double step; only
            set for ``MoveKind.DOUBLE_STEP``.
    """

    from_sq: Square
    to_sq: Square
    kind: MoveKind = MoveKind.NORMAL
    ep_target: Optional[Square] = None

    def to_uci(self) -> str:
        return square_to_str(self.from_sq) + square_to_str(self.to_sq)

    @property
    def notation(self) -> str:
        return notation(self.from_sq, self.to_sq, self.kind.is_capture)


@dataclass(frozen=True)
class Snapshot:
    """Auxiliary state as it was before a move; restored verbatim on undo."""

    ep_square: Optional[Square]
    castling: CastlingRights
    king_squares: Tuple[Tuple[Color, Square], ...]

    def kings(self) -> Dict[Color, Square]:
        return dict(self.king_squares)


@dataclass(frozen=True)
class HistoryEntry:
    from_sq: Square
    to_sq: Square
    piece: Piece  # as it stood on from_sq, before any promotion
    captured: Optional[Piece]
    kind: MoveKind
    notation: str
    snapshot: Snapshot
    promotion: Optional[PieceKind] = None

    @property
    def mover(self) -> Color:
        return self.piece.color


def square_to_str(sq: Square) -> str:
    """Convert a ``(row, col)`` square into algebraic notation.

    Raises:
        ValueError: If ``sq`` is off the board.
    """
    row, col = sq
    if not on_board(row, col):
        raise ValueError(f"invalid square: {sq!r}")
    return chr(ord("a") + col) + str(8 - row)


def str_to_square(s: str) -> Square:
    """Convert algebraic notation such as ``"e4"`` into ``(row, col)``.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return 8 - int(s[1]), ord(s[0]) - ord("a")


def notation(from_sq: Square, to_sq: Square, capture: bool) -> str:
    return square_to_str(from_sq) + ("x" if capture else "-") + square_to_str(to_sq)


def parse_move(text: str) -> Tuple[Square, Square, Optional[PieceKind]]:
    """Parse ``"e2e4"``, ``"e2-e4"``, ``"e5xd6"`` or ``"e7e8n"``.

    Returns:
        Tuple of origin, destination and the optional promotion kind.

    Raises:
        ValueError: If the string is malformed or names an invalid
            promotion piece.
    """
    s = text.strip().lower()
    if len(s) >= 5 and s[2] in "-x":
        s = s[:2] + s[3:]
    if len(s) not in (4, 5):
        raise ValueError(f"invalid move length: {text!r}")
    from_sq = str_to_square(s[0:2])
    to_sq = str_to_square(s[2:4])
    promo: Optional[PieceKind] = None
    if len(s) == 5:
        try:
            promo = PieceKind(s[4])
        except ValueError as e:
            raise ValueError(f"invalid promotion piece: {s[4]!r}") from e
        if promo not in PROMOTION_KINDS:
            raise ValueError(f"invalid promotion piece: {s[4]!r}")
    return from_sq, to_sq, promo
