from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple


# (row, col); row 0 is rank 8, col 0 is file a
Square = Tuple[int, int]


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Row delta of a pawn advance for this color."""
        return -1 if self is Color.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        return 6 if self is Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceKind(str, Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


PROMOTION_KINDS = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)

# Relative material value, used by move selection
PIECE_VALUES: Dict[PieceKind, int] = {
    PieceKind.PAWN: 1,
    PieceKind.KNIGHT: 3,
    PieceKind.BISHOP: 3,
    PieceKind.ROOK: 5,
    PieceKind.QUEEN: 9,
    PieceKind.KING: 0,
}


@dataclass(frozen=True)
class Piece:
    kind: PieceKind
    color: Color

    @property
    def symbol(self) -> str:
        """FEN letter: uppercase for white, lowercase for black."""
        ch = self.kind.value
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        try:
            kind = PieceKind(ch.lower())
        except ValueError as e:
            raise ValueError(f"invalid piece symbol: {ch!r}") from e
        return cls(kind, Color.WHITE if ch.isupper() else Color.BLACK)

    @property
    def value(self) -> int:
        return PIECE_VALUES[self.kind]


@dataclass(frozen=True)
class CastlingRights:
    """Per-color king-side / queen-side castling availability."""

    white_king: bool = True
    white_queen: bool = True
    black_king: bool = True
    black_queen: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    def has(self, color: Color, king_side: bool) -> bool:
        return getattr(self, _field_name(color, king_side))

    def revoke(self, color: Color, king_side: Optional[bool] = None) -> "CastlingRights":
        """Return rights with one side (or both when ``king_side`` is None) removed."""
        sides = (True, False) if king_side is None else (king_side,)
        return replace(self, **{_field_name(color, s): False for s in sides})

    @classmethod
    def from_fen(cls, field: str) -> "CastlingRights":
        if field == "-":
            return cls.none()
        if not field or any(ch not in "KQkq" for ch in field):
            raise ValueError("invalid castling rights")
        return cls("K" in field, "Q" in field, "k" in field, "q" in field)

    def to_fen(self) -> str:
        out = "".join(
            ch
            for ch, flag in (
                ("K", self.white_king),
                ("Q", self.white_queen),
                ("k", self.black_king),
                ("q", self.black_queen),
            )
            if flag
        )
        return out or "-"


def _field_name(color: Color, king_side: bool) -> str:
    return f"{color.value}_{'king' if king_side else 'queen'}"


def on_board(row: int, col: int) -> bool:
    return 0 <= row < 8 and 0 <= col < 8
