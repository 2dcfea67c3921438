from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .move import HistoryEntry, Move, MoveKind, Snapshot, notation, square_to_str, str_to_square
from .types import CastlingRights, Color, Piece, PieceKind, Square, on_board


# Four-field FEN: placement, side to move, castling, en passant. Move
# counters are not tracked.
STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq -"

KNIGHT_OFFSETS = ((-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
ROOK_DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))
BISHOP_DIRECTIONS = ((-1, -1), (-1, 1), (1, -1), (1, 1))

SLIDER_DIRECTIONS = {
    PieceKind.ROOK: ROOK_DIRECTIONS,
    PieceKind.BISHOP: BISHOP_DIRECTIONS,
    PieceKind.QUEEN: ROOK_DIRECTIONS + BISHOP_DIRECTIONS,
}
STEP_OFFSETS = {
    PieceKind.KNIGHT: KNIGHT_OFFSETS,
    PieceKind.KING: KING_OFFSETS,
}

# Castling geometry on the home row: (king-side, rook from col, rook to col,
# cols that must be empty, cols the king stands on / crosses / lands on)
CASTLES = {
    MoveKind.CASTLE_KING_SIDE: (True, 7, 5, (5, 6), (4, 5, 6)),
    MoveKind.CASTLE_QUEEN_SIDE: (False, 0, 3, (1, 2, 3), (4, 3, 2)),
}
KING_HOME_COL = 4

Grid = List[List[Optional[Piece]]]


def _empty_grid() -> Grid:
    return [[None] * 8 for _ in range(8)]


@dataclass
class Board:
    """Position state: occupancy plus turn and auxiliary rule state.

    Notes:
    - Squares are ``(row, col)``; row 0 is rank 8 (black's back rank).
    - ``king_squares`` duplicates information in ``squares`` and is kept in
      sync by every mutator.
    """

    squares: Grid = field(default_factory=_empty_grid)
    side_to_move: Color = Color.WHITE
    castling: CastlingRights = field(default_factory=CastlingRights)
    ep_square: Optional[Square] = None
    king_squares: Dict[Color, Square] = field(default_factory=dict)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a FEN string.

        Args:
            fen (str): Four- or six-field FEN. Move counters, when present,
                are validated and then ignored.

        Returns:
            Board: Board initialized with the encoded position.

        Raises:
            ValueError: If ``fen`` is malformed, does not hold exactly one
                king of each color, or leaves the side not to move in check.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) not in (4, 6):
            raise ValueError("FEN must have 4 or 6 fields")
        placement, stm, castling, ep = parts[:4]

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        squares = _empty_grid()
        kings: Dict[Color, List[Square]] = {Color.WHITE: [], Color.BLACK: []}
        for row, rank in enumerate(ranks):
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    col += n
                    continue
                if col >= 8:
                    raise ValueError("too many squares in FEN rank")
                piece = Piece.from_symbol(ch)
                squares[row][col] = piece
                if piece.kind is PieceKind.KING:
                    kings[piece.color].append((row, col))
                col += 1
            if col != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")
        if any(len(found) != 1 for found in kings.values()):
            raise ValueError("FEN must contain exactly one king per color")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")

        ep_square: Optional[Square] = None
        if ep != "-":
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            if ep_square[0] not in (2, 5):
                raise ValueError("invalid en passant square rank")

        if len(parts) == 6:
            try:
                halfmove, fullmove = int(parts[4]), int(parts[5])
            except ValueError as e:
                raise ValueError("invalid move counters in FEN") from e
            if halfmove < 0 or fullmove <= 0:
                raise ValueError("invalid move counters in FEN")

        board = cls(
            squares=squares,
            side_to_move=Color.WHITE if stm == "w" else Color.BLACK,
            castling=CastlingRights.from_fen(castling),
            ep_square=ep_square,
            king_squares={color: found[0] for color, found in kings.items()},
        )
        # The side that just moved cannot have left its own king attacked
        waiting = board.side_to_move.opponent
        if board.is_attacked(board.king_squares[waiting], board.side_to_move):
            raise ValueError("side not to move is in check")
        return board

    def to_fen(self) -> str:
        """Serialize the position into a four-field FEN string."""
        ranks: List[str] = []
        for row in self.squares:
            run = 0
            out = []
            for piece in row:
                if piece is None:
                    run += 1
                    continue
                if run:
                    out.append(str(run))
                    run = 0
                out.append(piece.symbol)
            if run:
                out.append(str(run))
            ranks.append("".join(out))
        stm = "w" if self.side_to_move is Color.WHITE else "b"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return f"{'/'.join(ranks)} {stm} {self.castling.to_fen()} {ep}"

    def copy(self) -> "Board":
        return Board(
            squares=[list(row) for row in self.squares],
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            king_squares=dict(self.king_squares),
        )

    def piece_at(self, sq: Square) -> Optional[Piece]:
        row, col = sq
        if not on_board(row, col):
            return None
        return self.squares[row][col]

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        for row in range(8):
            for col in range(8):
                piece = self.squares[row][col]
                if piece is not None and (color is None or piece.color is color):
                    yield (row, col), piece

    # --- Pseudo-legal generation ---
    def pseudo_legal_moves(self, sq: Square, *, castling: bool = True) -> List[Move]:
        """Return moves allowed by the movement rule of the piece on ``sq``.

        Ignores whether the move leaves the mover's king attacked. Color
        comes from the piece, never from ``side_to_move``, so the attack
        detector can ask about either side without flipping the turn.
        """
        piece = self.piece_at(sq)
        if piece is None:
            return []
        if piece.kind is PieceKind.PAWN:
            return self._pawn_moves(sq, piece.color)
        if piece.kind in STEP_OFFSETS:
            moves = self._step_moves(sq, piece.color, STEP_OFFSETS[piece.kind])
            if castling and piece.kind is PieceKind.KING:
                moves.extend(self._castling_moves(sq, piece.color))
            return moves
        return self._slide_moves(sq, piece.color, SLIDER_DIRECTIONS[piece.kind])

    def _pawn_moves(self, sq: Square, color: Color) -> List[Move]:
        row, col = sq
        fwd = color.forward
        moves: List[Move] = []
        one = row + fwd
        if not on_board(one, col):
            return moves
        if self.squares[one][col] is None:
            moves.append(Move(sq, (one, col)))
            two = row + 2 * fwd
            if row == color.pawn_row and self.squares[two][col] is None:
                moves.append(Move(sq, (two, col), MoveKind.DOUBLE_STEP, ep_target=(one, col)))
        for dc in (-1, 1):
            c = col + dc
            if not on_board(one, c):
                continue
            target = self.squares[one][c]
            if target is not None:
                if target.color is not color:
                    moves.append(Move(sq, (one, c), MoveKind.CAPTURE))
            elif (one, c) == self.ep_square and self.squares[row][c] == Piece(
                PieceKind.PAWN, color.opponent
            ):
                moves.append(Move(sq, (one, c), MoveKind.EN_PASSANT))
        return moves

    def _step_moves(self, sq: Square, color: Color, offsets) -> List[Move]:
        row, col = sq
        moves: List[Move] = []
        for dr, dc in offsets:
            r, c = row + dr, col + dc
            if not on_board(r, c):
                continue
            target = self.squares[r][c]
            if target is None:
                moves.append(Move(sq, (r, c)))
            elif target.color is not color:
                moves.append(Move(sq, (r, c), MoveKind.CAPTURE))
        return moves

    def _slide_moves(self, sq: Square, color: Color, directions) -> List[Move]:
        row, col = sq
        moves: List[Move] = []
        for dr, dc in directions:
            r, c = row + dr, col + dc
            while on_board(r, c):
                target = self.squares[r][c]
                if target is None:
                    moves.append(Move(sq, (r, c)))
                else:
                    if target.color is not color:
                        moves.append(Move(sq, (r, c), MoveKind.CAPTURE))
                    break
                r += dr
                c += dc
        return moves

    def _castling_moves(self, sq: Square, color: Color) -> List[Move]:
        home = color.home_row
        if sq != (home, KING_HOME_COL):
            return []
        opponent = color.opponent
        rook = Piece(PieceKind.ROOK, color)
        moves: List[Move] = []
        for kind, (king_side, rook_from, _rook_to, between, path) in CASTLES.items():
            if not self.castling.has(color, king_side):
                continue
            if any(self.squares[home][c] is not None for c in between):
                continue
            if self.squares[home][rook_from] != rook:
                continue
            if any(self.is_attacked((home, c), opponent) for c in path):
                continue
            moves.append(Move(sq, (home, path[-1]), kind))
        return moves

    # --- Attack detection ---
    def attacks(self, sq: Square) -> List[Square]:
        """Pseudo-legal destinations of the piece on ``sq``, castling excluded.

        Pawn pushes and en passant count; a pawn's diagonal onto an empty
        square does not.
        """
        return [m.to_sq for m in self.pseudo_legal_moves(sq, castling=False)]

    def attacked_squares(self, by: Color) -> Set[Square]:
        out: Set[Square] = set()
        for sq, _piece in self.pieces(by):
            out.update(self.attacks(sq))
        return out

    def is_attacked(self, sq: Square, by: Color) -> bool:
        """Return True if ``sq`` is a pseudo-legal destination of a piece of ``by``.

        Castling is left out of the generator here, so this never reaches
        ``_castling_moves`` again. The side to move is not consulted.
        """
        row, col = sq
        if not on_board(row, col):
            return False
        return any(sq in self.attacks(origin) for origin, _piece in self.pieces(by))

    def in_check(self, color: Optional[Color] = None) -> bool:
        """Return True if ``color`` (default: side to move) is in check."""
        c = self.side_to_move if color is None else color
        return self.is_attacked(self.king_squares[c], c.opponent)

    # --- Legality filter ---
    def is_legal(self, move: Move) -> bool:
        """Return True if ``move`` does not leave the mover's king attacked.

        The move is played on a throwaway copy of the grid and king squares;
        this board is never touched.
        """
        piece = self.piece_at(move.from_sq)
        if piece is None:
            return False
        work = self.simulate(move)
        return not work.is_attacked(work.king_squares[piece.color], piece.color.opponent)

    def simulate(self, move: Move) -> "Board":
        """Return a copy with ``move``'s pieces relocated (turn and rights untouched)."""
        work = self.copy()
        work._relocate(move)
        return work

    def legal_moves(self, sq: Square) -> List[Move]:
        """Legal moves of the piece on ``sq``; empty unless it is the side to move's."""
        piece = self.piece_at(sq)
        if piece is None or piece.color is not self.side_to_move:
            return []
        return [m for m in self.pseudo_legal_moves(sq) if self.is_legal(m)]

    def all_legal_moves(self) -> List[Move]:
        moves: List[Move] = []
        for sq, _piece in self.pieces(self.side_to_move):
            moves.extend(self.legal_moves(sq))
        return moves

    def has_legal_moves(self) -> bool:
        """Return True if the side to move has at least one legal move."""
        return any(
            self.is_legal(m)
            for sq, _piece in self.pieces(self.side_to_move)
            for m in self.pseudo_legal_moves(sq)
        )

    # --- Make / unmake ---
    def _relocate(self, move: Move, promotion: Optional[PieceKind] = None) -> Optional[Piece]:
        """Move pieces on the grid for ``move``; return the captured piece.

        Handles en passant removal, the castling rook, promotion and the
        cached king square. Turn and rights are left to ``make_move``.
        """
        (fr, fc), (tr, tc) = move.from_sq, move.to_sq
        piece = self.squares[fr][fc]
        if piece is None:
            raise ValueError("no piece to move from from_sq")
        captured = self.squares[tr][tc]
        if move.kind is MoveKind.EN_PASSANT:
            victim_row = tr - piece.color.forward
            captured = self.squares[victim_row][tc]
            self.squares[victim_row][tc] = None
        elif move.kind.is_castle:
            _side, rook_from, rook_to, _between, _path = CASTLES[move.kind]
            self.squares[fr][rook_to] = self.squares[fr][rook_from]
            self.squares[fr][rook_from] = None
        self.squares[tr][tc] = piece
        self.squares[fr][fc] = None
        if piece.kind is PieceKind.PAWN and tr == piece.color.promotion_row:
            self.squares[tr][tc] = Piece(promotion or PieceKind.QUEEN, piece.color)
        if piece.kind is PieceKind.KING:
            self.king_squares[piece.color] = move.to_sq
        return captured

    def make_move(self, move: Move, promotion: Optional[PieceKind] = None) -> HistoryEntry:
        """Apply ``move`` in place and return the record needed to undo it.

        The caller is responsible for having checked legality.
        """
        piece = self.piece_at(move.from_sq)
        if piece is None:
            raise ValueError("no piece to move from from_sq")
        color = piece.color
        snapshot = Snapshot(
            ep_square=self.ep_square,
            castling=self.castling,
            king_squares=tuple(self.king_squares.items()),
        )

        captured = self._relocate(move, promotion)

        rights = self.castling
        if piece.kind is PieceKind.KING:
            rights = rights.revoke(color)
        elif piece.kind is PieceKind.ROOK and move.from_sq in (
            (color.home_row, 0),
            (color.home_row, 7),
        ):
            rights = rights.revoke(color, king_side=move.from_sq[1] == 7)
        # A rook taken on its corner can no longer castle
        if captured is not None and captured.kind is PieceKind.ROOK:
            home = captured.color.home_row
            if move.to_sq in ((home, 0), (home, 7)):
                rights = rights.revoke(captured.color, king_side=move.to_sq[1] == 7)
        self.castling = rights

        self.ep_square = move.ep_target if move.kind is MoveKind.DOUBLE_STEP else None
        self.side_to_move = color.opponent

        landed = self.squares[move.to_sq[0]][move.to_sq[1]]
        return HistoryEntry(
            from_sq=move.from_sq,
            to_sq=move.to_sq,
            piece=piece,
            captured=captured,
            kind=move.kind,
            notation=notation(move.from_sq, move.to_sq, captured is not None),
            snapshot=snapshot,
            promotion=landed.kind if landed is not None and landed.kind is not piece.kind else None,
        )

    def unmake_move(self, entry: HistoryEntry) -> None:
        """Reverse ``entry``, which must be the last move made on this board."""
        (fr, fc), (tr, tc) = entry.from_sq, entry.to_sq
        self.squares[fr][fc] = entry.piece
        if entry.kind is MoveKind.EN_PASSANT:
            self.squares[tr][tc] = None
            self.squares[tr - entry.mover.forward][tc] = entry.captured
        else:
            self.squares[tr][tc] = entry.captured
        if entry.kind.is_castle:
            _side, rook_from, rook_to, _between, _path = CASTLES[entry.kind]
            self.squares[fr][rook_from] = self.squares[fr][rook_to]
            self.squares[fr][rook_to] = None

        snap = entry.snapshot
        self.ep_square = snap.ep_square
        self.castling = snap.castling
        self.king_squares = snap.kings()
        self.side_to_move = entry.mover
