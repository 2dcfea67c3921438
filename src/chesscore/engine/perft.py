from __future__ import annotations

from typing import Dict

from .game import Game


def perft(game: Game, depth: int) -> int:
    """Compute perft node count for ``game`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are visited with ``commit``/``undo``, so the game is left as it
    was found. Promotions count once per destination (the engine promotes to
    a queen unless told otherwise), so positions with promotions report fewer
    nodes than under-promotion-aware tables.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    nodes = 0
    for m in game.all_legal_moves():
        if not game.commit(m.from_sq, m.to_sq):
            raise RuntimeError(f"generated move rejected: {m.to_uci()}")
        nodes += perft(game, depth - 1)
        game.undo()
    return nodes


def divide(game: Game, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts, keyed by ``e2e4``-style move text."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in game.all_legal_moves():
        game.commit(m.from_sq, m.to_sq)
        out[m.to_uci()] = perft(game, depth - 1)
        game.undo()
    return out
