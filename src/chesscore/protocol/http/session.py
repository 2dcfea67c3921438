from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...engine.game import Game


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Replace a session's game (position setup)
    - Delete sessions

    ``lock`` is also held by request handlers while they mutate a game, since
    a ``Game`` must not be driven from two threads at once.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._games: Dict[str, Game] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self.lock:
            self._games[gid] = game
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self.lock:
            return self._games.get(game_id)

    def set(self, game_id: str, game: Game) -> None:
        with self.lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def delete(self, game_id: str) -> bool:
        with self.lock:
            return self._games.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self.lock:
            return len(self._games)
