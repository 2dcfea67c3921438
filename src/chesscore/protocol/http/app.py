from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...config import Settings
from ...engine.game import Game
from ...engine.move import parse_move, square_to_str, str_to_square
from ...engine.perft import perft as perft_nodes
from ...engine.types import Color, Square
from ...search.service import MoveSelector


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Move text, e.g. e2e4, e2-e4 or e7e8n")


class PerftRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="FEN string (default: startpos)")
    depth: int = Field(default=1, ge=0, le=3)


class LegalMove(BaseModel):
    to: str
    kind: str


class Outcome(BaseModel):
    status: str
    winner: Optional[str]


class GameState(BaseModel):
    game_id: str
    fen: str
    board: List[List[Optional[str]]]
    turn: str
    in_check: Dict[str, bool]
    outcome: Outcome
    captured: Dict[str, List[str]]
    last_move: Optional[str]
    move_history: List[str]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=settings.log_level.upper())

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    selector = MoveSelector(random.Random(settings.ai_seed))
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game() -> CreateGameResponse:
        with store.lock:
            game_id = store.create(Game.new())
            fen = _require_game(store, game_id).to_fen()
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=fen)

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, Any]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        logger.info("game deleted", extra={"game_id": game_id, "sessions": len(store)})
        return {"game_id": game_id, "deleted": True}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        with store.lock:
            return _state(game_id, _require_game(store, game_id))

    @app.get("/api/games/{game_id}/moves", response_model=List[LegalMove])
    def legal_moves(game_id: str, square: str) -> List[LegalMove]:
        sq = _parse_square(square)
        with store.lock:
            game = _require_game(store, game_id)
            return [
                LegalMove(to=square_to_str(m.to_sq), kind=m.kind.value)
                for m in game.legal_moves(sq)
            ]

    @app.get("/api/games/{game_id}/attacked")
    def attacked(game_id: str, square: str, color: Color) -> Dict[str, Any]:
        sq = _parse_square(square)
        with store.lock:
            game = _require_game(store, game_id)
            return {"square": square, "color": color.value, "attacked": game.is_attacked(sq, color)}

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        try:
            from_sq, to_sq, promotion = parse_move(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with store.lock:
            game = _require_game(store, game_id)
            if not game.commit(from_sq, to_sq, promotion):
                raise HTTPException(status_code=400, detail="illegal move")
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/ai-move", response_model=GameState)
    def ai_move(game_id: str) -> GameState:
        with store.lock:
            game = _require_game(store, game_id)
            move = selector.select(game)
            if move is None:
                raise HTTPException(status_code=409, detail="no move available: game is over")
            game.commit(move.from_sq, move.to_sq)
            logger.info("ai move", extra={"game_id": game_id, "move": move.notation})
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        with store.lock:
            game = _require_game(store, game_id)
            if not game.undo():
                raise HTTPException(status_code=400, detail="no moves to undo")
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    def reset(game_id: str) -> GameState:
        with store.lock:
            game = _require_game(store, game_id)
            game.reset()
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        with store.lock:
            _require_game(store, game_id)
            try:
                game = Game.from_fen(req.fen)
            except ValueError:
                raise HTTPException(status_code=400, detail="invalid FEN")
            store.set(game_id, game)
            return _state(game_id, game)

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, Any]:
        try:
            game = Game.from_fen(req.fen) if req.fen else Game.new()
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return {"nodes": perft_nodes(game, req.depth), "depth": req.depth}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _parse_square(text: str) -> Square:
    try:
        return str_to_square(text.strip().lower())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _state(game_id: str, game: Game) -> GameState:
    last = game.last_move()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        board=[[p.symbol if p else None for p in row] for row in game.board.squares],
        turn=game.side_to_move.value,
        in_check={color.value: flag for color, flag in game.checks.items()},
        outcome=Outcome(
            status=game.outcome.status.value,
            winner=game.outcome.winner.value if game.outcome.winner else None,
        ),
        captured={color.value: [p.symbol for p in pieces] for color, pieces in game.captured.items()},
        last_move=last.notation if last else None,
        move_history=game.move_history(),
    )
