"""FastAPI REST interface for the engine."""

import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Literal, Optional

from reversi.config import CONFIG
from reversi.core.board import Player
from reversi.core.exceptions import ReversiError, SearchCancelled
from reversi.main import BoardManager

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# One shared game session for all requests.
manager = BoardManager(Player.HUMAN, CONFIG.search.level)
_board_lock = threading.Lock()


class NewGameRequest(BaseModel):
    first_player: Literal["human", "machine"] = "human"
    level: Optional[int] = None


class MoveRequest(BaseModel):
    row: int
    col: int


class LevelRequest(BaseModel):
    level: int


def _player_name(player: Optional[Player]) -> Optional[str]:
    return player.name.lower() if player else None


def _state() -> dict:
    board = manager.current
    game_over = board.game_over()
    return {
        "rows": str(board).replace(" ", "").splitlines(),
        "next": _player_name(board.next_player()),
        "is_game_over": game_over,
        "winner": _player_name(board.winner()) if game_over else None,
        "human_tiles": board.tile_count(Player.HUMAN),
        "machine_tiles": board.tile_count(Player.MACHINE),
        "level": board.level,
        "undo_possible": manager.undo_possible(),
        "legal_moves": [[p.row, p.col] for p in board.valid_moves(Player.HUMAN)],
    }


def _check_level(level: int):
    lo, hi = CONFIG.search.min_level, CONFIG.search.max_level
    if not lo <= level <= hi:
        raise HTTPException(status_code=400, detail=f"Level must be between {lo} and {hi}")


@app.get("/board")
def get_board():
    with _board_lock:
        return _state()


@app.post("/new")
def new_game(req: NewGameRequest = NewGameRequest()):
    level = req.level if req.level is not None else CONFIG.search.level
    _check_level(level)
    first = Player.HUMAN if req.first_player == "human" else Player.MACHINE
    with _board_lock:
        manager.new_game(first, level)
        return _state()


@app.post("/move")
def make_move(req: MoveRequest):
    with _board_lock:
        try:
            accepted = manager.move(req.row, req.col)
        except ReversiError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not accepted:
            raise HTTPException(status_code=400, detail=f"Illegal move: [{req.row}][{req.col}]")
        return _state()


@app.post("/machine-move")
def machine_move():
    played = 0
    while True:
        with _board_lock:
            board = manager.current
            if board.next_player() is not Player.MACHINE:
                if not played:
                    raise HTTPException(status_code=400, detail="It is not the machine's turn")
                return {"played": played, **_state()}

        # Search on the snapshot so other requests are served meanwhile.
        try:
            after = board.machine_move(manager.search)
        except SearchCancelled:
            raise HTTPException(status_code=409, detail="Search cancelled")

        with _board_lock:
            if not manager.commit(board, after):
                raise HTTPException(status_code=409, detail="Board changed during the search")
        played += 1


@app.post("/cancel")
def cancel():
    manager.cancel()
    return {"cancelled": True}


@app.post("/undo")
def undo():
    with _board_lock:
        if not manager.undo_possible():
            raise HTTPException(status_code=400, detail="Nothing to undo")
        manager.undo()
        return _state()


@app.post("/level")
def set_level(req: LevelRequest):
    _check_level(req.level)
    with _board_lock:
        manager.set_level(req.level)
        return _state()
