"""Game session with undo history and change notification."""

import logging
from typing import Callable, List, Optional

from reversi.core.board import Board, Player, check_level
from reversi.core.exceptions import IllegalStateError
from reversi.core.search import SearchEngine
from reversi.core.utils import Position

logger = logging.getLogger(__name__)


class BoardManager:
    """Owns the stack of boards of one game, newest last.

    The stack is never empty. Subscribers are called with no arguments after
    every successful new_game, move, machine_move and undo. The manager does
    not lock; callers serialise access.
    """

    def __init__(self, first_player: Player, level: int, search: Optional[SearchEngine] = None):
        self.search = search or SearchEngine()
        self._stack: List[Board] = [Board(first_player, level)]
        self._observers: List[Callable[[], None]] = []

    # ── Mutators ─────────────────────────────────────────────────────────

    def new_game(self, first_player: Player, level: int):
        board = Board(first_player, level)
        self._stack.clear()
        self._stack.append(board)
        logger.debug("New game, %s first, level %d", first_player.name, level)
        self._notify()

    def move(self, row: int, col: int) -> bool:
        """Human move on the current board. False if the move is illegal."""
        result = self.current.move(row, col)
        if result is None:
            return False
        self._stack.append(result)
        self._notify()
        return True

    def machine_move(self):
        self._stack.append(self.current.machine_move(self.search))
        self._notify()

    def commit(self, expected: Board, result: Board) -> bool:
        """Push `result` only if `expected` is still the current board.

        For callers that search on a snapshot outside their own lock.
        """
        if self.current is not expected:
            return False
        self._stack.append(result)
        self._notify()
        return True

    def process_machine_moves(self) -> int:
        """Play machine moves for as long as it is the machine's turn.

        More than one move means the human had to pass in between.
        """
        played = 0
        while self.next_player() is Player.MACHINE:
            self.machine_move()
            played += 1
        return played

    def undo(self):
        """Go back to the board before the human's last move."""
        if not self.undo_possible():
            raise IllegalStateError("Undo impossible in this state!")
        self._stack.pop()
        while self.current.next_player() is not Player.HUMAN:
            self._stack.pop()
        logger.debug("Undo, %d boards left", len(self._stack))
        self._notify()

    def undo_possible(self) -> bool:
        return any(b.next_player() is Player.HUMAN for b in self._stack[:-1])

    def set_level(self, level: int):
        """Change the level on every board of the game, not just the top."""
        check_level(level)
        self._require_boards()
        self._stack = [b.with_level(level) for b in self._stack]
        logger.debug("Level set to %d", level)

    def cancel(self):
        """Ask a machine move running in another thread to give up."""
        self.search.stop()

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def current(self) -> Board:
        self._require_boards()
        return self._stack[-1]

    @property
    def first_player(self) -> Player:
        return self.current.first_player

    @property
    def level(self) -> int:
        return self.current.level

    def next_player(self) -> Optional[Player]:
        return self.current.next_player()

    def game_over(self) -> bool:
        return self.current.game_over()

    def winner(self) -> Optional[Player]:
        return self.current.winner()

    def slot_at(self, row: int, col: int) -> Optional[Player]:
        return self.current.slot_at(row, col)

    def tile_count(self, player: Player) -> int:
        return self.current.tile_count(player)

    def valid_moves(self, player: Player = Player.HUMAN) -> List[Position]:
        return self.current.valid_moves(player)

    def __len__(self) -> int:
        return len(self._stack)

    # ── Observers ────────────────────────────────────────────────────────

    def subscribe(self, handler: Callable[[], None]):
        self._observers.append(handler)

    def unsubscribe(self, handler: Callable[[], None]):
        self._observers.remove(handler)

    def _notify(self):
        for handler in list(self._observers):
            handler()

    def _require_boards(self):
        if not self._stack:
            raise IllegalStateError("Board stack shall not be empty.")
