"""Immutable Reversi board: layout, flanking rules and turn resolution."""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from reversi.core.exceptions import (
    IllegalMoveError,
    IllegalStateError,
    InvalidArgumentError,
)
from reversi.core.utils import DIRECTIONS, Position

if TYPE_CHECKING:
    from reversi.core.search import SearchEngine

Grid = Tuple[Tuple[Optional["Player"], ...], ...]

_UNRESOLVED = object()


class Player(Enum):
    HUMAN = "X"
    MACHINE = "O"

    def opponent(self) -> "Player":
        return Player.MACHINE if self is Player.HUMAN else Player.HUMAN

    def __str__(self) -> str:
        return self.value


class Board:
    """One snapshot of a game. Every mutator returns a new Board."""

    SIZE = 8

    def __init__(self, first_player: Player, level: int):
        """Create the opening position with `first_player` to move."""
        if not isinstance(first_player, Player):
            raise InvalidArgumentError("First player must be a Player.")
        check_level(level)

        hi = self.SIZE // 2
        lo = hi - 1
        rows = [[None] * self.SIZE for _ in range(self.SIZE)]
        rows[lo][lo] = first_player.opponent()
        rows[lo][hi] = first_player
        rows[hi][lo] = first_player
        rows[hi][hi] = first_player.opponent()

        self._slots: Grid = tuple(tuple(r) for r in rows)
        self.first_player = first_player
        self.last_player: Optional[Player] = None
        self.level = level
        self._next = _UNRESOLVED

    @classmethod
    def _derive(cls, parent: "Board", slots: Grid, last_player: Optional[Player], level: int) -> "Board":
        board = cls.__new__(cls)
        board._slots = slots
        board.first_player = parent.first_player
        board.last_player = last_player
        board.level = level
        board._next = _UNRESOLVED
        return board

    @classmethod
    def from_rows(cls, rows: List[str], first_player: Player = Player.HUMAN,
                  last_player: Optional[Player] = None, level: int = 1) -> "Board":
        """Build an arbitrary position from 8 strings of 'X', 'O' and '.'.

        Mostly useful for tests and for replaying positions by hand. A real
        game never has fewer than the 4 opening tiles, so neither may this.
        """
        if len(rows) != cls.SIZE or any(len(r) != cls.SIZE for r in rows):
            raise InvalidArgumentError(f"Expected {cls.SIZE} rows of {cls.SIZE} cells.")
        symbols = {"X": Player.HUMAN, "O": Player.MACHINE, ".": None}
        try:
            slots = tuple(tuple(symbols[c] for c in r) for r in rows)
        except KeyError as e:
            raise InvalidArgumentError(f"Unknown cell symbol {e.args[0]!r}") from None
        if sum(cell is not None for r in slots for cell in r) < 4:
            raise InvalidArgumentError("A board holds at least 4 tiles.")
        base = cls(first_player, level)
        return cls._derive(base, slots, last_player, level)

    # ── Queries ──────────────────────────────────────────────────────────

    @classmethod
    def is_valid_position(cls, row: int, col: int) -> bool:
        return 0 <= row < cls.SIZE and 0 <= col < cls.SIZE

    def slot_at(self, row: int, col: int) -> Optional[Player]:
        if not self.is_valid_position(row, col):
            raise InvalidArgumentError("Invalid board position.")
        return self._slots[row][col]

    def rows(self) -> Grid:
        return self._slots

    def tile_count(self, player: Player) -> int:
        return sum(row.count(player) for row in self._slots)

    def occupied_count(self) -> int:
        return self.SIZE * self.SIZE - self.empty_count()

    def empty_count(self) -> int:
        return sum(row.count(None) for row in self._slots)

    def free_neighbors(self, row: int, col: int) -> int:
        """Number of empty cells adjacent to (row, col)."""
        free = 0
        for direction in DIRECTIONS:
            r, c = direction.follow(row, col)
            if self.is_valid_position(r, c) and self._slots[r][c] is None:
                free += 1
        return free

    # ── Flanking ─────────────────────────────────────────────────────────

    def flips(self, row: int, col: int, player: Player) -> List[Position]:
        """Tiles reversed if `player` placed a tile at (row, col).

        Empty iff the move is illegal. Both legality checks and move
        application go through here.
        """
        if not self.is_valid_position(row, col):
            raise InvalidArgumentError("Invalid board position.")
        slots = self._slots
        if slots[row][col] is not None:
            return []
        opponent = player.opponent()
        flipped: List[Position] = []
        for direction in DIRECTIONS:
            run = []
            r, c = direction.follow(row, col)
            while self.is_valid_position(r, c) and slots[r][c] is opponent:
                run.append(Position(r, c))
                r, c = direction.follow(r, c)
            if run and self.is_valid_position(r, c) and slots[r][c] is player:
                flipped.extend(run)
        return flipped

    def is_legal(self, row: int, col: int, player: Player) -> bool:
        return bool(self.flips(row, col, player))

    def valid_moves(self, player: Player) -> List[Position]:
        """Legal target cells for `player`, in row-major order."""
        return [
            Position(row, col)
            for row in range(self.SIZE)
            for col in range(self.SIZE)
            if self.is_legal(row, col, player)
        ]

    def has_move(self, player: Player) -> bool:
        return any(
            self.is_legal(row, col, player)
            for row in range(self.SIZE)
            for col in range(self.SIZE)
        )

    # ── Turn resolution ──────────────────────────────────────────────────

    def next_player(self) -> Optional[Player]:
        """Player to move, or None once neither side can move."""
        if self._next is _UNRESOLVED:
            self._next = self._resolve_next()
        return self._next

    def _resolve_next(self) -> Optional[Player]:
        if self.last_player is None:
            return self.first_player
        if self.has_move(self.last_player.opponent()):
            return self.last_player.opponent()
        if self.has_move(self.last_player):
            return self.last_player
        return None

    def game_over(self) -> bool:
        return self.next_player() is None

    def winner(self) -> Optional[Player]:
        """Player holding strictly more tiles at the end, None on a tie."""
        if not self.game_over():
            raise IllegalStateError("The game is not over yet.")
        human = self.tile_count(Player.HUMAN)
        machine = self.tile_count(Player.MACHINE)
        if human > machine:
            return Player.HUMAN
        if machine > human:
            return Player.MACHINE
        return None

    # ── Moves ────────────────────────────────────────────────────────────

    def move(self, row: int, col: int) -> Optional["Board"]:
        """Human move. Returns the new board, or None if the move is illegal."""
        if self.game_over():
            raise IllegalMoveError("The game is already over.")
        if self.next_player() is not Player.HUMAN:
            raise IllegalMoveError("This is not your turn.")
        if not self.is_valid_position(row, col):
            raise InvalidArgumentError("Invalid board position.")
        return self.apply(row, col, Player.HUMAN)

    def machine_move(self, search: Optional["SearchEngine"] = None) -> "Board":
        """Let the search pick the machine's move at this board's level and play it."""
        if self.game_over():
            raise IllegalMoveError("The game is already over.")
        if self.next_player() is not Player.MACHINE:
            raise IllegalMoveError("This is not your turn.")

        if search is None:
            from reversi.core.search import SearchEngine
            search = SearchEngine()
        best = search.search_best_move(self)
        return self.apply(best.row, best.col, Player.MACHINE)

    def apply(self, row: int, col: int, player: Player) -> Optional["Board"]:
        """Place a tile for `player` and reverse what it flanks. None if illegal.

        Unlike move() this does not check whose turn it is; the search uses it
        to expand the tree for either side.
        """
        flipped = self.flips(row, col, player)
        if not flipped:
            return None
        rows = [list(r) for r in self._slots]
        rows[row][col] = player
        for pos in flipped:
            rows[pos.row][pos.col] = player
        return Board._derive(self, tuple(tuple(r) for r in rows), player, self.level)

    def with_level(self, level: int) -> "Board":
        """Same position with a different search level."""
        check_level(level)
        board = Board._derive(self, self._slots, self.last_player, level)
        board._next = self._next
        return board

    # ── Dunder ───────────────────────────────────────────────────────────

    def _key(self):
        return (self._slots, self.first_player, self.last_player, self.level)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"Board(first_player={self.first_player.name}, "
            f"last_player={self.last_player.name if self.last_player else None}, "
            f"level={self.level})"
        )

    def __str__(self) -> str:
        return "\n".join(
            " ".join(str(slot) if slot is not None else "." for slot in row)
            for row in self._slots
        )


def check_level(level: int):
    if not isinstance(level, int) or isinstance(level, bool) or level < 1:
        raise InvalidArgumentError("Level must be positive!")
