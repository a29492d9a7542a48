"""Grid positions, compass directions and first-extremum helpers."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple, TypeVar

from reversi.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLUMNS = "abcdefgh"


@dataclass(frozen=True, order=True)
class Position:
    """A (row, col) pair on the grid. Also used as the move type."""

    row: int
    col: int

    def __post_init__(self):
        if self.row < 0:
            raise InvalidArgumentError("Row index cannot be negative!")
        if self.col < 0:
            raise InvalidArgumentError("Col index cannot be negative!")

    def __iter__(self):
        return iter((self.row, self.col))

    def __str__(self) -> str:
        return f"[{self.row}][{self.col}]"

    def algebraic(self) -> str:
        """Column letter plus 1-based row, e.g. Position(2, 3) -> 'd3'."""
        return f"{_COLUMNS[self.col]}{self.row + 1}"

    @classmethod
    def parse(cls, text: str) -> "Position":
        """Parse 'row col', 'row,col' or algebraic 'd3'."""
        s = text.strip().lower()
        if len(s) == 2 and s[0] in _COLUMNS and s[1].isdigit():
            return cls(int(s[1]) - 1, _COLUMNS.index(s[0]))
        parts = s.replace(",", " ").split()
        if len(parts) != 2:
            raise InvalidArgumentError(f"Cannot parse position: {text!r}")
        try:
            row, col = int(parts[0]), int(parts[1])
        except ValueError:
            raise InvalidArgumentError(f"Cannot parse position: {text!r}") from None
        return cls(row, col)


@dataclass(frozen=True)
class Direction:
    name: str
    d_row: int
    d_col: int

    def follow(self, row: int, col: int) -> Tuple[int, int]:
        return row + self.d_row, col + self.d_col


DIRECTIONS: Tuple[Direction, ...] = (
    Direction("N", -1, 0),
    Direction("S", 1, 0),
    Direction("W", 0, -1),
    Direction("E", 0, 1),
    Direction("NW", -1, -1),
    Direction("NE", -1, 1),
    Direction("SW", 1, -1),
    Direction("SE", 1, 1),
)


def first_max(items: Sequence[T], key: Callable[[T], float]) -> T:
    """Return the first item with the largest key. Later ties never win."""
    if not items:
        raise ValueError("An empty sequence has no maximum.")
    best = items[0]
    best_key = key(best)
    for item in items[1:]:
        k = key(item)
        if k > best_key:
            best, best_key = item, k
    return best


def first_min(items: Sequence[T], key: Callable[[T], float]) -> T:
    """Return the first item with the smallest key. Later ties never win."""
    if not items:
        raise ValueError("An empty sequence has no minimum.")
    best = items[0]
    best_key = key(best)
    for item in items[1:]:
        k = key(item)
        if k < best_key:
            best, best_key = item, k
    return best


def print_info(depth: int, score: float, nodes: int, elapsed: float, move: Optional[Position]):
    """Log one summary line for a finished search. `elapsed` is in seconds."""
    nps = int(nodes / elapsed) if elapsed > 0 else 0
    move_str = move.algebraic() if move else "-"
    logger.info(
        "info depth %d score %.2f nodes %d nps %d time %d move %s",
        depth, score, nodes, nps, int(elapsed * 1000), move_str,
    )


def format_moves(moves: Iterable[Position]) -> str:
    return " ".join(m.algebraic() for m in moves)
