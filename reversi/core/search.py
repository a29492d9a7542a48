import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from reversi.core.board import Board, Player
from reversi.core.evaluator import Evaluator
from reversi.core.exceptions import IllegalStateError, SearchCancelled
from reversi.core.utils import Position, first_max, first_min, print_info

logger = logging.getLogger(__name__)


@dataclass
class Node:
    """One game-tree node. `move` led here from the parent, None at the root."""

    move: Optional[Position]
    score: float
    children: List["Node"] = field(default_factory=list)

    def render(self) -> str:
        lines: List[str] = []
        self._render(lines, "", True)
        return "\n".join(lines)

    def _render(self, lines: List[str], prefix: str, last: bool):
        lines.append(f"{prefix}{'└── ' if last else '├── '}{self.move}: {self.score}")
        child_prefix = prefix + ("    " if last else "│   ")
        for i, child in enumerate(self.children):
            child._render(lines, child_prefix, i == len(self.children) - 1)

    def __str__(self) -> str:
        return self.render()


class SearchEngine:
    """Full-width minimax without pruning.

    A node's score is its own static score plus the first minimum (human to
    move) or first maximum (machine to move) of its children's scores.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, depth: Optional[int] = None):
        self.evaluator = evaluator or Evaluator()
        # None means: search at the level stored on the board
        self.max_depth = depth

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.nodes = 0

    def build_tree(self, board: Board, depth: int, move: Optional[Position] = None) -> Node:
        self.nodes += 1
        if self._stop_event.is_set():
            raise SearchCancelled("Search stopped.")

        if depth == 0 or board.game_over():
            return Node(move, self.evaluator.evaluate(board))

        player = board.next_player()
        children = []
        for valid in board.valid_moves(player):
            result = board.apply(valid.row, valid.col, player)
            children.append(self.build_tree(result, depth - 1, valid))

        # game not over, so the player to move must have had a move
        if not children:
            raise IllegalStateError(f"No children for non-terminal board:\n{board}")

        score = self.evaluator.evaluate(board)
        if player is Player.HUMAN:
            score += first_min(children, key=lambda n: n.score).score
        else:
            score += first_max(children, key=lambda n: n.score).score
        return Node(move, score, children)

    def search(self, board: Board, depth: Optional[int] = None) -> Tuple[Position, float]:
        """Return (best move, its score) for the player to move on `board`."""
        self._stop_event.clear()
        return self._run(board, depth)

    def _run(self, board: Board, depth: Optional[int]) -> Tuple[Position, float]:
        self.nodes = 0
        target_depth = depth or self.max_depth or board.level
        start_time = time.time()

        tree = self.build_tree(board, target_depth)
        if not tree.children:
            raise IllegalStateError("No move available on this board.")
        best = first_max(tree.children, key=lambda n: n.score)

        print_info(target_depth, best.score, self.nodes, time.time() - start_time, best.move)
        return best.move, best.score

    def search_best_move(self, board: Board, depth: Optional[int] = None) -> Position:
        move, _score = self.search(board, depth)
        return move

    def start_search(self, board: Board, depth: Optional[int] = None,
                     callback: Optional[Callable] = None):
        """Search in a background thread, report through callback(move, score).

        On stop() the callback gets (None, None), and so it does when the
        search fails, for instance on a board where nobody can move.
        """
        if self._thread and self._thread.is_alive(): return
        self._stop_event.clear()

        def worker():
            try:
                move, score = self._run(board, depth)
            except SearchCancelled:
                move, score = None, None
            except Exception:
                logger.exception("Background search failed")
                move, score = None, None
            if callback: callback(move, score)

        self._thread = threading.Thread(target=worker, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=0.2)
