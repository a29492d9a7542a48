"""Static heuristic evaluator, scores a board from the machine's point of view."""

from typing import Optional

from reversi.config import CONFIG, EvalConfig
from reversi.core.board import Board, Player


class Evaluator:
    def __init__(self, cfg: Optional[EvalConfig] = None):
        self.cfg = cfg or CONFIG.eval
        if len(self.cfg.significance) != Board.SIZE or any(
            len(row) != Board.SIZE for row in self.cfg.significance
        ):
            raise ValueError(f"Significance matrix must be {Board.SIZE}x{Board.SIZE}.")

    def evaluate(self, board: Board) -> float:
        """Return the heuristic score, positive favors the machine."""
        return self.significance(board) + self.mobility(board) + self.potential(board)

    score = evaluate

    def significance(self, board: Board) -> float:
        """Weighted sum of occupied cells, human cells weigh heavier."""
        weights = self.cfg.significance
        human = 0
        machine = 0
        for r, row in enumerate(board.rows()):
            for c, occupant in enumerate(row):
                if occupant is Player.HUMAN:
                    human += weights[r][c]
                elif occupant is Player.MACHINE:
                    machine += weights[r][c]
        return machine - self.cfg.human_significance_factor * human

    def mobility(self, board: Board) -> float:
        """Legal move counts, scaled up while the board is still sparse."""
        human = 0
        machine = 0
        for r in range(Board.SIZE):
            for c in range(Board.SIZE):
                if board.is_legal(r, c, Player.HUMAN):
                    human += 1
                if board.is_legal(r, c, Player.MACHINE):
                    machine += 1
        area = Board.SIZE * Board.SIZE
        occupied = board.occupied_count()
        return area / occupied * (
            self.cfg.machine_mobility_weight * machine
            - self.cfg.human_mobility_weight * human
        )

    def potential(self, board: Board) -> float:
        """Free cells next to opponent tiles are future moves for us.

        Each empty neighbour of a human tile counts towards the machine's
        potential and vice versa.
        """
        human = 0
        machine = 0
        for r, row in enumerate(board.rows()):
            for c, occupant in enumerate(row):
                if occupant is Player.HUMAN:
                    machine += board.free_neighbors(r, c)
                elif occupant is Player.MACHINE:
                    human += board.free_neighbors(r, c)
        area = Board.SIZE * Board.SIZE
        occupied = board.occupied_count()
        return area / (2.0 * occupied) * (
            self.cfg.machine_potential_weight * machine
            - self.cfg.human_potential_weight * human
        )
