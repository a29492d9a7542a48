"""Core engine components: board, evaluator, search, and errors."""

from .board import Board, Player
from .evaluator import Evaluator
from .exceptions import (
    IllegalMoveError,
    IllegalStateError,
    InvalidArgumentError,
    ReversiError,
    SearchCancelled,
)
from .search import Node, SearchEngine
from .utils import Position
