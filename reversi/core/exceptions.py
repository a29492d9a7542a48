"""Errors raised by the Reversi core.

All of these flag misuse of the API contract. They are raised where the
violation is detected and are never retried internally.
"""


class ReversiError(Exception):
    """Base class for every error raised by the engine."""


class InvalidArgumentError(ReversiError, ValueError):
    """Out-of-range coordinates, non-positive levels, negative positions."""


class IllegalMoveError(ReversiError):
    """A move was requested after the game ended or out of turn."""


class IllegalStateError(ReversiError, RuntimeError):
    """The engine was asked for something its current state cannot give."""


class SearchCancelled(ReversiError):
    """A running search was stopped through SearchEngine.stop()."""
