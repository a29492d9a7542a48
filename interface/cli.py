"""Play Reversi against the engine in the terminal."""

import argparse
import logging
import sys
from typing import Callable, Optional

from reversi.config import CONFIG
from reversi.core.board import Board, Player
from reversi.core.exceptions import ReversiError
from reversi.core.utils import Position, format_moves
from reversi.main import BoardManager

HELP = "Commands: <move> (e.g. 'c4' or '3 2'), undo, new, switch, level <n>, moves, quit"


def render(manager: BoardManager) -> str:
    header = "  " + " ".join("abcdefgh"[:Board.SIZE])
    lines = [header]
    for r, row in enumerate(manager.current.rows()):
        cells = " ".join(str(slot) if slot is not None else "." for slot in row)
        lines.append(f"{r + 1} {cells}")
    lines.append(
        f"You (X): {manager.tile_count(Player.HUMAN)}  "
        f"Bot (O): {manager.tile_count(Player.MACHINE)}  "
        f"Level: {manager.level}"
    )
    return "\n".join(lines)


def announce_winner(manager: BoardManager, out: Callable[[str], None]):
    winner = manager.winner()
    if winner is Player.HUMAN:
        out("You have won!")
    elif winner is Player.MACHINE:
        out("The bot has won.")
    else:
        out("Tie game!")


def play_machine(manager: BoardManager, out: Callable[[str], None]):
    """Let the bot move, telling the human about skipped turns."""
    if manager.next_player() is Player.HUMAN:
        out("The bot has to miss a turn.")
        return
    played = manager.process_machine_moves()
    for _ in range(played - 1):
        out("You have to miss a turn.")


def handle(manager: BoardManager, command: str, out: Callable[[str], None]) -> bool:
    """Run one line of input. Returns False when the user wants to quit."""
    cmd = command.strip().lower()
    if not cmd:
        return True
    if cmd in ("quit", "exit", "q"):
        return False
    if cmd in ("help", "?"):
        out(HELP)
        return True
    if cmd in ("new", "switch"):
        first = manager.first_player
        if cmd == "switch":
            first = first.opponent()
        manager.new_game(first, manager.level)
        if first is Player.MACHINE:
            manager.process_machine_moves()
        return True
    if cmd == "undo":
        if manager.undo_possible():
            manager.undo()
        else:
            out("Nothing to undo.")
        return True
    if cmd == "moves":
        out(format_moves(manager.valid_moves(Player.HUMAN)) or "-")
        return True
    if cmd.startswith("level"):
        parts = cmd.split()
        try:
            level = int(parts[1])
        except (IndexError, ValueError):
            out("Usage: level <n>")
            return True
        if not CONFIG.search.min_level <= level <= CONFIG.search.max_level:
            out(f"Level must be between {CONFIG.search.min_level} and {CONFIG.search.max_level}.")
            return True
        manager.set_level(level)
        return True

    if manager.game_over():
        out("The game is over. Type 'new' to play again.")
        return True
    try:
        pos = Position.parse(cmd)
        accepted = manager.move(pos.row, pos.col)
    except ReversiError as e:
        out(f"Illegal input: {e}")
        return True
    if not accepted:
        out("Illegal move, try again.")
        return True

    play_machine(manager, out)
    if manager.game_over():
        out(render(manager))
        announce_winner(manager, out)
    return True


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Play Reversi against the engine.")
    parser.add_argument("--level", type=int, default=CONFIG.search.level)
    parser.add_argument("--first", choices=["human", "machine"], default="human")
    args = parser.parse_args(argv)

    logging.basicConfig(level=CONFIG.log_level, format="%(levelname)s %(name)s: %(message)s")

    first = Player.HUMAN if args.first == "human" else Player.MACHINE
    manager = BoardManager(first, args.level)
    if first is Player.MACHINE:
        manager.process_machine_moves()

    print(HELP)
    while True:
        print(render(manager))
        print("----------------------------")
        try:
            line = input("Your move: ")
        except EOFError:
            break
        if not handle(manager, line, print):
            break

    print("Game Over")
    return 0


if __name__ == "__main__":
    sys.exit(main())
