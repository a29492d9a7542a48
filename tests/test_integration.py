"""
Integration test suite for the Reversi engine.

Tests components working together end-to-end:
- Full games through the BoardManager
- Threaded search lifecycle (start/stop/callback) and cancelling a machine move
- Terminal game loop
- FastAPI REST API
"""

import threading
import time

import pytest

from reversi.core.board import Board, Player
from reversi.core.exceptions import SearchCancelled
from reversi.core.search import SearchEngine
from reversi.main import BoardManager

HUMAN = Player.HUMAN
MACHINE = Player.MACHINE


# ════════════════════════════════════════════════════════════════════════════
#  FULL GAME SIMULATIONS
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    """The engine can play complete games without breaking any invariant."""

    def _play_out(self, manager: BoardManager) -> int:
        plies = 0
        while not manager.game_over():
            if manager.next_player() is HUMAN:
                move = manager.valid_moves(HUMAN)[0]
                assert manager.move(move.row, move.col)
            else:
                manager.machine_move()
            plies += 1
            board = manager.current
            assert board.tile_count(HUMAN) + board.tile_count(MACHINE) + board.empty_count() == 64
            assert plies <= 60
        return plies

    def test_human_first_game_completes(self):
        m = BoardManager(HUMAN, 1)
        plies = self._play_out(m)
        assert plies > 10
        assert len(m) == plies + 1
        human, machine = m.tile_count(HUMAN), m.tile_count(MACHINE)
        winner = m.winner()
        if human > machine:
            assert winner is HUMAN
        elif machine > human:
            assert winner is MACHINE
        else:
            assert winner is None

    def test_machine_first_game_completes(self):
        m = BoardManager(MACHINE, 1)
        self._play_out(m)
        assert m.game_over()
        assert m.next_player() is None

    def test_games_are_reproducible(self):
        a = BoardManager(HUMAN, 1)
        b = BoardManager(HUMAN, 1)
        self._play_out(a)
        self._play_out(b)
        assert a.current == b.current

    def test_undo_whole_game(self):
        m = BoardManager(HUMAN, 1)
        self._play_out(m)
        undos = 0
        while m.undo_possible():
            m.undo()
            undos += 1
        assert m.current == Board(HUMAN, 1)
        assert undos > 5

    def test_level_two_opening(self):
        m = BoardManager(HUMAN, 2)
        for _ in range(3):
            move = m.valid_moves(HUMAN)[0]
            assert m.move(move.row, move.col)
            assert m.process_machine_moves() >= 1
        assert len(m) == 7

    def test_level_change_mid_game(self):
        m = BoardManager(HUMAN, 1)
        m.move(2, 3)
        m.machine_move()
        m.set_level(2)
        move = m.valid_moves(HUMAN)[0]
        m.move(move.row, move.col)
        m.machine_move()
        assert m.current.level == 2
        assert m.current.last_player is MACHINE


# ════════════════════════════════════════════════════════════════════════════
#  THREADED SEARCH LIFECYCLE
# ════════════════════════════════════════════════════════════════════════════


class TestAsyncSearch:
    """Tests the threaded search lifecycle: start/stop/callback."""

    def test_start_search_callback(self):
        engine = SearchEngine()
        board = Board(MACHINE, 2)
        results = []

        def callback(move, score):
            results.append((move, score))

        engine.start_search(board, callback=callback)
        engine._thread.join(timeout=10)

        assert len(results) == 1
        move, score = results[0]
        assert move in board.valid_moves(MACHINE)
        assert move == SearchEngine().search_best_move(board)
        assert isinstance(score, float)

    def test_stop_halts_search_quickly(self):
        engine = SearchEngine()
        board = Board(MACHINE, 7)
        done = threading.Event()
        results = []

        def callback(move, score):
            results.append((move, score))
            done.set()

        engine.start_search(board, callback=callback)
        time.sleep(0.1)
        engine.stop()
        done.wait(timeout=2.0)

        assert done.is_set(), "Search didn't stop within timeout"
        assert results == [(None, None)]

    def test_stop_before_start_is_safe(self):
        engine = SearchEngine()
        engine.stop()

    def test_second_start_while_running_is_ignored(self):
        engine = SearchEngine()
        engine.start_search(Board(MACHINE, 7))
        first = engine._thread
        engine.start_search(Board(MACHINE, 1))
        assert engine._thread is first
        engine.stop()
        first.join(timeout=2.0)
        assert not first.is_alive()

    def test_multiple_sequential_searches(self):
        engine = SearchEngine()
        board = Board(MACHINE, 1)
        results = []
        for _ in range(3):
            done = threading.Event()

            def callback(move, score, _done=done):
                results.append(move)
                _done.set()

            engine.start_search(board, callback=callback)
            done.wait(timeout=10)
            engine.stop()

        assert len(results) == 3
        assert len(set(results)) == 1

    def test_cancel_machine_move_leaves_history(self):
        m = BoardManager(HUMAN, 7)
        m.move(2, 3)
        errors = []

        def worker():
            try:
                m.machine_move()
            except SearchCancelled as e:
                errors.append(e)

        t = threading.Thread(target=worker, daemon=True)
        t.start()
        time.sleep(0.1)
        m.cancel()
        t.join(timeout=2.0)

        assert not t.is_alive()
        assert len(errors) == 1
        assert len(m) == 2
        assert m.next_player() is MACHINE

    def test_failed_search_still_calls_back(self):
        # nobody can move on a full board, so the search itself fails
        engine = SearchEngine()
        board = Board.from_rows(["XXXXXXXX"] * 4 + ["OOOOOOOO"] * 4, last_player=HUMAN)
        done = threading.Event()
        results = []

        def callback(move, score):
            results.append((move, score))
            done.set()

        engine.start_search(board, callback=callback)
        assert done.wait(timeout=2.0)
        assert results == [(None, None)]


# ════════════════════════════════════════════════════════════════════════════
#  TERMINAL GAME LOOP
# ════════════════════════════════════════════════════════════════════════════


class TestCLI:
    def setup_method(self):
        self.m = BoardManager(HUMAN, 1)
        self.out = []

    def _handle(self, line):
        from interface.cli import handle
        return handle(self.m, line, self.out.append)

    def test_render(self):
        from interface.cli import render
        lines = render(self.m).splitlines()
        assert lines[0] == "  a b c d e f g h"
        assert lines[4] == "4 . . . O X . . ."
        assert lines[-1].startswith("You (X): 2  Bot (O): 2")

    def test_moves(self):
        self._handle("moves")
        assert self.out == ["d3 c4 f5 e6"]

    def test_move_gets_machine_reply(self):
        assert self._handle("c4") is True
        assert len(self.m) == 3
        assert self.m.next_player() is HUMAN

    def test_numeric_move(self):
        self._handle("2 3")
        assert self.m.current.slot_at(2, 3) is HUMAN

    def test_illegal_move(self):
        self._handle("0 0")
        assert self.out == ["Illegal move, try again."]
        assert len(self.m) == 1

    def test_garbage_input(self):
        self._handle("zz")
        assert self.out[0].startswith("Illegal input")

    def test_undo(self):
        self._handle("undo")
        assert self.out == ["Nothing to undo."]
        self._handle("c4")
        self._handle("undo")
        assert self.m.current == Board(HUMAN, 1)

    def test_level(self):
        self._handle("level 2")
        assert self.m.level == 2
        self._handle("level 99")
        assert self.m.level == 2
        self._handle("level x")
        assert self.out[-1] == "Usage: level <n>"

    def test_switch_lets_machine_open(self):
        self._handle("switch")
        assert self.m.first_player is MACHINE
        assert len(self.m) == 2
        assert self.m.next_player() is HUMAN

    def test_new_keeps_first_player(self):
        self._handle("c4")
        self._handle("new")
        assert len(self.m) == 1
        assert self.m.first_player is HUMAN

    def test_quit(self):
        assert self._handle("quit") is False

    def test_game_over_announced(self):
        from interface.cli import announce_winner
        self.m._stack = [Board.from_rows(["XXXXXXXX"] * 4 + ["OOOOOOOO"] * 4, last_player=HUMAN)]
        announce_winner(self.m, self.out.append)
        assert self.out == ["Tie game!"]
        self._handle("d3")
        assert self.out[-1].startswith("The game is over")

    def test_main_loop(self, monkeypatch, capsys):
        from interface import cli
        lines = iter(["c4", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
        assert cli.main(["--level", "1"]) == 0
        out = capsys.readouterr().out
        assert "Game Over" in out
        assert "You (X): " in out

    def test_main_loop_eof(self, monkeypatch, capsys):
        from interface import cli

        def eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        assert cli.main(["--level", "1", "--first", "machine"]) == 0
        assert "Game Over" in capsys.readouterr().out


# ════════════════════════════════════════════════════════════════════════════
#  FASTAPI REST API
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, manager

        self.client = TestClient(app)
        # Reset state before each test
        manager.new_game(HUMAN, 1)

    def test_get_board_initial(self):
        r = self.client.get("/board")
        assert r.status_code == 200
        data = r.json()
        assert data["rows"][3] == "...OX..."
        assert data["rows"][4] == "...XO..."
        assert data["next"] == "human"
        assert data["is_game_over"] is False
        assert data["winner"] is None
        assert data["human_tiles"] == 2
        assert data["machine_tiles"] == 2
        assert data["undo_possible"] is False
        assert data["legal_moves"] == [[2, 3], [3, 2], [4, 5], [5, 4]]

    def test_post_move_valid(self):
        r = self.client.post("/move", json={"row": 2, "col": 3})
        assert r.status_code == 200
        data = r.json()
        assert data["next"] == "machine"
        assert data["human_tiles"] == 4
        assert data["rows"][2] == "...X...."

    def test_post_move_illegal(self):
        r = self.client.post("/move", json={"row": 0, "col": 0})
        assert r.status_code == 400

    def test_post_move_off_board(self):
        r = self.client.post("/move", json={"row": 9, "col": 9})
        assert r.status_code == 400

    def test_post_move_out_of_turn(self):
        self.client.post("/move", json={"row": 2, "col": 3})
        r = self.client.post("/move", json={"row": 2, "col": 2})
        assert r.status_code == 400

    def test_machine_move_not_its_turn(self):
        r = self.client.post("/machine-move")
        assert r.status_code == 400

    def test_machine_move(self):
        self.client.post("/move", json={"row": 2, "col": 3})
        r = self.client.post("/machine-move")
        assert r.status_code == 200
        data = r.json()
        assert data["played"] == 1
        assert data["next"] == "human"
        assert data["undo_possible"] is True

    def test_undo(self):
        assert self.client.post("/undo").status_code == 400
        self.client.post("/move", json={"row": 2, "col": 3})
        self.client.post("/machine-move")
        r = self.client.post("/undo")
        assert r.status_code == 200
        assert r.json()["rows"][3] == "...OX..."
        assert r.json()["undo_possible"] is False

    def test_level(self):
        r = self.client.post("/level", json={"level": 2})
        assert r.status_code == 200
        assert r.json()["level"] == 2
        assert self.client.post("/level", json={"level": 0}).status_code == 400
        assert self.client.post("/level", json={"level": 99}).status_code == 400

    def test_new_game_machine_first(self):
        r = self.client.post("/new", json={"first_player": "machine", "level": 1})
        assert r.status_code == 200
        assert r.json()["next"] == "machine"
        r = self.client.post("/machine-move")
        assert r.json()["next"] == "human"

    def test_new_game_defaults(self):
        from reversi.config import CONFIG
        r = self.client.post("/new")
        assert r.status_code == 200
        assert r.json()["next"] == "human"
        assert r.json()["level"] == CONFIG.search.level

    def test_new_game_bad_input(self):
        assert self.client.post("/new", json={"first_player": "nobody"}).status_code == 422
        assert self.client.post("/new", json={"level": 0}).status_code == 400

    def test_full_api_game_flow(self):
        for _ in range(60):
            state = self.client.get("/board").json()
            if state["is_game_over"]:
                break
            if state["next"] == "human":
                row, col = state["legal_moves"][0]
                assert self.client.post("/move", json={"row": row, "col": col}).status_code == 200
            else:
                assert self.client.post("/machine-move").status_code == 200
        state = self.client.get("/board").json()
        assert state["is_game_over"] is True
        assert state["human_tiles"] + state["machine_tiles"] <= 64

    def _start_machine_move(self, level):
        from fastapi.testclient import TestClient
        from interface.api import app, manager

        manager.set_level(level)
        assert self.client.post("/move", json={"row": 2, "col": 3}).status_code == 200
        other = TestClient(app)
        responses = []
        t = threading.Thread(target=lambda: responses.append(other.post("/machine-move")),
                             daemon=True)
        t.start()
        time.sleep(0.3)
        return t, responses

    def test_board_readable_during_machine_search(self):
        from interface.api import manager

        t, responses = self._start_machine_move(7)
        try:
            start = time.time()
            r = self.client.get("/board")
            assert r.status_code == 200
            assert time.time() - start < 1.0
            assert r.json()["next"] == "machine"
            assert t.is_alive()
        finally:
            manager.cancel()
            t.join(timeout=2.0)
        assert not t.is_alive()

    def test_cancel_machine_move(self):
        from interface.api import manager

        t, responses = self._start_machine_move(7)
        r = self.client.post("/cancel")
        assert r.status_code == 200
        assert r.json() == {"cancelled": True}
        t.join(timeout=2.0)

        assert not t.is_alive()
        assert responses[0].status_code == 409
        assert len(manager) == 2
        assert self.client.get("/board").json()["next"] == "machine"

    def test_cancel_when_idle(self):
        assert self.client.post("/cancel").status_code == 200
        # the next search is not affected
        self.client.post("/move", json={"row": 2, "col": 3})
        assert self.client.post("/machine-move").status_code == 200

    def test_machine_move_on_changed_board(self, monkeypatch):
        from interface.api import manager

        class InterferingSearch(SearchEngine):
            def search_best_move(self, board, depth=None):
                move = super().search_best_move(board, depth)
                manager.new_game(MACHINE, 1)
                return move

        monkeypatch.setattr(manager, "search", InterferingSearch())
        self.client.post("/move", json={"row": 2, "col": 3})
        r = self.client.post("/machine-move")
        assert r.status_code == 409
        assert len(manager) == 1
        assert manager.first_player is MACHINE
