"""
Tests for the turn flow, game over detection and the extra try.
"""

import random
from types import SimpleNamespace

import numpy as np
import pytest

from blocktopia.game import GameConfig, GamePhase, GameState, calculate_score, generate_piece_by_id
from blocktopia.services.notifications import NotificationDispatcher
from conftest import (
    H_LINE_5,
    SINGLE,
    SQUARE_2,
    SQUARE_3,
    FailingSink,
    RecordingSink,
    fill_checkerboard,
    set_pieces,
)


def _fill_rows(state, rows):
    for y in rows:
        state.board.set_cell(0, y, 1)


def test_new_game(state):
    assert len(state.current_pieces) == 3
    assert state.score == 0
    assert state.best_score == 0
    assert not state.is_game_over
    assert state.can_continue
    assert state.phase is GamePhase.PLAYING
    assert state.board.get_empty_count() == 100


def test_seed_makes_piece_draws_repeatable():
    a = GameState(config=GameConfig(random_seed=9))
    b = GameState(config=GameConfig(random_seed=9))
    assert [p.id for p in a.current_pieces] == [p.id for p in b.current_pieces]


class TestPlacePiece:
    @pytest.mark.parametrize("slot", [-1, 3, 10, "0", None, 1.5])
    def test_invalid_slot_fails_without_mutation(self, state, slot):
        pieces = list(state.current_pieces)
        assert state.place_piece(slot, 0, 0) is False
        assert state.current_pieces == pieces
        assert state.board.get_empty_count() == 100

    def test_invalid_position_fails_without_mutation(self, state):
        set_pieces(state, H_LINE_5, SINGLE, SINGLE)
        pieces = list(state.current_pieces)
        assert state.place_piece(0, 6, 0) is False
        assert state.current_pieces == pieces
        assert state.board.get_empty_count() == 100

    def test_success_replaces_only_used_slot(self, state):
        set_pieces(state, SINGLE, SQUARE_2, H_LINE_5)
        kept = state.current_pieces[1:]
        assert state.place_piece(0, 4, 4) is True
        assert state.board.get_cell(4, 4) == SINGLE
        assert len(state.current_pieces) == 3
        assert state.current_pieces[1] is kept[0]
        assert state.current_pieces[2] is kept[1]
        assert state.score == 0
        assert state.last_placement.lines_cleared == 0

    def test_clearing_a_row_scores_with_empty_count_after_clear(self, state):
        for x in range(9):
            state.board.set_cell(x, 0, 1)
        state.board.set_cell(0, 5, 1)
        set_pieces(state, SINGLE, SINGLE, SINGLE)

        assert state.place_piece(0, 9, 0)
        assert state.board.has_filled_cells(0, True) is False
        # 99 empty after the clear (one stray cell at (0, 5))
        assert state.score == calculate_score(99, 1) == 29
        assert state.best_score == 29
        assert state.last_placement.lines_cleared == 1
        assert state.last_placement.cells_cleared == 10
        assert state.last_placement.points == 29

    def test_row_and_column_in_one_move(self, state):
        for i in range(10):
            if i != 9:
                state.board.set_cell(i, 9, 1)
                state.board.set_cell(9, i, 1)
        set_pieces(state, SINGLE, SINGLE, SINGLE)

        assert state.place_piece(0, 9, 9)
        assert state.board.get_empty_count() == 100
        assert state.last_placement.lines_cleared == 2
        assert state.last_placement.cells_cleared == 19
        assert state.score == calculate_score(100, 2)

    def test_best_score_only_grows(self, state):
        state.best_score = 500
        for x in range(9):
            state.board.set_cell(x, 0, 1)
        set_pieces(state, SINGLE, SINGLE, SINGLE)
        state.place_piece(0, 9, 0)
        assert state.score == 30
        assert state.best_score == 500

    def test_placement_can_end_the_game(self, state, monkeypatch):
        fill_checkerboard(state.board)
        set_pieces(state, SINGLE, SQUARE_3, SQUARE_3)
        monkeypatch.setattr(
            "blocktopia.game.core.generate_random_piece", lambda rng=None: generate_piece_by_id(SQUARE_3)
        )
        assert state.place_piece(0, 1, 0)
        assert state.is_game_over
        assert state.phase is GamePhase.GAME_OVER_WITH_EXTRA_TRY

    def test_game_over_tracks_placeability_through_random_play(self):
        state = GameState(config=GameConfig(random_seed=5))
        rng = random.Random(5)
        for _ in range(80):
            moves = [(s, x, y) for s in range(3) for x, y in state.get_valid_placements(s)]
            if not moves:
                break
            assert state.place_piece(*rng.choice(moves))
            assert state.is_game_over == (not state.board.can_place_any_piece(state.current_pieces))
            assert state.best_score >= state.score >= 0


class TestExtraTry:
    def test_clears_four_occupied_rows_and_no_score(self, state):
        _fill_rows(state, range(7))
        state.score = 42
        cleared = state.continue_game()
        assert cleared == 4
        occupied = [y for y in range(10) if state.board.has_filled_cells(y, True)]
        assert len(occupied) == 3
        assert state.score == 42
        assert state.can_continue is False

    def test_clears_as_many_as_possible(self, state):
        _fill_rows(state, [2, 8])
        assert state.continue_game() == 2
        assert state.board.get_empty_count() == 100

    def test_empty_board(self, state):
        assert state.continue_game() == 0
        assert not state.can_continue

    def test_second_call_is_a_no_op(self, state):
        _fill_rows(state, range(10))
        state.continue_game()
        before = state.board.grid.copy()
        assert state.continue_game() == 0
        assert np.array_equal(state.board.grid, before)

    def test_only_can_continue_gates_the_extra_try(self, state):
        _fill_rows(state, [0])
        assert not state.is_game_over
        assert state.continue_game() == 1

    def test_after_game_over(self, state):
        fill_checkerboard(state.board)
        set_pieces(state, SQUARE_3, SQUARE_3, SQUARE_3)
        assert state.refresh_game_over()
        assert state.phase is GamePhase.GAME_OVER_WITH_EXTRA_TRY

        assert state.continue_game() == 4
        assert state.is_game_over == (not state.board.can_place_any_piece(state.current_pieces))
        if state.is_game_over:
            assert state.phase is GamePhase.GAME_OVER_EXHAUSTED


def test_restart_keeps_best_score(state):
    _fill_rows(state, range(3))
    state.score = 120
    state.best_score = 150
    state.is_game_over = True
    state.can_continue = False

    state.restart()
    assert state.score == 0
    assert state.best_score == 150
    assert state.board.get_empty_count() == 100
    assert state.is_game_over is False
    assert state.can_continue is True
    assert len(state.current_pieces) == 3
    assert state.last_placement is None


def test_restart_with_seed_is_repeatable(state):
    state.restart(seed=77)
    first = [p.id for p in state.current_pieces]
    state.restart(seed=77)
    assert [p.id for p in state.current_pieces] == first


class TestQueries:
    def test_get_piece(self, state):
        assert state.get_piece(0) is state.current_pieces[0]
        assert state.get_piece(3) is None
        assert state.get_piece(-1) is None
        assert state.get_piece("1") is None

    def test_valid_placements(self, state):
        set_pieces(state, H_LINE_5, SINGLE, SINGLE)
        assert len(state.get_valid_placements(0)) == 60
        assert state.get_valid_placements(7) == []
        assert state.can_piece_be_placed(0)
        assert not state.can_piece_be_placed(3)

    def test_malformed_piece(self, state):
        state.current_pieces[0] = SimpleNamespace(id=0, structure=None)
        assert state.get_valid_placements(0) == []
        assert state.can_piece_be_placed(0) is False
        assert state.place_piece(0, 0, 0) is False

    def test_checkerboard(self, state):
        fill_checkerboard(state.board)
        set_pieces(state, SINGLE, SQUARE_2, SQUARE_3)
        assert state.can_piece_be_placed(0)
        assert not state.can_piece_be_placed(1)
        assert len(state.get_valid_placements(0)) == 50


class TestSerialization:
    def test_round_trip(self, state):
        state.board.set_cell(2, 3, 4)
        state.score = 17
        state.best_score = 40
        state.can_continue = False
        snapshot = state.serialize()

        assert snapshot.grid[3][2] == 4
        assert snapshot.grid[0][0] is None
        assert [p.id for p in snapshot.pieces] == [p.id for p in state.current_pieces]
        assert snapshot.timestamp > 0

        restored = GameState.deserialize(snapshot)
        assert restored is not None
        assert np.array_equal(restored.board.grid, state.board.grid)
        assert restored.current_pieces == state.current_pieces
        assert (restored.score, restored.best_score) == (17, 40)
        assert restored.can_continue is False
        assert restored.is_game_over is False

    def test_restored_board_does_not_alias_snapshot(self, state):
        snapshot = state.serialize()
        restored = GameState.deserialize(snapshot)
        snapshot.grid[0][0] = 5
        assert restored.board.get_cell(0, 0) is None
        state.board.set_cell(1, 1, 2)
        assert snapshot.grid[1][1] is None

    def test_from_plain_dict(self, state):
        payload = state.serialize().model_dump()
        restored = GameState.deserialize(payload)
        assert restored is not None
        assert restored.current_pieces == state.current_pieces

    def test_rejects_wrong_grid_dimensions(self, state):
        payload = state.serialize().model_dump()
        payload["grid"] = payload["grid"][:9]
        assert GameState.deserialize(payload) is None

    def test_rejects_unknown_piece(self, state):
        payload = state.serialize().model_dump()
        payload["pieces"][0]["id"] = 99
        assert GameState.deserialize(payload) is None

    def test_rejects_cell_outside_catalog(self, state):
        payload = state.serialize().model_dump()
        payload["grid"][0][0] = 99
        assert GameState.deserialize(payload) is None

    def test_can_restore_has_no_side_effects(self, state):
        good = state.serialize()
        bad = GameState(config=GameConfig(board_size=8, random_seed=3)).serialize()
        state.board.set_cell(3, 3, 1)
        before = state.board.grid.copy()

        assert state.can_restore(good)
        assert not state.can_restore(bad)
        assert np.array_equal(state.board.grid, before)

    def test_rejects_wrong_slot_count(self, state):
        payload = state.serialize().model_dump()
        payload["pieces"] = payload["pieces"][:2]
        assert GameState.deserialize(payload) is None

    def test_restore_leaves_state_intact_on_bad_grid(self, state):
        state.board.set_cell(5, 5, 1)
        state.score = 12
        snapshot = state.serialize()
        snapshot.grid = [[None] * 8 for _ in range(8)]
        snapshot.score = 99
        before = state.board.grid.copy()

        assert state.restore(snapshot) is False
        assert np.array_equal(state.board.grid, before)
        assert state.score == 12


class TestNotifications:
    def test_events_after_placement(self):
        sink = RecordingSink()
        state = GameState(config=GameConfig(random_seed=3), notifier=NotificationDispatcher([sink]))
        for x in range(9):
            state.board.set_cell(x, 0, 1)
        set_pieces(state, SINGLE, SINGLE, SINGLE)

        state.place_piece(0, 9, 0)
        assert sink.names() == ["piece_placed", "lines_cleared"]
        assert sink.events[1][1]["points"] == state.score

        state.restart()
        assert sink.names()[-1] == "game_restarted"

    def test_failing_sink_does_not_block_placement(self, caplog):
        recorder = RecordingSink()
        dispatcher = NotificationDispatcher([FailingSink(), recorder])
        state = GameState(config=GameConfig(random_seed=3), notifier=dispatcher)
        set_pieces(state, SINGLE, SINGLE, SINGLE)

        assert state.place_piece(0, 0, 0)
        assert state.board.get_cell(0, 0) == SINGLE
        assert recorder.names() == ["piece_placed"]
        assert "sink offline" in caplog.text
