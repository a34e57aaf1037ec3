import logging
import os
import sys

import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from blocktopia.game import Board, GameConfig, GameState, generate_piece_by_id  # noqa: E402

SINGLE = 0
H_LINE_2 = 1
H_LINE_5 = 4
V_LINE_2 = 5
SQUARE_2 = 9
SQUARE_3 = 10


def fill_checkerboard(board: Board) -> None:
    """Fill every cell with (x + y) even; no two empty cells touch along a row or column."""
    for y in range(board.size):
        for x in range(board.size):
            if (x + y) % 2 == 0:
                board.set_cell(x, y, 0)


def set_pieces(state: GameState, *ids: int) -> None:
    state.current_pieces = [generate_piece_by_id(i) for i in ids]


class RecordingSink:
    def __init__(self):
        self.events = []

    def notify(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [event.value for event, _ in self.events]


class FailingSink:
    def notify(self, event, payload):
        raise RuntimeError("sink offline")


@pytest.fixture
def board():
    return Board(10)


@pytest.fixture
def state():
    return GameState(config=GameConfig(random_seed=1234))


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
