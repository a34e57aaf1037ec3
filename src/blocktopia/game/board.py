from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .pieces import SHAPE_COUNT, Piece

Coordinate = Tuple[int, int]

EMPTY = -1
DEFAULT_SNAP_TOLERANCE = 0.4


@dataclass
class FullLines:
    rows: List[int] = field(default_factory=list)
    columns: List[int] = field(default_factory=list)

    @property
    def total_lines(self) -> int:
        # An intersection cell belongs to both a row and a column; both lines count.
        return len(self.rows) + len(self.columns)


def _piece_offsets(piece: Any) -> Optional[List[Coordinate]]:
    """Integer offsets of `piece`, or None when the piece data is malformed."""
    try:
        structure = piece.structure
        offsets = [(operator.index(dx), operator.index(dy)) for dx, dy in structure]
    except (AttributeError, TypeError, ValueError):
        return None
    if not offsets:
        return None
    return offsets


def _cell_value(value: Any) -> Optional[int]:
    """Catalog id stored in a filled cell, or None when `value` is not one."""
    try:
        value = operator.index(value)
    except TypeError:
        return None
    if not 0 <= value < SHAPE_COUNT:
        return None
    return value


class Board:
    """Square occupancy grid.

    Cells hold the catalog id of the piece that filled them, or EMPTY.
    Row index is y, column index is x; `grid[y, x]`.
    """

    def __init__(self, size: int = 10) -> None:
        self.size = int(size)
        self.grid = np.full((self.size, self.size), EMPTY, dtype=np.int8)

    def reset(self) -> None:
        self.grid.fill(EMPTY)

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def _line_index(self, index: Any) -> Optional[int]:
        try:
            index = operator.index(index)
        except TypeError:
            return None
        if not 0 <= index < self.size:
            return None
        return index

    def get_cell(self, x: int, y: int) -> Optional[int]:
        if not self.is_inside(x, y) or self.grid[y, x] == EMPTY:
            return None
        return int(self.grid[y, x])

    def set_cell(self, x: int, y: int, value: Optional[int]) -> None:
        if self.is_inside(x, y):
            self.grid[y, x] = EMPTY if value is None else value

    def can_place_piece(self, piece: Piece, x: int, y: int) -> bool:
        offsets = _piece_offsets(piece)
        if offsets is None:
            return False
        try:
            x, y = operator.index(x), operator.index(y)
        except TypeError:
            return False
        for dx, dy in offsets:
            tx, ty = x + dx, y + dy
            if not self.is_inside(tx, ty):
                return False
            if self.grid[ty, tx] != EMPTY:
                return False
        return True

    def place_piece(self, piece: Piece, x: int, y: int, id_override: Optional[int] = None) -> bool:
        """Write the piece into the grid. Callers validate with `can_place_piece` first.

        Cells falling outside the board are skipped. `id_override` replaces the
        stored id and must itself be a catalog id. Returns False, writing
        nothing, for a malformed piece, position or override.
        """
        offsets = _piece_offsets(piece)
        if offsets is None:
            return False
        value = _cell_value(piece.id if id_override is None else id_override)
        if value is None:
            return False
        try:
            x, y = operator.index(x), operator.index(y)
        except TypeError:
            return False
        for dx, dy in offsets:
            tx, ty = x + dx, y + dy
            if self.is_inside(tx, ty):
                self.grid[ty, tx] = value
        return True

    def find_best_snap_position(
        self,
        grid_x: float,
        grid_y: float,
        piece: Piece,
        tolerance: float = DEFAULT_SNAP_TOLERANCE,
    ) -> Optional[Coordinate]:
        """Round a fractional drag position to the nearest valid placement.

        Candidates are the four surrounding integer corners, tried in the order
        (floor, floor), (ceil, floor), (floor, ceil), (ceil, ceil); the first
        candidate at minimal distance wins. Returns None when no valid
        candidate lies strictly within `tolerance`.
        """
        fx, cx = math.floor(grid_x), math.ceil(grid_x)
        fy, cy = math.floor(grid_y), math.ceil(grid_y)
        candidates = [(fx, fy), (cx, fy), (fx, cy), (cx, cy)]

        best: Optional[Coordinate] = None
        best_distance = tolerance
        for x, y in candidates:
            if not self.can_place_piece(piece, x, y):
                continue
            distance = math.hypot(grid_x - x, grid_y - y)
            if distance < best_distance:
                best = (x, y)
                best_distance = distance
        return best

    def check_full_lines(self) -> FullLines:
        filled = self.grid != EMPTY
        rows = [int(i) for i in np.flatnonzero(np.all(filled, axis=1))]
        columns = [int(i) for i in np.flatnonzero(np.all(filled, axis=0))]
        return FullLines(rows=rows, columns=columns)

    def clear_lines(self, rows: Iterable[int], columns: Iterable[int]) -> int:
        """Empty the given rows and columns and return how many filled cells were cleared.

        A cell in both a cleared row and a cleared column counts once.
        """
        mask = np.zeros((self.size, self.size), dtype=np.bool_)
        for y in map(self._line_index, rows):
            if y is not None:
                mask[y, :] = True
        for x in map(self._line_index, columns):
            if x is not None:
                mask[:, x] = True
        cleared = int(np.count_nonzero(self.grid[mask] != EMPTY))
        self.grid[mask] = EMPTY
        return cleared

    def has_filled_cells(self, index: int, is_row: bool) -> bool:
        index = self._line_index(index)
        if index is None:
            return False
        line = self.grid[index, :] if is_row else self.grid[:, index]
        return bool(np.any(line != EMPTY))

    def clear_row(self, index: int) -> None:
        index = self._line_index(index)
        if index is not None:
            self.grid[index, :] = EMPTY

    def clear_column(self, index: int) -> None:
        index = self._line_index(index)
        if index is not None:
            self.grid[:, index] = EMPTY

    def get_empty_count(self) -> int:
        return int(np.count_nonzero(self.grid == EMPTY))

    def get_filled_count(self) -> int:
        return self.size * self.size - self.get_empty_count()

    def get_filled_cells(self) -> List[Coordinate]:
        ys, xs = np.nonzero(self.grid != EMPTY)
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def get_valid_placements(self, piece: Piece) -> List[Coordinate]:
        positions: List[Coordinate] = []
        for y in range(self.size):
            for x in range(self.size):
                if self.can_place_piece(piece, x, y):
                    positions.append((x, y))
        return positions

    def can_place_piece_anywhere(self, piece: Piece) -> bool:
        for y in range(self.size):
            for x in range(self.size):
                if self.can_place_piece(piece, x, y):
                    return True
        return False

    def can_place_any_piece(self, pieces: Iterable[Piece]) -> bool:
        return any(self.can_place_piece_anywhere(piece) for piece in pieces)

    def to_list(self) -> List[List[Optional[int]]]:
        return [[None if v == EMPTY else int(v) for v in row] for row in self.grid]

    def _stage_grid(self, rows: Sequence[Sequence[Optional[int]]]) -> Optional[np.ndarray]:
        if len(rows) != self.size:
            return None
        staged = np.full((self.size, self.size), EMPTY, dtype=np.int8)
        for y, row in enumerate(rows):
            if len(row) != self.size:
                return None
            for x, value in enumerate(row):
                if value is None or value == EMPTY:
                    continue
                value = _cell_value(value)
                if value is None:
                    return None
                staged[y, x] = value
        return staged

    def can_set_grid(self, rows: Sequence[Sequence[Optional[int]]]) -> bool:
        return self._stage_grid(rows) is not None

    def set_grid(self, rows: Sequence[Sequence[Optional[int]]]) -> bool:
        """Copy cell values from `rows` into the grid.

        Filled cells must hold catalog ids, the same values `place_piece`
        writes. Input of the wrong dimensions or with any other value is
        rejected and the current grid is left untouched.
        """
        staged = self._stage_grid(rows)
        if staged is None:
            return False
        self.grid[:, :] = staged
        return True

    def clone(self) -> "Board":
        board = Board(self.size)
        board.grid = self.grid.copy()
        return board

    def render_text(self) -> str:
        return "\n".join("".join("█" if cell != EMPTY else "·" for cell in row) for row in self.grid)


def print_grid(board: Board) -> None:
    print(board.render_text())
