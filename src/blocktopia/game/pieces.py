from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


Offset = Tuple[int, int]

SHAPE_COUNT = 18

# Offsets are (dx, dy) relative to the piece anchor; y grows downwards.
PIECE_SHAPES: Tuple[Tuple[Offset, ...], ...] = (
    ((0, 0),),  # single
    ((0, 0), (1, 0)),  # H-line 2
    ((0, 0), (1, 0), (2, 0)),  # H-line 3
    ((0, 0), (1, 0), (2, 0), (3, 0)),  # H-line 4
    ((0, 0), (1, 0), (2, 0), (3, 0), (4, 0)),  # H-line 5
    ((0, 0), (0, 1)),  # V-line 2
    ((0, 0), (0, 1), (0, 2)),  # V-line 3
    ((0, 0), (0, 1), (0, 2), (0, 3)),  # V-line 4
    ((0, 0), (0, 1), (0, 2), (0, 3), (0, 4)),  # V-line 5
    ((0, 0), (1, 0), (0, 1), (1, 1)),  # square 2x2
    (
        (0, 0), (1, 0), (2, 0),
        (0, 1), (1, 1), (2, 1),
        (0, 2), (1, 2), (2, 2),
    ),  # square 3x3
    ((0, 0), (0, 1), (0, 2), (1, 2)),  # L
    ((1, 0), (1, 1), (1, 2), (0, 2)),  # J
    ((0, 0), (1, 0), (2, 0), (1, 1)),  # T
    ((1, 0), (0, 1), (1, 1), (2, 1)),  # reverse T
    ((1, 0), (2, 0), (0, 1), (1, 1)),  # S
    ((1, 0), (0, 1), (1, 1), (2, 1), (1, 2)),  # plus
    ((0, 0), (0, 1), (1, 1)),  # small L
)

PIECE_COLORS: Tuple[str, ...] = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#FFA07A",
    "#98D8C8",
    "#F7B731",
    "#5F27CD",
    "#00D2D3",
    "#FF9FF3",
    "#54A0FF",
    "#48DBFB",
    "#FF6348",
    "#2ECC71",
    "#3498DB",
    "#9B59B6",
    "#E74C3C",
    "#F39C12",
    "#1ABC9C",
)

if len(PIECE_SHAPES) != SHAPE_COUNT:
    raise RuntimeError(f"Expected {SHAPE_COUNT} piece shapes, but got {len(PIECE_SHAPES)}")


@dataclass(frozen=True)
class PieceBounds:
    min_x: int
    max_x: int
    min_y: int
    max_y: int
    width: int
    height: int


@dataclass(frozen=True, eq=False)
class Piece:
    """A placeable shape drawn from the catalog.

    Equality is shape identity: two pieces are equal when they share a catalog id.
    """

    id: int
    structure: Tuple[Offset, ...]
    color: int
    width: int
    height: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Piece):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def hex_color(self) -> str:
        return PIECE_COLORS[self.color % len(PIECE_COLORS)]

    @property
    def size(self) -> int:
        return len(self.structure)

    @property
    def bounds(self) -> PieceBounds:
        return calculate_piece_bounds(self.structure)

    def first_cell(self) -> Offset:
        if not self.structure:
            return (0, 0)
        return self.structure[0]

    def cells_at(self, origin_x: int, origin_y: int) -> list[Offset]:
        return [(origin_x + dx, origin_y + dy) for dx, dy in self.structure]

    def clone(self) -> "Piece":
        return Piece(
            id=self.id,
            structure=tuple((int(dx), int(dy)) for dx, dy in self.structure),
            color=self.color,
            width=self.width,
            height=self.height,
        )


def calculate_piece_bounds(structure: Sequence[Offset]) -> PieceBounds:
    if len(structure) == 0:
        return PieceBounds(0, 0, 0, 0, 0, 0)
    xs = [dx for dx, _ in structure]
    ys = [dy for _, dy in structure]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return PieceBounds(
        min_x=min_x,
        max_x=max_x,
        min_y=min_y,
        max_y=max_y,
        width=max_x - min_x + 1,
        height=max_y - min_y + 1,
    )


def generate_piece_by_id(piece_id: int) -> Piece:
    """Build the catalog piece with the given id.

    An id outside the catalog can only come from a programming error, so it raises.
    """
    if piece_id < 0 or piece_id >= len(PIECE_SHAPES):
        raise ValueError(
            f"Invalid piece ID: {piece_id}. Must be between 0 and {len(PIECE_SHAPES) - 1}"
        )
    structure = PIECE_SHAPES[piece_id]
    bounds = calculate_piece_bounds(structure)
    return Piece(
        id=piece_id,
        structure=structure,
        color=piece_id % len(PIECE_COLORS),
        width=bounds.width,
        height=bounds.height,
    )


def generate_random_piece(rng: Optional[random.Random] = None) -> Piece:
    r = rng if rng is not None else random
    return generate_piece_by_id(r.randrange(SHAPE_COUNT))


def pieces_equal(a: Piece, b: Piece) -> bool:
    return a.id == b.id
