"""Game module for Blocktopia.

Exports the core game engine and supporting classes:
- Board: Grid representation, placement checks and line clearing
- Piece: Immutable catalog shape, built by the piece factory
- calculate_score: Line-clear scoring formula
- GameState: Turn flow, game over and the extra try
- GameSnapshot: Serialized game for persistence and undo
"""

from .board import EMPTY, Board, FullLines
from .pieces import (
    PIECE_COLORS,
    PIECE_SHAPES,
    SHAPE_COUNT,
    Piece,
    generate_piece_by_id,
    generate_random_piece,
)
from .rules import ScoreBreakdown, calculate_score, calculate_score_detailed
from .core import GameConfig, GamePhase, GameState, PlacementResult
from .schemas import GameSnapshot, PieceSnapshot

__all__ = [
    "EMPTY",
    "Board",
    "FullLines",
    "PIECE_COLORS",
    "PIECE_SHAPES",
    "SHAPE_COUNT",
    "Piece",
    "generate_piece_by_id",
    "generate_random_piece",
    "ScoreBreakdown",
    "calculate_score",
    "calculate_score_detailed",
    "GameConfig",
    "GamePhase",
    "GameState",
    "PlacementResult",
    "GameSnapshot",
    "PieceSnapshot",
]
