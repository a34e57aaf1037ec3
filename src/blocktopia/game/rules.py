from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_BOARD_SIZE = 10
COMBO_OFFSET = 0.333


@dataclass(frozen=True)
class ScoreBreakdown:
    total: int
    base_points: float
    combo_bonus: float
    multiplier: float


def calculate_score_detailed(
    empty_fields: int, lines_cleared: int, board_size: int = DEFAULT_BOARD_SIZE
) -> ScoreBreakdown:
    """Score a clear with its intermediate terms.

    base = (board_size + empty_fields / 5) * lines
    combo = base * (lines / 3 - 0.333)

    The total is floored, never rounded.
    """
    if lines_cleared == 0:
        return ScoreBreakdown(total=0, base_points=0.0, combo_bonus=0.0, multiplier=1.0)
    base_points = (board_size + empty_fields / 5) * lines_cleared
    multiplier = lines_cleared / 3.0 - COMBO_OFFSET
    combo_bonus = base_points * multiplier
    return ScoreBreakdown(
        total=int(math.floor(base_points + combo_bonus)),
        base_points=base_points,
        combo_bonus=combo_bonus,
        multiplier=multiplier,
    )


def calculate_score(empty_fields: int, lines_cleared: int, board_size: int = DEFAULT_BOARD_SIZE) -> int:
    return calculate_score_detailed(empty_fields, lines_cleared, board_size).total
