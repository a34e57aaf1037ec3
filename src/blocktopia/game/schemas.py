"""
Snapshot schemas shared by persistence and the undo history.
"""

from __future__ import annotations

import time
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .pieces import SHAPE_COUNT


def _now_ms() -> int:
    return int(time.time() * 1000)


class PieceSnapshot(BaseModel):
    """A piece in a saved slot."""
    id: int = Field(ge=0, lt=SHAPE_COUNT, description="Catalog id of the piece")
    structure: List[Tuple[int, int]] = Field(default_factory=list, description="(dx, dy) offsets")


class GameSnapshot(BaseModel):
    """Plain value copy of a game, safe to persist or keep as undo history."""
    grid: List[List[Optional[int]]] = Field(description="Rows of cells; None marks an empty cell")
    pieces: List[PieceSnapshot]
    score: int = Field(ge=0)
    best_score: int = Field(ge=0)
    is_game_over: bool = False
    can_continue: bool = True
    timestamp: int = Field(default_factory=_now_ms, description="Milliseconds since the epoch")
