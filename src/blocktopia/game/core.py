from __future__ import annotations

import logging
import operator
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..services.notifications import GameEvent, NotificationDispatcher
from .board import Board, Coordinate
from .pieces import Piece, generate_piece_by_id, generate_random_piece
from .rules import calculate_score
from .schemas import GameSnapshot, PieceSnapshot

logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
    board_size: int = 10
    pieces_per_set: int = 3
    random_seed: Optional[int] = None
    extra_try_rows: int = 4


@dataclass
class PlacementResult:
    lines_cleared: int = 0
    cells_cleared: int = 0
    points: int = 0


class GamePhase(str, Enum):
    PLAYING = "playing"
    GAME_OVER_WITH_EXTRA_TRY = "game_over_with_extra_try"
    GAME_OVER_EXHAUSTED = "game_over_exhausted"


class GameState:
    """Turn flow for one player: three piece slots over a single board.

    `is_game_over` always reflects whether any current piece fits anywhere on
    the board; it is recomputed after every change to occupancy or pieces.
    """

    def __init__(
        self,
        best_score: int = 0,
        config: Optional[GameConfig] = None,
        notifier: Optional[NotificationDispatcher] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng or random.Random(self.config.random_seed)
        self.notifier = notifier
        self.board = Board(self.config.board_size)
        self.current_pieces: List[Piece] = []
        self.score = 0
        self.best_score = best_score
        self.is_game_over = False
        self.can_continue = True
        self.last_placement: Optional[PlacementResult] = None
        self._generate_new_pieces()

    def _generate_new_pieces(self) -> None:
        self.current_pieces = [generate_random_piece(self.rng) for _ in range(self.config.pieces_per_set)]

    def _notify(self, event: GameEvent, payload: Optional[Dict[str, Any]] = None) -> None:
        if self.notifier is not None:
            self.notifier.notify(event, payload)

    def _slot(self, index: Any) -> Optional[int]:
        try:
            index = operator.index(index)
        except TypeError:
            return None
        if 0 <= index < len(self.current_pieces):
            return index
        return None

    @property
    def phase(self) -> GamePhase:
        if not self.is_game_over:
            return GamePhase.PLAYING
        if self.can_continue:
            return GamePhase.GAME_OVER_WITH_EXTRA_TRY
        return GamePhase.GAME_OVER_EXHAUSTED

    def place_piece(self, slot: int, x: int, y: int) -> bool:
        index = self._slot(slot)
        if index is None:
            return False
        piece = self.current_pieces[index]
        if not self.board.can_place_piece(piece, x, y):
            return False

        if not self.board.place_piece(piece, x, y):
            return False
        self.current_pieces[index] = generate_random_piece(self.rng)
        result = self._handle_line_clearing()
        self.last_placement = result
        self.refresh_game_over()

        self._notify(GameEvent.PIECE_PLACED, {"piece_id": piece.id, "x": x, "y": y, "slot": index})
        if result.lines_cleared:
            self._notify(
                GameEvent.LINES_CLEARED,
                {"lines": result.lines_cleared, "points": result.points, "score": self.score},
            )
        if self.is_game_over:
            self._notify(GameEvent.GAME_OVER, {"score": self.score, "can_continue": self.can_continue})
        return True

    def _handle_line_clearing(self) -> PlacementResult:
        full = self.board.check_full_lines()
        if full.total_lines == 0:
            return PlacementResult()
        cells = self.board.clear_lines(full.rows, full.columns)
        empty_fields = self.board.get_empty_count()
        points = calculate_score(empty_fields, full.total_lines, self.board.size)
        self.score += points
        if self.score > self.best_score:
            self.best_score = self.score
        return PlacementResult(lines_cleared=full.total_lines, cells_cleared=cells, points=points)

    def refresh_game_over(self) -> bool:
        self.is_game_over = not self.board.can_place_any_piece(self.current_pieces)
        return self.is_game_over

    def continue_game(self) -> int:
        """Use the one-time extra try: clear up to `extra_try_rows` occupied rows.

        Only `can_continue` gates the call, so it also works mid-game. Returns
        the number of rows cleared; no points are awarded for them.
        """
        if not self.can_continue:
            logger.warning("Cannot continue - extra try already used")
            return 0

        self.can_continue = False
        self.is_game_over = False

        rows = list(range(self.board.size))
        self.rng.shuffle(rows)
        cleared = 0
        for row in rows:
            if cleared >= self.config.extra_try_rows:
                break
            if self.board.has_filled_cells(row, True):
                self.board.clear_row(row)
                cleared += 1

        logger.info("Extra try cleared %d rows", cleared)
        self.refresh_game_over()
        self._notify(GameEvent.EXTRA_TRY_USED, {"rows_cleared": cleared, "is_game_over": self.is_game_over})
        return cleared

    def restart(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.board.reset()
        self.score = 0
        self.is_game_over = False
        self.can_continue = True
        self.last_placement = None
        self._generate_new_pieces()
        self._notify(GameEvent.GAME_RESTARTED, {"best_score": self.best_score})

    def get_piece(self, index: int) -> Optional[Piece]:
        slot = self._slot(index)
        if slot is None:
            return None
        return self.current_pieces[slot]

    def get_valid_placements(self, index: int) -> List[Coordinate]:
        piece = self.get_piece(index)
        if piece is None:
            return []
        return self.board.get_valid_placements(piece)

    def can_piece_be_placed(self, index: int) -> bool:
        piece = self.get_piece(index)
        if piece is None:
            return False
        return self.board.can_place_piece_anywhere(piece)

    def serialize(self) -> GameSnapshot:
        return GameSnapshot(
            grid=self.board.to_list(),
            pieces=[PieceSnapshot(id=p.id, structure=[tuple(c) for c in p.structure]) for p in self.current_pieces],
            score=self.score,
            best_score=self.best_score,
            is_game_over=self.is_game_over,
            can_continue=self.can_continue,
        )

    def _snapshot_pieces(self, snapshot: GameSnapshot) -> Optional[List[Piece]]:
        """Pieces to load from `snapshot`, or None when it does not fit this game."""
        if len(snapshot.pieces) != self.config.pieces_per_set:
            logger.warning(
                "Rejecting snapshot with %d pieces, expected %d",
                len(snapshot.pieces),
                self.config.pieces_per_set,
            )
            return None
        try:
            pieces = [generate_piece_by_id(p.id) for p in snapshot.pieces]
        except ValueError:
            logger.warning("Rejecting snapshot with unknown piece id")
            return None
        if not self.board.can_set_grid(snapshot.grid):
            logger.warning("Rejecting snapshot grid that does not match a %dx%d board", self.board.size, self.board.size)
            return None
        return pieces

    def can_restore(self, snapshot: GameSnapshot) -> bool:
        return self._snapshot_pieces(snapshot) is not None

    def restore(self, snapshot: GameSnapshot) -> bool:
        """Load board, pieces, score and flags from `snapshot` in place.

        `best_score` is left alone. Returns False, with nothing changed, when
        the snapshot does not fit this game.
        """
        pieces = self._snapshot_pieces(snapshot)
        if pieces is None:
            return False
        self.board.set_grid(snapshot.grid)

        self.current_pieces = pieces
        self.score = snapshot.score
        self.is_game_over = snapshot.is_game_over
        self.can_continue = snapshot.can_continue
        self.last_placement = None
        return True

    @classmethod
    def deserialize(
        cls,
        snapshot: Union[GameSnapshot, Dict[str, Any]],
        config: Optional[GameConfig] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ) -> Optional["GameState"]:
        if not isinstance(snapshot, GameSnapshot):
            try:
                snapshot = GameSnapshot.model_validate(snapshot)
            except ValidationError as exc:
                logger.warning("Invalid game snapshot: %s", exc)
                return None
        state = cls(best_score=snapshot.best_score, config=config, notifier=notifier)
        if not state.restore(snapshot):
            return None
        return state
