from __future__ import annotations

import logging
import math
import operator
import random
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

from ..game.core import GameState
from ..game.pieces import generate_random_piece
from ..game.schemas import GameSnapshot
from ..services.notifications import GameEvent, NotificationDispatcher
from .inventory import POWER_UPS, PowerUpAuthorizer, PowerUpType

logger = logging.getLogger(__name__)

MAX_HISTORY = 5
MAGIC_WAND_MIN_CELLS = 3
MAGIC_WAND_MAX_CELLS = 5


@dataclass(frozen=True)
class PowerUpResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Eligibility:
    can_use: bool
    reason: Optional[str] = None


def _failed(error: str) -> PowerUpResult:
    return PowerUpResult(success=False, error=error)


class PowerUpEngine:
    """Applies power-up effects to a live GameState.

    Every effect checks what it can without side effects, then asks the
    authorizer to consume the power-up, then mutates. A failed effect leaves
    the game untouched.

    Undo relies on snapshots the caller pushes with `save_state` before each
    placement it wants to be undoable; only the newest `max_history` are kept.
    """

    def __init__(
        self,
        authorizer: PowerUpAuthorizer,
        rng: Optional[random.Random] = None,
        notifier: Optional[NotificationDispatcher] = None,
        max_history: int = MAX_HISTORY,
    ) -> None:
        self.authorizer = authorizer
        self.rng = rng or random.Random()
        self.notifier = notifier
        self.history: Deque[GameSnapshot] = deque(maxlen=max_history)

    @property
    def history_size(self) -> int:
        return len(self.history)

    def save_state(self, state: GameState) -> None:
        self.history.append(state.serialize())

    def clear_history(self) -> None:
        self.history.clear()

    def _authorize(self, power_up: PowerUpType) -> Optional[PowerUpResult]:
        if not self.authorizer.has_power_up(power_up):
            return _failed("Power-up not available")
        used = self.authorizer.use_power_up(power_up)
        if not used.success:
            return _failed(used.error or "Power-up not available")
        return None

    def _applied(self, power_up: PowerUpType, message: str, **details: Any) -> PowerUpResult:
        logger.info("Applied %s: %s", POWER_UPS[power_up].name, message)
        if self.notifier is not None:
            payload: Dict[str, Any] = {"type": power_up.value}
            payload.update(details)
            self.notifier.notify(GameEvent.POWER_UP_APPLIED, payload)
        return PowerUpResult(success=True, message=message)

    def apply_magic_wand(self, state: GameState) -> PowerUpResult:
        filled = state.board.get_filled_cells()
        if not filled:
            return _failed("Board is empty")
        denied = self._authorize(PowerUpType.MAGIC_WAND)
        if denied is not None:
            return denied

        count = min(self.rng.randint(MAGIC_WAND_MIN_CELLS, MAGIC_WAND_MAX_CELLS), len(filled))
        for x, y in self.rng.sample(filled, count):
            state.board.set_cell(x, y, None)

        # Removing cells can only open up space.
        if state.is_game_over:
            state.refresh_game_over()
        return self._applied(PowerUpType.MAGIC_WAND, f"Cleared {count} cells with Magic Wand!", cells_cleared=count)

    def apply_piece_swap(self, state: GameState) -> PowerUpResult:
        denied = self._authorize(PowerUpType.PIECE_SWAP)
        if denied is not None:
            return denied
        state.current_pieces = [generate_random_piece(state.rng) for _ in state.current_pieces]
        state.refresh_game_over()
        return self._applied(PowerUpType.PIECE_SWAP, "Pieces swapped!")

    def apply_undo_move(self, state: GameState) -> PowerUpResult:
        if not self.authorizer.has_power_up(PowerUpType.UNDO_MOVE):
            return _failed("Power-up not available")
        if not self.history:
            return _failed("Nothing to undo")
        if not state.can_restore(self.history[-1]):
            return _failed("Failed to restore state")
        denied = self._authorize(PowerUpType.UNDO_MOVE)
        if denied is not None:
            return denied

        state.restore(self.history.pop())
        return self._applied(PowerUpType.UNDO_MOVE, "Move undone!")

    def apply_line_blaster(self, state: GameState, is_row: bool, index: int) -> PowerUpResult:
        try:
            index = operator.index(index)
        except TypeError:
            return _failed("Invalid line index")
        if not 0 <= index < state.board.size:
            return _failed("Invalid line index")
        denied = self._authorize(PowerUpType.LINE_BLASTER)
        if denied is not None:
            return denied

        if is_row:
            state.board.clear_row(index)
        else:
            state.board.clear_column(index)
        state.refresh_game_over()
        label = "Row" if is_row else "Column"
        return self._applied(
            PowerUpType.LINE_BLASTER, f"{label} {index + 1} cleared!", is_row=is_row, index=index
        )

    def can_use_power_up(self, power_up: PowerUpType, state: GameState) -> Eligibility:
        if not self.authorizer.has_power_up(power_up):
            return Eligibility(False, "You don't have this power-up")
        if self.authorizer.is_on_cooldown(power_up):
            remaining = self.authorizer.get_cooldown_remaining(power_up)
            return Eligibility(False, f"Cooldown: {math.ceil(remaining)}s")

        if power_up is PowerUpType.MAGIC_WAND and state.board.get_filled_count() == 0:
            return Eligibility(False, "Board is empty")
        if power_up is PowerUpType.UNDO_MOVE and not self.history:
            return Eligibility(False, "Nothing to undo")
        return Eligibility(True)

    @staticmethod
    def get_usage_hint(power_up: PowerUpType) -> str:
        hints = {
            PowerUpType.MAGIC_WAND: "Tap to clear 3-5 random blocks from the board",
            PowerUpType.PIECE_SWAP: "Tap to replace current pieces with new ones",
            PowerUpType.UNDO_MOVE: "Tap to undo your last move",
            PowerUpType.LINE_BLASTER: "Tap, then select a row or column to clear",
        }
        return hints.get(power_up, POWER_UPS[power_up].description)
