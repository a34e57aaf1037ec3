"""
Power-up catalog and the authorization collaborator.

The engine never decides on its own whether a player may use a power-up; it
asks an authorizer. PowerUpInventory is an in-process authorizer backed by
per-type quantities and cooldowns.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class PowerUpType(str, Enum):
    MAGIC_WAND = "magic_wand"
    PIECE_SWAP = "piece_swap"
    UNDO_MOVE = "undo_move"
    LINE_BLASTER = "line_blaster"


@dataclass(frozen=True)
class PowerUpDefinition:
    type: PowerUpType
    name: str
    description: str
    cooldown: float = 0.0  # seconds


POWER_UPS: Dict[PowerUpType, PowerUpDefinition] = {
    PowerUpType.MAGIC_WAND: PowerUpDefinition(
        PowerUpType.MAGIC_WAND, "Magic Wand", "Clear a few random blocks from the board"
    ),
    PowerUpType.PIECE_SWAP: PowerUpDefinition(
        PowerUpType.PIECE_SWAP, "Piece Swap", "Replace current pieces with new ones"
    ),
    PowerUpType.UNDO_MOVE: PowerUpDefinition(
        PowerUpType.UNDO_MOVE, "Undo Move", "Undo your last piece placement"
    ),
    PowerUpType.LINE_BLASTER: PowerUpDefinition(
        PowerUpType.LINE_BLASTER, "Line Blaster", "Clear any row or column on the board"
    ),
}


@dataclass(frozen=True)
class AuthorizationResult:
    success: bool
    error: Optional[str] = None


class PowerUpAuthorizer(Protocol):
    def has_power_up(self, power_up: PowerUpType) -> bool:
        ...

    def is_on_cooldown(self, power_up: PowerUpType) -> bool:
        ...

    def get_cooldown_remaining(self, power_up: PowerUpType) -> float:
        ...

    def use_power_up(self, power_up: PowerUpType) -> AuthorizationResult:
        ...


class PowerUpInventory:
    def __init__(
        self,
        quantities: Optional[Dict[PowerUpType, int]] = None,
        cooldowns: Optional[Dict[PowerUpType, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.quantities: Dict[PowerUpType, int] = {t: 0 for t in PowerUpType}
        if quantities:
            self.quantities.update(quantities)
        self.cooldowns: Dict[PowerUpType, float] = {t: POWER_UPS[t].cooldown for t in PowerUpType}
        if cooldowns:
            self.cooldowns.update(cooldowns)
        self.clock = clock
        self._last_used: Dict[PowerUpType, float] = {}

    def add(self, power_up: PowerUpType, quantity: int = 1) -> None:
        self.quantities[power_up] = self.quantities.get(power_up, 0) + quantity

    def get_quantity(self, power_up: PowerUpType) -> int:
        return self.quantities.get(power_up, 0)

    def has_power_up(self, power_up: PowerUpType) -> bool:
        return self.get_quantity(power_up) > 0

    def get_cooldown_remaining(self, power_up: PowerUpType) -> float:
        cooldown = self.cooldowns.get(power_up, 0.0)
        last_used = self._last_used.get(power_up)
        if not cooldown or last_used is None:
            return 0.0
        return max(0.0, cooldown - (self.clock() - last_used))

    def is_on_cooldown(self, power_up: PowerUpType) -> bool:
        return self.get_cooldown_remaining(power_up) > 0

    def use_power_up(self, power_up: PowerUpType) -> AuthorizationResult:
        name = POWER_UPS[power_up].name
        if not self.has_power_up(power_up):
            logger.info("No %s available", name)
            return AuthorizationResult(False, "not_owned")
        if self.is_on_cooldown(power_up):
            logger.info("%s on cooldown: %.1fs remaining", name, self.get_cooldown_remaining(power_up))
            return AuthorizationResult(False, "cooldown")
        self.quantities[power_up] -= 1
        self._last_used[power_up] = self.clock()
        logger.info("Used %s. Remaining: %d", name, self.quantities[power_up])
        return AuthorizationResult(True)
