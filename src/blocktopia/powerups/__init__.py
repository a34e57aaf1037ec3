"""Power-up effects applied to a live game, gated by an authorizer."""

from .inventory import (
    POWER_UPS,
    AuthorizationResult,
    PowerUpAuthorizer,
    PowerUpDefinition,
    PowerUpInventory,
    PowerUpType,
)
from .engine import Eligibility, PowerUpEngine, PowerUpResult

__all__ = [
    "POWER_UPS",
    "AuthorizationResult",
    "PowerUpAuthorizer",
    "PowerUpDefinition",
    "PowerUpInventory",
    "PowerUpType",
    "Eligibility",
    "PowerUpEngine",
    "PowerUpResult",
]
