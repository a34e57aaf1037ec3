"""Gymnasium environments for Blocktopia."""

from __future__ import annotations

from gymnasium.envs.registration import register

from .block_puzzle_env import BlockPuzzleEnv

ENV_ID = "Blocktopia-10x10-v0"

register(
    id=ENV_ID,
    entry_point="blocktopia.env.block_puzzle_env:BlockPuzzleEnv",
)

__all__ = ["ENV_ID", "BlockPuzzleEnv"]
