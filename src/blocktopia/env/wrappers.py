from __future__ import annotations

from typing import Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .block_puzzle_env import _compute_action_mask


class FlattenDiscreteActionWrapper(gym.ActionWrapper):
    """Exposes the (slot, x, y) placement action as a single Discrete index.

    Index i addresses `mask[slot, y, x]` of the env's action mask read in
    C order, so `get_action_mask()[i]` tells whether action i places a piece.
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        if not isinstance(env.action_space, spaces.MultiDiscrete):
            raise TypeError("FlattenDiscreteActionWrapper needs a MultiDiscrete (slot, x, y) action space")
        slots, width, height = (int(n) for n in env.action_space.nvec)
        # mask layout is [slot, y, x]
        self.mask_shape: Tuple[int, int, int] = (slots, height, width)
        self.n = slots * height * width
        self.action_space = spaces.Discrete(self.n)

    def placement(self, index: int) -> Tuple[int, int, int]:
        """(slot, x, y) for a flat action index."""
        slot, y, x = np.unravel_index(int(index), self.mask_shape)
        return int(slot), int(x), int(y)

    def index_of(self, slot: int, x: int, y: int) -> int:
        return int(np.ravel_multi_index((slot, y, x), self.mask_shape))

    def action(self, action: int):  # type: ignore[override]
        return np.array(self.placement(action), dtype=np.int64)

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.env.unwrapped.game).ravel()


class ResampleInvalidActionWrapper(gym.Wrapper):
    """Swaps a masked-out Discrete action for a random placeable one.

    Sits on top of FlattenDiscreteActionWrapper. When no placement is left the
    action goes through unchanged and the env applies its invalid-action penalty.
    """

    def step(self, action):  # type: ignore[override]
        mask = self.get_action_mask()
        index = int(action)
        if 0 <= index < mask.size and not mask[index]:
            candidates = np.flatnonzero(mask)
            if candidates.size:
                action = int(self.np_random.choice(candidates))
        return self.env.step(action)

    def get_action_mask(self) -> np.ndarray:
        get_mask = getattr(self.env, "get_action_mask", None)
        if get_mask is None:
            raise AttributeError("wrapped env has no get_action_mask()")
        return get_mask()
