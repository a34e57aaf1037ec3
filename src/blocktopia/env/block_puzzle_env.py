from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from blocktopia.game import EMPTY, SHAPE_COUNT, GameConfig, GameState


def _compute_action_mask(game: GameState) -> np.ndarray:
    size = game.board.size
    k = len(game.current_pieces)
    mask = np.zeros((k, size, size), dtype=np.bool_)
    for slot in range(k):
        for x, y in game.get_valid_placements(slot):
            mask[slot, y, x] = True
    return mask


class BlockPuzzleEnv(gym.Env):
    """Gymnasium view of a GameState.

    Action: (slot, x, y). Reward: points scored by the placement, or
    `invalid_action_penalty` when the placement is rejected.
    """

    metadata = {"render_modes": ["ansi", "rgb_array"], "render_fps": 30}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        invalid_action_penalty: float = -0.1,
        max_episode_steps: int = 10000,
        auto_continue: bool = False,
    ) -> None:
        super().__init__()
        self.game = GameState(config=config)
        self.render_mode = render_mode
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.max_episode_steps = int(max_episode_steps)
        self.auto_continue = bool(auto_continue)

        size = self.game.config.board_size
        k = self.game.config.pieces_per_set

        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "pieces": spaces.Box(low=0, high=SHAPE_COUNT - 1, shape=(k,), dtype=np.int8),
            }
        )
        self.action_space = spaces.MultiDiscrete((k, size, size))
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        grid = (self.game.board.grid != EMPTY).astype(np.int8)
        pieces = np.array([p.id for p in self.game.current_pieces], dtype=np.int8)
        return {"grid": grid, "pieces": pieces}

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.score,
            "best_score": self.game.best_score,
            "can_continue": self.game.can_continue,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.restart(seed)
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action: np.ndarray | Tuple[int, int, int]):
        slot, x, y = map(int, action)
        score_before = self.game.score

        placed = self.game.place_piece(slot, x, y)
        if placed:
            reward = float(self.game.score - score_before)
        else:
            reward = self.invalid_action_penalty

        if self.game.is_game_over and self.auto_continue and self.game.can_continue:
            self.game.continue_game()

        self._steps += 1
        terminated = bool(self.game.is_game_over)
        truncated = self._steps >= self.max_episode_steps

        info = self._get_info()
        info["placed"] = placed
        if placed and self.game.last_placement is not None:
            info["lines_cleared"] = self.game.last_placement.lines_cleared
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray | str]:
        if self.render_mode == "ansi":
            return self.game.board.render_text()
        if self.render_mode == "rgb_array":
            grid = self.game.board.grid
            cell = 12
            h, w = grid.shape
            img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
            for y in range(h):
                for x in range(w):
                    color = (70, 200, 120) if grid[y, x] != EMPTY else (30, 30, 36)
                    img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
            return img
        return None

    def close(self) -> None:
        pass
