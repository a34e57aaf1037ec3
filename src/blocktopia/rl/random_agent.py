from __future__ import annotations

import argparse
import logging
from typing import Optional

import numpy as np
import gymnasium as gym

from blocktopia.env import ENV_ID  # registers the environment

logger = logging.getLogger(__name__)


def run_random(steps: int = 200, seed: Optional[int] = None) -> float:
    """Play uniformly random valid placements and return the total reward."""
    env = gym.make(ENV_ID)
    rng = np.random.default_rng(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    episodes = 0
    for _ in range(steps):
        valid = np.argwhere(info["action_mask"])
        if len(valid):
            slot, y, x = valid[rng.integers(len(valid))]
            action = np.array([slot, x, y], dtype=np.int64)
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            episodes += 1
            logger.info("Episode %d finished with score %d", episodes, info["score"])
            obs, info = env.reset()
    env.close()
    return total_reward


def main() -> None:  # pragma: no cover
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    args = p.parse_args()
    print(f"Random agent total reward: {run_random(args.steps, args.seed):.2f}")


if __name__ == "__main__":  # pragma: no cover
    main()
