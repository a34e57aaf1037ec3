from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from blocktopia.game import GameConfig, GameState
from blocktopia.game.board import print_grid
from blocktopia.logging_setup import setup_logging
from blocktopia.services.persistence import JsonFileGameStore

logger = logging.getLogger(__name__)


def _all_moves(game: GameState) -> List[Tuple[int, int, int]]:
    moves: List[Tuple[int, int, int]] = []
    for slot in range(len(game.current_pieces)):
        moves.extend((slot, x, y) for x, y in game.get_valid_placements(slot))
    return moves


def play_random_game(seed: Optional[int] = None, moves: int = 50) -> GameState:
    """Place random valid pieces, using the extra try once when stuck."""
    game = GameState(config=GameConfig(random_seed=seed))
    rng = random.Random(seed)
    for _ in range(moves):
        if game.is_game_over:
            if not game.can_continue:
                break
            game.continue_game()
            continue
        options = _all_moves(game)
        if not options:
            break
        game.place_piece(*rng.choice(options))
    return game


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play a random Blocktopia game in the terminal")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--moves", type=int, default=50)
    p.add_argument("--save", type=Path, default=None, help="Write the final game to this JSON file")
    p.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    game = play_random_game(args.seed, args.moves)
    print("=== Blocktopia Demo ===")
    print_grid(game.board)
    print(f"Score: {game.score}  Best: {game.best_score}  Phase: {game.phase.value}")
    print(f"Pieces: {[p.id for p in game.current_pieces]}")

    if args.save is not None:
        JsonFileGameStore(args.save).save(game.serialize())
        logger.info("Saved game to %s", args.save)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
