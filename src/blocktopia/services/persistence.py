"""
Game persistence: stores for snapshots and a debounced auto-saver.

Saving never feeds back into the game. Every store failure is logged and
swallowed so that a broken disk or backend cannot undo or block a move.
"""

from __future__ import annotations

import functools
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Protocol, Union

from pydantic import ValidationError

from ..game.schemas import GameSnapshot

if TYPE_CHECKING:
    from ..game.core import GameState

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 2.0


class GameStore(Protocol):
    def save(self, snapshot: GameSnapshot) -> None:
        ...

    def load(self) -> Optional[GameSnapshot]:
        ...

    def clear(self) -> None:
        ...


class MemoryGameStore:
    """Keeps the latest snapshot in memory, as JSON, so nothing aliases live state."""

    def __init__(self) -> None:
        self._payload: Optional[str] = None

    def save(self, snapshot: GameSnapshot) -> None:
        self._payload = snapshot.model_dump_json()

    def load(self) -> Optional[GameSnapshot]:
        if self._payload is None:
            return None
        return GameSnapshot.model_validate_json(self._payload)

    def clear(self) -> None:
        self._payload = None


class JsonFileGameStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def save(self, snapshot: GameSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(snapshot.model_dump_json(), encoding="utf-8")
        tmp.replace(self.path)
        logger.debug("Game state saved to %s", self.path)

    def load(self) -> Optional[GameSnapshot]:
        if not self.path.exists():
            return None
        try:
            return GameSnapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("Invalid saved game at %s: %s", self.path, exc)
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.debug("Saved game cleared at %s", self.path)


def has_active_game(store: GameStore) -> bool:
    """True when the store holds a game that is still in progress."""
    try:
        snapshot = store.load()
    except Exception:
        logger.exception("Error checking active game")
        return False
    return snapshot is not None and not snapshot.is_game_over


class _Timer(Protocol):
    def start(self) -> None:
        ...

    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], _Timer]


class AutoSaver:
    """Debounced saves: only the last trigger in a burst reaches the store.

    `trigger` snapshots the game on the caller's thread; the timer thread
    only ever sees that snapshot, never the live GameState. When the pending
    snapshot is of a finished game, the store is cleared instead of written.
    """

    def __init__(
        self,
        store: GameStore,
        delay: float = DEBOUNCE_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.store = store
        self.delay = delay
        self.timer_factory: TimerFactory = timer_factory or _daemon_timer
        self._lock = threading.Lock()
        self._timer: Optional[_Timer] = None
        self._pending: Optional[GameSnapshot] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self, state: "GameState") -> None:
        """Schedule a save of `state` as it is right now."""
        snapshot = state.serialize()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = snapshot
            self._generation += 1
            self._timer = self.timer_factory(self.delay, functools.partial(self._fire, self._generation))
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def flush(self) -> None:
        """Run the pending save now, if there is one."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._fire()

    def _fire(self, generation: Optional[int] = None) -> None:
        with self._lock:
            # A timer that was cancelled too late must not run a newer save early.
            if generation is not None and generation != self._generation:
                return
            snapshot = self._pending
            self._pending = None
            self._timer = None
        if snapshot is None:
            return
        try:
            if snapshot.is_game_over:
                self.store.clear()
                return
            self.store.save(snapshot)
        except Exception:
            logger.warning("Auto-save failed", exc_info=True)


def _daemon_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer
