"""
Post-commit notification fan-out.

Haptics, audio and analytics live outside the engine. The engine hands each
committed change to a NotificationDispatcher, which forwards it to every
registered sink. Sink failures are logged and never reach the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class GameEvent(str, Enum):
    """Events emitted after a state change commits."""
    PIECE_PLACED = "piece_placed"
    LINES_CLEARED = "lines_cleared"
    GAME_OVER = "game_over"
    EXTRA_TRY_USED = "extra_try_used"
    GAME_RESTARTED = "game_restarted"
    POWER_UP_APPLIED = "power_up_applied"


class NotificationSink(Protocol):
    def notify(self, event: GameEvent, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationSink:
    """Sink that writes every event to the log."""

    def __init__(self, level: int = logging.DEBUG) -> None:
        self.level = level

    def notify(self, event: GameEvent, payload: Dict[str, Any]) -> None:
        logger.log(self.level, "event=%s payload=%s", event.value, payload)


class NotificationDispatcher:
    def __init__(
        self,
        sinks: Optional[List[NotificationSink]] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.sinks: List[NotificationSink] = list(sinks or [])
        self.executor = executor

    @classmethod
    def background(cls, sinks: Optional[List[NotificationSink]] = None) -> "NotificationDispatcher":
        """Dispatcher that delivers on a single worker thread, off the caller's path."""
        return cls(sinks, ThreadPoolExecutor(max_workers=1, thread_name_prefix="blocktopia-notify"))

    def add_sink(self, sink: NotificationSink) -> None:
        self.sinks.append(sink)

    def notify(self, event: GameEvent, payload: Optional[Dict[str, Any]] = None) -> None:
        payload = dict(payload or {})
        for sink in list(self.sinks):
            if self.executor is None:
                self._deliver(sink, event, payload)
                continue
            try:
                self.executor.submit(self._deliver, sink, event, payload)
            except RuntimeError:
                logger.warning("Notification executor unavailable, dropping %s", event.value)

    @staticmethod
    def _deliver(sink: NotificationSink, event: GameEvent, payload: Dict[str, Any]) -> None:
        try:
            sink.notify(event, dict(payload))
        except Exception:
            logger.exception("Notification sink %r failed on %s", sink, event.value)

    def shutdown(self, wait: bool = True) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
