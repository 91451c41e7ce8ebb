"""Minimal event bus the controller uses to announce history changes."""

from __future__ import annotations

from typing import Callable, Dict

HISTORY_COMMIT = "history.commit"
HISTORY_SKIP = "history.skip"
HISTORY_UNDO = "history.undo"
HISTORY_REDO = "history.redo"
HISTORY_SETTLED = "history.restore.settled"
HISTORY_RESET = "history.reset"

HISTORY_EVENTS = (
    HISTORY_COMMIT,
    HISTORY_SKIP,
    HISTORY_UNDO,
    HISTORY_REDO,
    HISTORY_SETTLED,
    HISTORY_RESET,
)


class HistoryBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


__all__ = [
    "HISTORY_COMMIT",
    "HISTORY_EVENTS",
    "HISTORY_REDO",
    "HISTORY_RESET",
    "HISTORY_SETTLED",
    "HISTORY_SKIP",
    "HISTORY_UNDO",
    "HistoryBus",
]
