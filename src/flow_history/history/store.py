"""Bounded, cursor-addressed snapshot history."""

from __future__ import annotations

from typing import List, Optional, Tuple

from flow_history.config import DEFAULT_MAX_HISTORY_SIZE, HistoryConfigError

from .snapshot import Snapshot


class HistoryStore:
    """Linear undo/redo history over document snapshots.

    ``cursor`` points at the snapshot the document currently shows (``-1``
    when empty). Appending after one or more undos discards the redo tail;
    appending past ``max_size`` drops the oldest entries.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise HistoryConfigError("max_size must be >= 1", field="max_size")
        self._max_size = max_size
        self._entries: List[Snapshot] = []
        self._cursor: int = -1

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> Tuple[Snapshot, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add_to_history(self, snapshot: Snapshot) -> None:
        entries = self._entries[: self._cursor + 1]
        entries.append(snapshot)
        if len(entries) > self._max_size:
            entries = entries[len(entries) - self._max_size :]
        self._entries = entries
        self._cursor = len(entries) - 1

    def undo(self) -> Optional[Snapshot]:
        if self._cursor <= 0:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[Snapshot]:
        if self._cursor >= len(self._entries) - 1:
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def get_current_snapshot(self) -> Optional[Snapshot]:
        if 0 <= self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    def clear_history(self) -> None:
        self._entries = []
        self._cursor = -1
