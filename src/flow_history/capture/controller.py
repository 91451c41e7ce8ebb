"""Debounced capture and guarded restore on top of ``HistoryStore``."""

from __future__ import annotations

import time
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, Optional

from flow_history.config import HistoryConfig
from flow_history.document.sync import DocumentAccessor, DocumentMutator
from flow_history.events import (
    HISTORY_COMMIT,
    HISTORY_REDO,
    HISTORY_RESET,
    HISTORY_SETTLED,
    HISTORY_SKIP,
    HISTORY_UNDO,
    HistoryBus,
)
from flow_history.history import HistoryStore, Snapshot, now_ms
from flow_history.runtime import telemetry

from .significance import is_significant_change, snapshot_digest

DEBOUNCE_TIMER = "debounce"
SETTLE_TIMER = "settle"

LOGGER_NAME = "flow_history.capture"


class CaptureState(str, Enum):
    IDLE = "idle"
    PENDING_CAPTURE = "pending_capture"
    RESTORING = "restoring"


@dataclass
class PendingTimer:
    deadline: float
    delay_ms: int
    generation: int


class CaptureController:
    """Turns document mutation signals into history entries.

    Mutation signals arm a debounce timer; when it fires the live document is
    captured and committed if it differs meaningfully from the last commit.
    Undo/redo write a snapshot back into the document while in ``RESTORING``,
    a state that ignores mutation signals until a settle timer expires.

    Timers are deadlines checked against ``clock`` (seconds, monotonic). The
    host calls ``process_timers()`` from its event loop.
    """

    def __init__(
        self,
        accessor: DocumentAccessor,
        mutator: DocumentMutator,
        *,
        store: Optional[HistoryStore] = None,
        config: Optional[HistoryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        timestamp: Callable[[], int] = now_ms,
        bus: Optional[HistoryBus] = None,
        baseline: bool = True,
    ) -> None:
        self.accessor = accessor
        self.mutator = mutator
        self.config = config if config is not None else HistoryConfig()
        self.store = (
            store if store is not None else HistoryStore(self.config.max_history_size)
        )
        self.bus = bus if bus is not None else HistoryBus()
        self.logger = telemetry.get_logger(LOGGER_NAME)
        self._clock = clock
        self._timestamp = timestamp
        self._state = CaptureState.IDLE
        self._timers: Dict[str, PendingTimer] = {}
        self._timer_counter = 0
        self._last_committed: Optional[Snapshot] = None
        if baseline:
            self._commit_baseline()

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_restoring(self) -> bool:
        return self._state is CaptureState.RESTORING

    # public surface -----------------------------------------------------
    def save_snapshot(self) -> None:
        """Arm (or re-arm) the debounce timer after a document mutation."""

        if self.is_restoring:
            return
        self._arm(DEBOUNCE_TIMER, self.config.debounce_ms)
        self._state = CaptureState.PENDING_CAPTURE

    notify_changed = save_snapshot

    def undo(self) -> bool:
        snapshot = self.store.undo()
        if snapshot is None:
            telemetry.record_event(
                "history.undo.noop", level="debug", logger_name=LOGGER_NAME
            )
            return False
        self.restore_snapshot(snapshot)
        self._announce(HISTORY_UNDO)
        return True

    def redo(self) -> bool:
        snapshot = self.store.redo()
        if snapshot is None:
            telemetry.record_event(
                "history.redo.noop", level="debug", logger_name=LOGGER_NAME
            )
            return False
        self.restore_snapshot(snapshot)
        self._announce(HISTORY_REDO)
        return True

    def can_undo(self) -> bool:
        return self.store.can_undo()

    def can_redo(self) -> bool:
        return self.store.can_redo()

    def get_current_snapshot(self) -> Optional[Snapshot]:
        return self.store.get_current_snapshot()

    def restore_snapshot(self, snapshot: Optional[Snapshot]) -> bool:
        """Write ``snapshot`` into the live document without re-capturing it."""

        if snapshot is None:
            return False
        # The pending capture would only see the restored document.
        self._cancel(DEBOUNCE_TIMER)
        self._state = CaptureState.RESTORING
        try:
            with telemetry.span(
                "capture::restore",
                logger_name=LOGGER_NAME,
                component="capture",
                metadata={"cursor": self.store.cursor, "nodes": len(snapshot.nodes)},
            ):
                with self._write_batch():
                    self.mutator.set_nodes(list(snapshot.nodes))
                    self.mutator.set_edges(list(snapshot.edges))
                    self.mutator.set_viewport(snapshot.viewport)
            self._last_committed = snapshot
        finally:
            self._arm(SETTLE_TIMER, self.config.settle_ms)
        return True

    def reset(self, *, baseline: bool = True) -> None:
        """Clear history explicitly (new document) and re-baseline."""

        self._timers.clear()
        self.store.clear_history()
        self._last_committed = None
        self._state = CaptureState.IDLE
        if baseline:
            self._commit_baseline()
        self._announce(HISTORY_RESET)

    def dispose(self) -> None:
        """Drop any armed timers; pending captures are discarded."""

        self._timers.clear()
        self._state = CaptureState.IDLE

    def attach(self, source: Any) -> Callable[[], None]:
        """Subscribe to a document's change notifications."""

        return source.subscribe(self.notify_changed)

    # timers -------------------------------------------------------------
    def next_deadline(self) -> Optional[float]:
        if not self._timers:
            return None
        return min(timer.deadline for timer in self._timers.values())

    def process_timers(self, now: Optional[float] = None) -> Dict[str, bool]:
        """Fire every timer whose deadline has passed.

        Returns ``{timer_name: effect}`` where the debounce effect is whether a
        snapshot was committed.
        """

        current = self._clock() if now is None else now
        expired = sorted(
            (
                (timer.deadline, name, timer.generation)
                for name, timer in self._timers.items()
                if timer.deadline <= current
            ),
        )
        return {name: self._fire(name, generation) for _, name, generation in expired}

    def flush(self) -> Dict[str, bool]:
        """Fire all armed timers now, regardless of their deadlines."""

        pending = sorted(
            (timer.deadline, name, timer.generation)
            for name, timer in self._timers.items()
        )
        return {name: self._fire(name, generation) for _, name, generation in pending}

    def _arm(self, name: str, delay_ms: int) -> None:
        self._timer_counter += 1
        self._timers[name] = PendingTimer(
            deadline=self._clock() + (delay_ms / 1000.0),
            delay_ms=delay_ms,
            generation=self._timer_counter,
        )

    def _cancel(self, name: str) -> None:
        self._timers.pop(name, None)

    def _fire(self, name: str, generation: int) -> bool:
        timer = self._timers.get(name)
        if timer is None or timer.generation != generation:
            return False
        del self._timers[name]
        if name == DEBOUNCE_TIMER:
            self._state = CaptureState.IDLE
            return self._capture()
        self._state = CaptureState.IDLE
        self._announce(HISTORY_SETTLED)
        return True

    # capture ------------------------------------------------------------
    def _capture(self) -> bool:
        snapshot = self._build_snapshot()
        if not is_significant_change(
            self._last_committed,
            snapshot,
            skip_viewport_only=self.config.skip_viewport_only,
        ):
            telemetry.record_event(
                "history.skip",
                level="debug",
                data={"digest": snapshot_digest(snapshot)},
                logger_name=LOGGER_NAME,
            )
            self.bus.emit(HISTORY_SKIP, {"timestamp": snapshot.timestamp})
            return False
        self._commit(snapshot)
        self._announce(HISTORY_COMMIT)
        return True

    def _commit_baseline(self) -> None:
        self._commit(self._build_snapshot())

    def _commit(self, snapshot: Snapshot) -> None:
        self.store.add_to_history(snapshot)
        self._last_committed = snapshot
        telemetry.record_event(
            "history.commit",
            level="debug",
            data={
                "cursor": self.store.cursor,
                "size": len(self.store),
                "digest": snapshot_digest(snapshot),
            },
            logger_name=LOGGER_NAME,
        )

    def _build_snapshot(self) -> Snapshot:
        return Snapshot.capture(
            self.accessor.get_nodes(),
            self.accessor.get_edges(),
            self.accessor.get_viewport(),
            timestamp=self._timestamp(),
        )

    def _write_batch(self) -> ContextManager[object]:
        transaction = getattr(self.mutator, "transaction", None)
        if callable(transaction):
            return transaction()
        return nullcontext()

    def _announce(self, event: str) -> None:
        payload = {
            "cursor": self.store.cursor,
            "size": len(self.store),
            "can_undo": self.store.can_undo(),
            "can_redo": self.store.can_redo(),
        }
        if event in (HISTORY_UNDO, HISTORY_REDO, HISTORY_RESET):
            telemetry.record_event(event, data=payload, logger_name=LOGGER_NAME)
        self.bus.emit(event, payload)


__all__ = [
    "CaptureController",
    "CaptureState",
    "DEBOUNCE_TIMER",
    "PendingTimer",
    "SETTLE_TIMER",
]
