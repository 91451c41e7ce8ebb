"""One editor session: live document, history, and the capture driver."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from flow_history.capture import CaptureController
from flow_history.config import HistoryConfig
from flow_history.document import FlowDocument
from flow_history.events import HistoryBus
from flow_history.history import HistoryStore, Snapshot, Viewport, now_ms
from flow_history.runtime import telemetry


class EditorSession:
    """Owns the pieces of the history engine for a single editor.

    The session is created once per editor and handed to whatever needs
    undo/redo; nothing here is module-global.
    """

    def __init__(
        self,
        document: Optional[FlowDocument] = None,
        *,
        config: Optional[HistoryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        timestamp: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config or HistoryConfig()
        self.document = document or FlowDocument()
        self.store = HistoryStore(self.config.max_history_size)
        self.bus = HistoryBus()
        self.controller = CaptureController(
            self.document,
            self.document,
            store=self.store,
            config=self.config,
            clock=clock,
            timestamp=timestamp,
            bus=self.bus,
        )
        self._detach: Optional[Callable[[], None]] = self.controller.attach(
            self.document
        )
        telemetry.record_event(
            "session.open",
            level="debug",
            data={
                "nodes": len(self.document.get_nodes()),
                "edges": len(self.document.get_edges()),
            },
        )

    @classmethod
    def from_elements(
        cls,
        nodes: Iterable[Mapping[str, Any]] = (),
        edges: Iterable[Mapping[str, Any]] = (),
        viewport: Viewport | Mapping[str, float] | None = None,
        *,
        config: Optional[HistoryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        timestamp: Callable[[], int] = now_ms,
    ) -> "EditorSession":
        document = FlowDocument(nodes, edges, viewport)
        return cls(document, config=config, clock=clock, timestamp=timestamp)

    def undo(self) -> bool:
        return self.controller.undo()

    def redo(self) -> bool:
        return self.controller.redo()

    def can_undo(self) -> bool:
        return self.controller.can_undo()

    def can_redo(self) -> bool:
        return self.controller.can_redo()

    def get_current_snapshot(self) -> Optional[Snapshot]:
        return self.controller.get_current_snapshot()

    def process_timers(self, now: Optional[float] = None) -> Dict[str, bool]:
        return self.controller.process_timers(now)

    def flush(self) -> Dict[str, bool]:
        return self.controller.flush()

    def new_document(self) -> None:
        """Empty the document and start a fresh history from it."""

        self.controller.dispose()
        self.document.clear()
        self.controller.reset()

    def close(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
        self.controller.dispose()
        telemetry.record_event("session.close", level="debug")


__all__ = ["EditorSession"]
