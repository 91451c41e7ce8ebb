"""In-memory node-graph document with change notifications."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Tuple

from flow_history.history.snapshot import Viewport

ChangeListener = Callable[[], None]


class FlowDocument:
    """Live graph state: nodes, edges, and viewport.

    Nodes and edges are plain mappings carrying an ``"id"`` key; edges also
    carry ``"source"`` and ``"target"``. Every mutation notifies subscribers
    synchronously, except inside ``transaction()`` where a single
    notification is emitted on exit.
    """

    def __init__(
        self,
        nodes: Iterable[Mapping[str, Any]] = (),
        edges: Iterable[Mapping[str, Any]] = (),
        viewport: Viewport | Mapping[str, float] | None = None,
    ) -> None:
        self._nodes: List[Mapping[str, Any]] = list(nodes)
        self._edges: List[Mapping[str, Any]] = list(edges)
        self._viewport = Viewport.coerce(viewport)
        self._listeners: List[ChangeListener] = []
        self._batch_depth = 0
        self._batch_dirty = False
        self.version = 0

    # accessor -----------------------------------------------------------
    def get_nodes(self) -> Tuple[Mapping[str, Any], ...]:
        return tuple(self._nodes)

    def get_edges(self) -> Tuple[Mapping[str, Any], ...]:
        return tuple(self._edges)

    def get_viewport(self) -> Viewport:
        return self._viewport

    # mutator ------------------------------------------------------------
    def set_nodes(self, nodes: Iterable[Mapping[str, Any]]) -> None:
        self._nodes = list(nodes)
        self._changed()

    def set_edges(self, edges: Iterable[Mapping[str, Any]]) -> None:
        self._edges = list(edges)
        self._changed()

    def set_viewport(self, viewport: Viewport | Mapping[str, float]) -> None:
        self._viewport = Viewport.coerce(viewport)
        self._changed()

    # editing helpers ----------------------------------------------------
    def add_node(self, node: Mapping[str, Any]) -> None:
        self._nodes = [*self._nodes, node]
        self._changed()

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge attached to it."""

        nodes = [node for node in self._nodes if node.get("id") != node_id]
        if len(nodes) == len(self._nodes):
            return
        self._nodes = nodes
        self._edges = [
            edge
            for edge in self._edges
            if edge.get("source") != node_id and edge.get("target") != node_id
        ]
        self._changed()

    def update_node(self, node_id: str, **updates: Any) -> None:
        found = False
        nodes: List[Mapping[str, Any]] = []
        for node in self._nodes:
            if node.get("id") == node_id:
                node = {**node, **updates}
                found = True
            nodes.append(node)
        if not found:
            return
        self._nodes = nodes
        self._changed()

    def add_edge(self, edge: Mapping[str, Any]) -> None:
        self._edges = [*self._edges, edge]
        self._changed()

    def remove_edge(self, edge_id: str) -> None:
        edges = [edge for edge in self._edges if edge.get("id") != edge_id]
        if len(edges) == len(self._edges):
            return
        self._edges = edges
        self._changed()

    def clear(self) -> None:
        with self.transaction():
            self.set_nodes(())
            self.set_edges(())
            self.set_viewport(Viewport())

    # notifications ------------------------------------------------------
    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def transaction(self) -> Iterator["FlowDocument"]:
        """Apply several writes and notify listeners once, on exit."""

        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._batch_dirty:
                self._batch_dirty = False
                self._emit()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "nodes": list(self._nodes),
            "edges": list(self._edges),
            "viewport": self._viewport.as_dict(),
        }

    def _changed(self) -> None:
        self.version += 1
        if self._batch_depth:
            self._batch_dirty = True
            return
        self._emit()

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener()
