"""Protocols describing how the engine reads and writes the live document."""

from __future__ import annotations

from typing import Protocol, Sequence

from flow_history.history.snapshot import Edge, Node, Viewport


class DocumentAccessor(Protocol):
    """Synchronous, cheap reads used when a capture fires."""

    def get_nodes(self) -> Sequence[Node]:
        ...

    def get_edges(self) -> Sequence[Edge]:
        ...

    def get_viewport(self) -> Viewport:
        ...


class DocumentMutator(Protocol):
    """Writes applied together when a snapshot is restored.

    Hosts that can batch change notifications should also expose a
    ``transaction()`` context manager; the controller wraps restores in it.
    """

    def set_nodes(self, nodes: Sequence[Node]) -> None:
        ...

    def set_edges(self, edges: Sequence[Edge]) -> None:
        ...

    def set_viewport(self, viewport: Viewport) -> None:
        ...
