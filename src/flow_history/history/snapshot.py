"""Immutable document snapshots stored in the undo history."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

Node = Any  # opaque caller payload, compared structurally
Edge = Any


@dataclass(frozen=True, slots=True)
class Viewport:
    """Pan/zoom state of the graph canvas."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "Viewport":
        return cls(
            x=data.get("x", 0.0),
            y=data.get("y", 0.0),
            zoom=data.get("zoom", 1.0),
        )

    @classmethod
    def coerce(cls, value: "Viewport | Mapping[str, float] | None") -> "Viewport":
        if value is None:
            return cls()
        if isinstance(value, Viewport):
            return value
        return cls.from_mapping(value)

    def as_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Full copy of the document (nodes, edges, viewport) at one instant.

    Snapshots are values: once committed to history they are replaced, never
    mutated. The engine does not clone node or edge payloads, so callers must
    not mutate them in place either.
    """

    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]
    viewport: Viewport
    timestamp: int

    @classmethod
    def capture(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        viewport: Viewport | Mapping[str, float] | None = None,
        *,
        timestamp: Optional[int] = None,
    ) -> "Snapshot":
        return cls(
            nodes=tuple(nodes),
            edges=tuple(edges),
            viewport=Viewport.coerce(viewport),
            timestamp=now_ms() if timestamp is None else int(timestamp),
        )

    def same_content(self, other: "Snapshot") -> bool:
        """True when nodes and edges are structurally equal."""

        return self.nodes == other.nodes and self.edges == other.edges

    def same_viewport(self, other: "Snapshot") -> bool:
        return self.viewport == other.viewport


def now_ms() -> int:
    return int(time.time() * 1000)


__all__ = ["Edge", "Node", "Snapshot", "Viewport", "now_ms"]
