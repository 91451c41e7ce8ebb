"""Snapshot values and the bounded history store."""

from .snapshot import Edge, Node, Snapshot, Viewport, now_ms
from .store import HistoryStore

__all__ = [
    "Edge",
    "HistoryStore",
    "Node",
    "Snapshot",
    "Viewport",
    "now_ms",
]
