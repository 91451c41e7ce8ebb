"""Snapshot undo/redo engine for node-graph editors."""

__all__ = [
    "adapters",
    "capture",
    "config",
    "document",
    "events",
    "history",
    "runtime",
    "session",
]

__version__ = "0.1.0"
