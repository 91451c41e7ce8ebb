"""Host-facing adapters for the history engine."""

from .controls import (
    REDO,
    UNDO,
    ControlHooks,
    UndoRedoAdapter,
    resolve_shortcut,
    shortcut_hint,
)

__all__ = [
    "ControlHooks",
    "REDO",
    "UNDO",
    "UndoRedoAdapter",
    "resolve_shortcut",
    "shortcut_hint",
]
