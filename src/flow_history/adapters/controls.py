"""Host adapter that wires undo/redo controls and shortcuts to the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from flow_history.events import HISTORY_EVENTS, HISTORY_REDO, HISTORY_UNDO, HistoryBus

CONTROL_MODIFIERS = frozenset({"CTRL", "CONTROL", "META", "CMD", "COMMAND", "SUPER"})

UNDO = "undo"
REDO = "redo"


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


class HistoryTarget(Protocol):
    bus: HistoryBus

    def undo(self) -> bool:
        ...

    def redo(self) -> bool:
        ...

    def can_undo(self) -> bool:
        ...

    def can_redo(self) -> bool:
        ...


@dataclass(slots=True)
class ControlHooks:
    """Callbacks the adapter uses to refresh host widgets."""

    update_controls: Callable[[bool, bool], None]
    update_status: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


class UndoRedoAdapter:
    """Bridges key presses and history events to host undo/redo controls.

    Accepts anything exposing ``undo``/``redo``/``can_undo``/``can_redo`` and
    a ``bus``: an ``EditorSession`` or a bare ``CaptureController``.
    """

    def __init__(self, target: HistoryTarget, hooks: ControlHooks) -> None:
        self.target = target
        self.hooks = hooks
        self._subscriptions: list[tuple[str, Callable[[object], None]]] = []
        self._subscribe_events()
        self.refresh()

    def handle_shortcut(
        self,
        key: str,
        modifiers: Iterable[str] = (),
        *,
        in_text_input: bool = False,
    ) -> bool:
        """Run the history action bound to ``key``.

        Returns True when the key was an undo/redo shortcut that changed the
        document. Shortcuts are ignored while a text input has focus so the
        field keeps its own undo.
        """

        action = resolve_shortcut(key, modifiers)
        if action is None:
            return False
        if in_text_input:
            self.hooks.log(f"shortcut ignored action={action!r} reason='text input'")
            return False
        return self.trigger(action)

    def trigger(self, action: str) -> bool:
        if action == UNDO:
            changed = self.target.undo()
        elif action == REDO:
            changed = self.target.redo()
        else:
            raise ValueError(f"Unknown history action '{action}'.")
        self.hooks.log(f"{action} -> changed={changed!r}")
        if not changed:
            self.hooks.update_status(f"nothing to {action}")
        self.refresh()
        return changed

    def refresh(self) -> None:
        self.hooks.update_controls(self.target.can_undo(), self.target.can_redo())

    def close(self) -> None:
        for event, callback in self._subscriptions:
            self.target.bus.unsubscribe(event, callback)
        self._subscriptions.clear()

    def _subscribe_events(self) -> None:
        for event in HISTORY_EVENTS:
            callback = lambda payload, name=event: self._handle_event(name, payload)
            self.target.bus.subscribe(event, callback)
            self._subscriptions.append((event, callback))

    def _handle_event(self, name: str, payload: object | None) -> None:
        self.hooks.log(f"event -> {name} {payload!r}")
        if name in (HISTORY_UNDO, HISTORY_REDO):
            self.hooks.update_status(name.split(".")[-1])
        self.refresh()


def resolve_shortcut(key: str, modifiers: Iterable[str] = ()) -> Optional[str]:
    """Map a key press to ``"undo"``, ``"redo"`` or None.

    ``key`` may carry its modifiers inline (``"ctrl+shift+z"``), the way
    terminal toolkits report them.
    """

    base, mods = _normalize(key, modifiers)
    if not mods & CONTROL_MODIFIERS:
        return None
    if base == "z":
        return REDO if "SHIFT" in mods else UNDO
    if base == "y":
        return REDO
    return None


def _normalize(key: str, modifiers: Iterable[str]) -> Tuple[str, frozenset[str]]:
    parts = [part for part in key.split("+") if part]
    base = parts[-1] if parts else key
    mods = {str(mod).upper() for mod in (*modifiers, *parts[:-1])}
    # Shifted letters arrive upper-cased from some hosts.
    if len(base) == 1 and base.isupper():
        mods.add("SHIFT")
    return base.lower(), frozenset(mods)


_SHORTCUT_LABELS: Dict[str, str] = {
    UNDO: "{mod}+Z",
    REDO: "{mod}+Shift+Z or {mod}+Y",
}


def shortcut_hint(action: str, platform: str = "") -> str:
    """Tooltip label for ``action``; macOS hosts get the command glyph."""

    template = _SHORTCUT_LABELS.get(action)
    if template is None:
        raise ValueError(f"Unknown history action '{action}'.")
    mod = "⌘" if platform.lower().startswith(("mac", "darwin")) else "Ctrl"
    return template.format(mod=mod)


__all__ = [
    "ControlHooks",
    "HistoryTarget",
    "REDO",
    "UNDO",
    "UndoRedoAdapter",
    "resolve_shortcut",
    "shortcut_hint",
]
