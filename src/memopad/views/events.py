"""Window-level event registry for views."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

Listener = Callable[[Any], None]

OVERLAY = "overlay"
PANEL = "panel"


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ClickEvent:
    """A click; target is the innermost region hit (e.g. OVERLAY or PANEL)."""

    target: str


class EventTarget:
    """Listener registry, like a browser window."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def add_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(event_type, None)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(v) for v in self._listeners.values())

    def dispatch(self, event_type: str, event: Any) -> None:
        # Copy: listeners may detach themselves while handling.
        for listener in list(self._listeners.get(event_type, [])):
            listener(event)

    def press(self, key: str) -> None:
        self.dispatch("keydown", KeyEvent(key))

    def click(self, target: str) -> None:
        self.dispatch("click", ClickEvent(target))
