"""Light/dark theme preference.

One ThemePreference exists per session (owned by memopad.core.Memopad). It keeps
three surfaces in step: the in-memory value, the persisted preference store and
the "dark" marker on the root presentation context.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]
THEMES: tuple[Theme, ...] = ("light", "dark")

THEME_STORAGE_KEY = "memo-app-theme"
DARK_MARKER = "dark"


class PreferenceStore:
    """Persistent key-value store backed by a JSON file.

    Write failures (OSError) are not caught.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt preference file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class PresentationContext:
    """Class list on the document root."""

    def __init__(self) -> None:
        self._classes: set[str] = set()

    def add(self, marker: str) -> None:
        self._classes.add(marker)

    def remove(self, marker: str) -> None:
        self._classes.discard(marker)

    def __contains__(self, marker: str) -> bool:
        return marker in self._classes

    @property
    def classes(self) -> list[str]:
        return sorted(self._classes)


@dataclass
class Environment:
    """Where the preference is being resolved.

    browser_capable is False for server-side rendering, where initialize() does nothing.
    """

    browser_capable: bool = True
    prefers_dark: Callable[[], bool] = lambda: False


def _coerce(value: str | None) -> Theme | None:
    return cast(Theme, value) if value in THEMES else None


class ThemePreference:
    """Session-wide light/dark choice."""

    def __init__(
        self,
        storage: PreferenceStore,
        root: PresentationContext,
        environment: Environment | None = None,
    ) -> None:
        self._storage = storage
        self._root = root
        self._environment = environment or Environment()
        self.theme: Theme = "light"
        self.mounted = False

    @property
    def is_dark(self) -> bool:
        return self.theme == "dark"

    @property
    def root(self) -> PresentationContext:
        return self._root

    def initialize(self) -> None:
        """Resolve the initial theme: stored value, else the system preference."""
        if self.mounted or not self._environment.browser_capable:
            return

        stored = self._storage.get(THEME_STORAGE_KEY)
        initial = _coerce(stored)
        if stored is not None and initial is None:
            logger.warning("Ignoring unknown stored theme %r", stored)
        if initial is None:
            initial = "dark" if self._environment.prefers_dark() else "light"

        self._commit(initial)
        self.mounted = True
        logger.debug("Theme initialized: %s", initial)

    def toggle(self) -> Theme:
        new_theme: Theme = "dark" if self.theme == "light" else "light"
        self._commit(new_theme)
        return new_theme

    def set(self, new_theme: str) -> Theme:
        theme = _coerce(new_theme)
        if theme is None:
            raise ValueError(f"Unknown theme: {new_theme!r} (expected one of {THEMES})")
        self._commit(theme)
        return theme

    def _commit(self, theme: Theme) -> None:
        self.theme = theme
        self._storage.set(THEME_STORAGE_KEY, theme)
        self._apply(theme)

    def _apply(self, theme: Theme) -> None:
        if theme == "dark":
            self._root.add(DARK_MARKER)
        else:
            self._root.remove(DARK_MARKER)
