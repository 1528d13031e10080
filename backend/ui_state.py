"""
Persistent UI state: theme and last view, kept in a small JSON file.
"""

import json
from pathlib import Path
from typing import Optional
import sys


THEMES = ("light", "dark")


class UIState:
    """Theme store plus remembered view, saved to the state file."""

    def __init__(self, state_file: Path):
        self._state_file = Path(state_file)
        self._theme = "light"
        self._view: Optional[str] = None
        self._load()

    def _load(self) -> None:
        if not self._state_file.exists():
            return
        try:
            with open(self._state_file, 'r') as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            print(f"Error loading UI state: {e}", file=sys.stderr)
            return
        if not isinstance(state, dict):
            return
        if state.get('theme') in THEMES:
            self._theme = state['theme']
        if isinstance(state.get('view'), str):
            self._view = state['view']

    def _save(self) -> None:
        try:
            self._state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._state_file, 'w') as f:
                json.dump({'theme': self._theme, 'view': self._view}, f, indent=2)
        except OSError as e:
            print(f"Error saving UI state: {e}", file=sys.stderr)

    @property
    def theme(self) -> str:
        return self._theme

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r} (expected one of {THEMES})")
        self._theme = theme
        self._save()

    def toggle_theme(self) -> str:
        self.set_theme("dark" if self._theme == "light" else "light")
        return self._theme

    @property
    def view(self) -> Optional[str]:
        return self._view

    def set_view(self, view: str) -> None:
        self._view = view
        self._save()
