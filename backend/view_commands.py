"""
View commands sent by the remote authority.

The authority drives navigation by writing a one-shot command
("month", "week", "day", "list", "today", "prev", "next") into a
CommandSlot. ViewCommandChannel executes it, reports the new title back
and clears the slot, so a re-delivered or re-rendered slot never fires the
same command twice.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional
import sys

from .view_state import ViewState, ViewType


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] COMMAND: {msg}", file=sys.stderr)


EMPTY_COMMANDS = (None, "", "null")


class CommandSlot:
    """
    Externally writable command attribute.

    Listeners are called on every set() with the new value. clear() resets
    to the empty sentinel and only notifies if the slot was not empty.
    """

    def __init__(self):
        self._value: Optional[str] = ""
        self._listeners: list[Callable[[Optional[str]], None]] = []

    @property
    def value(self) -> Optional[str]:
        return self._value

    def add_listener(self, listener: Callable[[Optional[str]], None]) -> None:
        self._listeners.append(listener)

    def set(self, value: Optional[str]) -> None:
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        if self._value == "":
            return
        self.set("")


class ViewCommandChannel:
    """Executes view commands against a navigator and reports the title."""

    def __init__(
        self,
        navigator: ViewState,
        push: Callable[[str, dict], None],
        enabled_views: Iterable[str] = ("month", "list"),
        slot: Optional[CommandSlot] = None,
    ):
        self._navigator = navigator
        self._push = push
        self._enabled_views = set(enabled_views)
        self.slot = slot or CommandSlot()
        self.slot.add_listener(self.apply)

    def _action_for(self, command: str) -> Optional[Callable[[], None]]:
        if command in ("today", "prev", "next"):
            return getattr(self._navigator, command)
        if command in self._enabled_views:
            view = ViewType(command)
            return lambda: self._navigator.change_view(view)
        return None

    def apply(self, command: Optional[str]) -> bool:
        """
        Execute a command. Returns True if it was recognized and executed.

        The slot is cleared afterwards whether or not the command was known.
        """
        try:
            if command in EMPTY_COMMANDS:
                return False
            action = self._action_for(str(command).strip().lower())
            if action is None:
                _debug_print(f"Ignoring unknown view command {command!r}")
                return False
            action()
            self._push("calendar_navigated", {"title": self._navigator.title})
            return True
        finally:
            self.slot.clear()
