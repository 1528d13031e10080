"""
The set of items currently shown by the calendar widget.

Keyed by item id (stored event ids and generated "{id}_{n}" instance ids
share one namespace). The widget renders from this set and re-renders when
the change callback fires.
"""

from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional

from .event_wrapper import CalEvent


class DisplayedEvents:
    """Ordered, id-keyed collection of displayed CalEvents."""

    def __init__(self):
        self._items: dict[str, CalEvent] = {}
        self._on_change_callback: Optional[Callable[[], None]] = None

    def set_on_change_callback(self, callback: Callable[[], None]) -> None:
        self._on_change_callback = callback

    def _notify_change(self) -> None:
        if self._on_change_callback:
            self._on_change_callback()

    def __iter__(self) -> Iterator[CalEvent]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def ids(self) -> list[str]:
        return list(self._items.keys())

    def get_by_id(self, item_id: str) -> Optional[CalEvent]:
        return self._items.get(item_id)

    def add(self, event: CalEvent) -> None:
        """Add an item; an item with the same id is replaced."""
        self._items[event.id] = event
        self._notify_change()

    def add_all(self, events: Iterable[CalEvent]) -> None:
        for event in events:
            self._items[event.id] = event
        self._notify_change()

    def remove(self, item_id: str) -> bool:
        """Remove one item. Returns False if it was not displayed."""
        if item_id not in self._items:
            return False
        del self._items[item_id]
        self._notify_change()
        return True

    def remove_event(self, event_id: str) -> int:
        """
        Remove a stored event and every instance generated from it.

        Returns the number of items removed (0 if none were displayed).
        """
        doomed = [
            item_id for item_id, item in self._items.items()
            if item_id == event_id or (item.is_instance and item.original_id == event_id)
        ]
        for item_id in doomed:
            del self._items[item_id]
        if doomed:
            self._notify_change()
        return len(doomed)

    def remove_all(self) -> None:
        self._items = {}
        self._notify_change()

    def replace_all(self, events: Iterable[CalEvent]) -> None:
        """Swap the whole set in one step (single change notification)."""
        self._items = {event.id: event for event in events}
        self._notify_change()

    def move(self, item_id: str, start: datetime, end: datetime) -> Callable[[], None]:
        """
        Reposition a displayed item, as the widget does while dragging.

        Returns a callable restoring the previous position.

        Raises:
            KeyError: if the item is not displayed
        """
        previous = self._items[item_id]
        self._items[item_id] = previous.moved(start, end)
        self._notify_change()

        def _revert():
            if item_id in self._items:
                self._items[item_id] = previous
                self._notify_change()

        return _revert
