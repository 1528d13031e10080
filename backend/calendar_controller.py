"""
Calendar Sync Controller.

Keeps the displayed set in step with the remote authority:
- range fetches when the visible window or the filter changes, replacing
  the whole displayed set when the reply arrives;
- incremental created/updated/deleted pushes applied without refetching;
- user interactions (date click, range select, drag, resize) forwarded to
  the authority only when the admin gate allows it.

Fetch replies are stamped with a generation. A reply from an older
generation (the user navigated or the filter changed meanwhile) is
discarded instead of overwriting newer state.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional, Union
import sys

from PySide6.QtCore import QObject

from .displayed_events import DisplayedEvents
from .downloads import DownloadTrigger
from .event_wrapper import CalEvent, EventTransformError, transform_event, transform_events
from .network_worker import NetworkWorker, get_network_worker
from .occurrences import ViewWindow, expand_event, expand_events
from .permissions import Denied, MutationKind, check_mutation
from .remote import FetchError, RemoteAuthority
from .timezone_utils import format_instant


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] SYNC: {msg}", file=sys.stderr)


@dataclass(frozen=True)
class _FetchRequest:
    generation: int
    window: ViewWindow
    filter_value: Any


class CalendarSyncController(QObject):
    """
    Owns the mapping between the remote authority and the displayed set.

    All handlers run on the Qt main thread; blocking calls go through the
    NetworkWorker.
    """

    def __init__(
        self,
        authority: RemoteAuthority,
        displayed: DisplayedEvents,
        is_admin: bool = False,
        worker: Optional[NetworkWorker] = None,
        download_trigger: Optional[DownloadTrigger] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._authority = authority
        self._displayed = displayed
        self._is_admin = bool(is_admin)
        self._worker = worker or get_network_worker()
        self._download_trigger = download_trigger

        self._filter: Any = None
        self._window: Optional[ViewWindow] = None
        self._generation = 0
        self._fetches: dict[str, _FetchRequest] = {}
        self.last_error: Optional[FetchError] = None

        self._on_error_callback: Optional[Callable[[FetchError], None]] = None
        self._on_loaded_callback: Optional[Callable[[int], None]] = None

        authority.events_loaded.connect(self.on_events_loaded)
        authority.event_created.connect(self.on_event_created)
        authority.event_updated.connect(self.on_event_updated)
        authority.event_deleted.connect(self.on_event_deleted)
        authority.filter_changed.connect(self.on_filter_changed)
        authority.download_requested.connect(self.on_download_requested)

        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_failed.connect(self._on_operation_failed)

    def set_on_error_callback(self, callback: Callable[[FetchError], None]) -> None:
        self._on_error_callback = callback

    def set_on_loaded_callback(self, callback: Callable[[int], None]) -> None:
        self._on_loaded_callback = callback

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def window(self) -> Optional[ViewWindow]:
        return self._window

    @property
    def filter_value(self) -> Any:
        return self._filter

    @property
    def displayed(self) -> DisplayedEvents:
        return self._displayed

    # ==================== Fetch ====================

    def set_window(self, window: ViewWindow) -> Optional[str]:
        """The visible window changed: remember it and fetch its events."""
        self._window = window
        return self.refetch()

    def refetch(self) -> Optional[str]:
        """
        Fetch the current window with the current filter.

        Returns the operation id, or None if no window is known yet.
        """
        if self._window is None:
            return None
        self._generation += 1
        request = _FetchRequest(self._generation, self._window, self._filter)
        operation_id = self._worker.next_operation_id("fetch")
        # Registered before submit: a synchronous worker replies immediately
        self._fetches[operation_id] = request
        _debug_print(f"Fetching {request.window.start} .. {request.window.end} "
                     f"(generation {request.generation}, filter={request.filter_value!r})")
        return self._worker.submit(
            operation_id,
            self._authority.fetch_events,
            request.window.start,
            request.window.end,
            request.filter_value,
        )

    def _is_current(self, request: _FetchRequest) -> bool:
        return request.generation == self._generation and request.window == self._window

    def _on_operation_finished(self, operation_id: str, result: object) -> None:
        request = self._fetches.pop(operation_id, None)
        if request is None:
            return
        if not self._is_current(request):
            _debug_print(f"Discarding stale fetch reply (generation {request.generation})")
            return

        records = result.get("events") if isinstance(result, dict) else None
        if not isinstance(records, list):
            self._fetch_failed(FetchError("Failed to fetch events"))
            return

        display = expand_events(transform_events(records), request.window)
        self._displayed.replace_all(display)
        self.last_error = None
        _debug_print(f"Displaying {len(display)} items from {len(records)} events")
        if self._on_loaded_callback:
            self._on_loaded_callback(len(display))

    def _on_operation_failed(self, operation_id: str, error: object) -> None:
        request = self._fetches.pop(operation_id, None)
        if request is None:
            _debug_print(f"Operation {operation_id} failed: {error}")
            return
        if not self._is_current(request):
            _debug_print(f"Ignoring failure of stale fetch (generation {request.generation})")
            return
        if not isinstance(error, FetchError):
            error = FetchError(f"Failed to fetch events: {error}")
        self._fetch_failed(error)

    def _fetch_failed(self, error: FetchError) -> None:
        # Displayed set stays as it was
        self.last_error = error
        _debug_print(str(error))
        if self._on_error_callback:
            self._on_error_callback(error)

    # ==================== Incremental Apply ====================

    def _expand_for_window(self, event: CalEvent) -> list[CalEvent]:
        if self._window is None:
            return [event]
        return expand_event(event, self._window).instances

    def on_events_loaded(self, records: list) -> None:
        """Server-initiated full load: replace the displayed set."""
        events = transform_events(records)
        if self._window is None:
            display = events
        else:
            display = expand_events(events, self._window)
        self._displayed.replace_all(display)

    def on_event_created(self, record: dict) -> None:
        try:
            event = transform_event(record)
        except EventTransformError as e:
            _debug_print(f"Ignoring created event: {e}")
            return
        self._displayed.add_all(self._expand_for_window(event))

    def on_event_updated(self, record: dict) -> None:
        try:
            event = transform_event(record)
        except EventTransformError as e:
            _debug_print(f"Ignoring updated event: {e}")
            return
        # Drops the stored item and every instance generated from it
        self._displayed.remove_event(event.id)
        self._displayed.add_all(self._expand_for_window(event))

    def on_event_deleted(self, event_id: str) -> None:
        removed = self._displayed.remove_event(str(event_id))
        if not removed:
            _debug_print(f"Delete for undisplayed event {event_id!r} ignored")

    def on_filter_changed(self, filter_value: Any) -> None:
        """The filter changes the server-side result set: refetch."""
        self._filter = filter_value
        self.refetch()

    def on_download_requested(self, content: bytes, filename: str) -> None:
        if self._download_trigger is None:
            _debug_print(f"No download directory configured, dropping {filename!r}")
            return
        try:
            self._download_trigger.save(content, filename)
        except OSError as e:
            _debug_print(f"Could not save {filename!r}: {e}")

    # ==================== User Interactions ====================

    def push(self, name: str, payload: dict) -> str:
        """Send a notification to the remote authority in the background."""
        operation_id = self._worker.next_operation_id(f"push-{name}")
        return self._worker.submit(operation_id, self._authority.push, name, payload)

    def resolve_id(self, item_id: str) -> str:
        """Identifier of the stored event behind a displayed item."""
        item = self._displayed.get_by_id(item_id)
        if item is None:
            return item_id
        return item.original_id

    def date_clicked(self, when: Union[date, datetime], all_day: bool = False) -> bool:
        """Returns True if the click was forwarded."""
        if isinstance(check_mutation(self._is_admin, MutationKind.DATE_CLICK), Denied):
            return False
        # New events default to timed, whatever was clicked
        self.push("date_clicked", {"date": format_instant(when), "allDay": False})
        return True

    def range_selected(self, start: Union[date, datetime], end: Union[date, datetime],
                       all_day: bool = False) -> bool:
        """Returns True if the selection was forwarded."""
        if isinstance(check_mutation(self._is_admin, MutationKind.RANGE_SELECT), Denied):
            return False
        self.push("date_range_selected", {
            "start": format_instant(start),
            "end": format_instant(end),
            "allDay": False,
        })
        return True

    def event_clicked(self, item_id: str) -> str:
        """Report a click on an item; returns the id that was reported."""
        event_id = self.resolve_id(item_id)
        self.push("event_clicked", {"id": event_id})
        return event_id

    def event_dropped(
        self,
        item_id: str,
        start: datetime,
        end: datetime,
        all_day: bool = False,
        revert: Optional[Callable[[], None]] = None,
    ) -> bool:
        """
        An item was dragged to a new position.

        Non-admins get the item put back through revert() and nothing is sent.
        Returns True if the move was forwarded.
        """
        decision = check_mutation(self._is_admin, MutationKind.DRAG_MOVE)
        if isinstance(decision, Denied):
            if decision.revert and revert is not None:
                revert()
            return False
        self.push("event_dropped", {
            "id": self.resolve_id(item_id),
            "start": format_instant(start),
            "end": format_instant(end),
            "allDay": bool(all_day),
        })
        return True

    def event_resized(
        self,
        item_id: str,
        start: datetime,
        end: datetime,
        revert: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Same as event_dropped, for a changed duration."""
        decision = check_mutation(self._is_admin, MutationKind.RESIZE)
        if isinstance(decision, Denied):
            if decision.revert and revert is not None:
                revert()
            return False
        self.push("event_resized", {
            "id": self.resolve_id(item_id),
            "start": format_instant(start),
            "end": format_instant(end),
        })
        return True
