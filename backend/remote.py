"""
Remote authority: the server process that owns the canonical events.

The calendar talks to it in two directions:
- requests: fetch_events(start, end, filter) and outbound pushes
  (date_clicked, event_dropped, calendar_navigated, ...);
- inbound pushes (events_loaded, event_created, event_updated,
  event_deleted, filter_changed, view_command, download_ical), delivered
  through dispatch() and re-emitted as Qt signals.

fetch_events() and push() block and are meant to run on the NetworkWorker.
dispatch() must be called on the main thread.
"""

from datetime import datetime
from typing import Any, Optional
import json
import sys

import requests
from PySide6.QtCore import QObject, Signal

from .timezone_utils import format_instant


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] REMOTE: {msg}", file=sys.stderr)


class RemoteError(Exception):
    """Base class for remote authority failures."""


class FetchError(RemoteError):
    """A range fetch failed or returned no event list."""


class PushError(RemoteError):
    """An outbound push could not be delivered."""


class RemoteAuthority(QObject):
    """
    Interface to the remote authority.

    Subclasses provide the transport by implementing fetch_events() and
    push(); inbound pushes arrive through dispatch().
    """

    events_loaded = Signal(object)       # list of wire events
    event_created = Signal(object)       # wire event
    event_updated = Signal(object)       # wire event
    event_deleted = Signal(str)          # event id
    filter_changed = Signal(object)      # filter value (any JSON value)
    view_command = Signal(object)        # command string or None
    download_requested = Signal(object, str)  # content bytes, filename

    def fetch_events(self, start: datetime, end: datetime, filter_value: Any = None) -> dict:
        """Return {"events": [wire events]} for the range. Raises FetchError."""
        raise NotImplementedError

    def push(self, name: str, payload: dict) -> None:
        """Send a user-to-authority notification. Raises PushError."""
        raise NotImplementedError

    def dispatch(self, name: str, payload: Optional[dict]) -> bool:
        """
        Route one inbound push to its signal.

        Returns False for unknown push names or malformed payloads (logged,
        never raised).
        """
        payload = {} if payload is None else payload
        if not isinstance(payload, dict):
            _debug_print(f"Ignoring {name!r} push with non-object payload: {payload!r}")
            return False
        if name == "events_loaded":
            events = payload.get("events")
            if not isinstance(events, list):
                _debug_print(f"events_loaded without event list: {payload!r}")
                return False
            self.events_loaded.emit(events)
        elif name == "event_created":
            self.event_created.emit(payload.get("event"))
        elif name == "event_updated":
            self.event_updated.emit(payload.get("event"))
        elif name == "event_deleted":
            if payload.get("id") is None:
                _debug_print(f"event_deleted without id: {payload!r}")
                return False
            self.event_deleted.emit(str(payload["id"]))
        elif name == "filter_changed":
            self.filter_changed.emit(payload.get("filter"))
        elif name == "view_command":
            self.view_command.emit(payload.get("command"))
        elif name == "download_ical":
            content = payload.get("content") or ""
            if isinstance(content, str):
                content = content.encode("utf-8")
            self.download_requested.emit(bytes(content), str(payload.get("filename") or "calendar.ics"))
        else:
            _debug_print(f"Ignoring unknown push {name!r}")
            return False
        return True

    def dispatch_all(self, pushes: list[dict]) -> int:
        """Dispatch a batch of {"event": name, "payload": {...}} items in order."""
        delivered = 0
        for item in pushes:
            if not isinstance(item, dict):
                _debug_print(f"Ignoring malformed push item: {item!r}")
                continue
            if self.dispatch(item.get("event", ""), item.get("payload")):
                delivered += 1
        return delivered


class HttpRemoteAuthority(RemoteAuthority):
    """
    Remote authority reached over HTTP/JSON.

    Endpoints (relative to the configured base URL):
        GET  /events?start=&end=&filter=   -> {"events": [...]}
        POST /pushes  {"event": name, "payload": {...}}
        GET  /updates?cursor=N             -> {"cursor": M, "pushes": [...]}
    """

    def __init__(self, url: str, timeout: int = 30, session: Optional[requests.Session] = None, parent=None):
        super().__init__(parent)
        self.url = url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()
        self._cursor: Optional[int] = None

    def fetch_events(self, start: datetime, end: datetime, filter_value: Any = None) -> dict:
        params = {"start": format_instant(start), "end": format_instant(end)}
        if filter_value is not None:
            params["filter"] = filter_value if isinstance(filter_value, str) else json.dumps(filter_value)

        try:
            response = self._session.get(f"{self.url}/events", params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch events: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON in event reply: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            raise FetchError("Failed to fetch events")
        _debug_print(f"Fetched {len(data['events'])} events {params['start']} .. {params['end']}")
        return data

    def push(self, name: str, payload: dict) -> None:
        try:
            response = self._session.post(
                f"{self.url}/pushes",
                json={"event": name, "payload": payload},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise PushError(f"Failed to push {name}: {e}") from e

    def poll_updates(self) -> list[dict]:
        """
        Fetch inbound pushes queued since the last poll.

        Runs on the worker; the caller dispatches the result on the main
        thread. Only one poll may be in flight at a time.
        """
        params = {} if self._cursor is None else {"cursor": self._cursor}
        try:
            response = self._session.get(f"{self.url}/updates", params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RemoteError(f"Failed to poll updates: {e}") from e

        if not isinstance(data, dict):
            raise RemoteError(f"Invalid update reply: {data!r}")
        if data.get("cursor") is not None:
            self._cursor = data["cursor"]
        pushes = data.get("pushes")
        if not isinstance(pushes, list):
            pushes = []
        return [item for item in pushes if isinstance(item, dict)]
