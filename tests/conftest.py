"""Shared fixtures for the calendar tests.

Provides a Qt core application, a pinned local timezone, a wire-event
factory, a recording remote authority and a worker that runs operations
in the calling thread.
"""

from datetime import datetime
import itertools

import pytest
from PySide6.QtCore import QCoreApplication, QObject, Signal

from backend.remote import RemoteAuthority
from backend.timezone_utils import localize, set_timezone


# ============================================================================
# Qt and Timezone
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """One QCoreApplication for the whole session (signals need it)."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture(autouse=True)
def local_timezone():
    """All tests run in Europe/Amsterdam (CET/CEST)."""
    set_timezone("Europe/Amsterdam")
    yield "Europe/Amsterdam"
    set_timezone("Europe/Amsterdam")


def local(*args) -> datetime:
    """Aware local datetime, e.g. local(2024, 1, 1, 9)."""
    return localize(datetime(*args))


# ============================================================================
# Wire Events
# ============================================================================


def make_wire_event(event_id="1", title="Event", start="2024-01-01T09:00:00",
                    end="2024-01-01T10:00:00", **extra) -> dict:
    record = {
        "id": event_id,
        "title": title,
        "start_time": start,
        "end_time": end,
        "all_day": False,
        "color": "#3788d8",
    }
    record.update(extra)
    return record


@pytest.fixture
def wire_event():
    """Factory for wire event records."""
    return make_wire_event


@pytest.fixture
def weekly_wire_event():
    """Weekly Monday 09:00-10:00 series anchored 2024-01-01, ending 2024-01-22."""
    return make_wire_event(
        "E",
        title="Standup",
        is_recurring=True,
        recurrence_rule="FREQ=WEEKLY;BYDAY=MO",
        recurrence_end_date="2024-01-22",
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeAuthority(RemoteAuthority):
    """Remote authority serving a fixed event list and recording pushes."""

    def __init__(self, events=None):
        super().__init__()
        self.events = list(events or [])
        self.fetches = []
        self.pushes = []
        self.fetch_error = None
        self.reply = None

    def fetch_events(self, start, end, filter_value=None):
        self.fetches.append((start, end, filter_value))
        if self.fetch_error is not None:
            raise self.fetch_error
        if self.reply is not None:
            return self.reply
        return {"events": list(self.events)}

    def push(self, name, payload):
        self.pushes.append((name, payload))

    def pushes_named(self, name):
        return [payload for pushed, payload in self.pushes if pushed == name]


class FakeWorker(QObject):
    """
    NetworkWorker stand-in running operations in the calling thread.

    With deferred=True operations wait in `pending` until run(operation_id).
    """

    operation_finished = Signal(str, object)
    operation_failed = Signal(str, object)

    def __init__(self, deferred=False):
        super().__init__()
        self.deferred = deferred
        self.pending = {}
        self._counter = itertools.count(1)

    def next_operation_id(self, prefix):
        return f"{prefix}:{next(self._counter)}"

    def submit(self, operation_id, func, *args, **kwargs):
        self.pending[operation_id] = (func, args, kwargs)
        if not self.deferred:
            self.run(operation_id)
        return operation_id

    def run(self, operation_id):
        func, args, kwargs = self.pending.pop(operation_id)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self.operation_failed.emit(operation_id, e)
        else:
            self.operation_finished.emit(operation_id, result)

    def pending_fetches(self):
        return [op for op in self.pending if op.startswith("fetch:")]


@pytest.fixture
def authority():
    return FakeAuthority()


@pytest.fixture
def worker():
    return FakeWorker()


@pytest.fixture
def deferred_worker():
    return FakeWorker(deferred=True)
