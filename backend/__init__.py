"""
Event Calendar Backend Module

This module provides the core functionality for the calendar:
- Configuration parsing (config.py)
- Recurrence rules (recurrence.py) and occurrence expansion (occurrences.py)
- Event model and wire transform (event_wrapper.py)
- Remote authority client (remote.py) and background worker (network_worker.py)
- Calendar sync controller (calendar_controller.py)
- View state (view_state.py) and view commands (view_commands.py)
"""

from .config import Config
from .event_wrapper import CalEvent, ExtendedProps, EventTransformError, transform_event, transform_events
from .recurrence import RecurrenceRule, RecurrenceParseError
from .occurrences import ViewWindow, ExpansionResult, expand_event, expand_events
from .displayed_events import DisplayedEvents
from .remote import RemoteAuthority, HttpRemoteAuthority, RemoteError, FetchError, PushError
from .calendar_controller import CalendarSyncController
from .view_state import ViewState, ViewType
from .view_commands import CommandSlot, ViewCommandChannel

__all__ = [
    'Config',
    'CalEvent',
    'ExtendedProps',
    'EventTransformError',
    'transform_event',
    'transform_events',
    'RecurrenceRule',
    'RecurrenceParseError',
    'ViewWindow',
    'ExpansionResult',
    'expand_event',
    'expand_events',
    'DisplayedEvents',
    'RemoteAuthority',
    'HttpRemoteAuthority',
    'RemoteError',
    'FetchError',
    'PushError',
    'CalendarSyncController',
    'ViewState',
    'ViewType',
    'CommandSlot',
    'ViewCommandChannel',
]
