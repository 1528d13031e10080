"""
Recurrence expansion for the visible window.

Each recurring CalEvent becomes one generated instance per occurrence that
starts inside the window. Expansion is isolated per event: a rule that
fails to parse leaves that one event unexpanded and records the error on
its ExpansionResult, while every other event expands normally.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional
import sys

from .event_wrapper import CalEvent
from .recurrence import RecurrenceRule, RecurrenceParseError


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] EXPAND: {msg}", file=sys.stderr)


@dataclass(frozen=True)
class ViewWindow:
    """Visible span of the calendar, half-open [start, end)."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window ends before it starts: {self.start} > {self.end}")

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass
class ExpansionResult:
    """Outcome of expanding one event: what to display, and why if degraded."""
    event: CalEvent
    instances: list[CalEvent] = field(default_factory=list)
    error: Optional[RecurrenceParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def expand_event(event: CalEvent, window: ViewWindow) -> ExpansionResult:
    """
    Expand a single event over the window.

    Non-recurring events (or recurring ones without a rule) pass through
    as the same object. Recurring events yield instances "{id}_{i}" in
    chronological order; on a RecurrenceParseError the event itself is
    returned unexpanded together with the error.
    """
    if not event.is_recurring or not event.recurrence_rule:
        return ExpansionResult(event=event, instances=[event])

    try:
        rule = RecurrenceRule.parse(
            event.recurrence_rule,
            anchor=event.start,
            until=event.recurrence_end,
        )
        starts = rule.between(window.start, window.end)
    except RecurrenceParseError as e:
        _debug_print(f"Error expanding recurring event {event.id}: {e}")
        return ExpansionResult(event=event, instances=[event], error=e)

    return ExpansionResult(
        event=event,
        instances=[event.create_instance(i, start) for i, start in enumerate(starts)],
    )


def expand_results(events: Iterable[CalEvent], window: ViewWindow) -> list[ExpansionResult]:
    """Per-event expansion results, in input order."""
    return [expand_event(event, window) for event in events]


def expand_events(events: Iterable[CalEvent], window: ViewWindow) -> list[CalEvent]:
    """Flattened display list: pass-through events and generated instances."""
    expanded = []
    for result in expand_results(events, window):
        expanded.extend(result.instances)
    return expanded
