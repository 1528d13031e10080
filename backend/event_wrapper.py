"""
Display-side event model and the wire-to-display transform.

The remote authority sends events in its own shape (start_time, end_time,
all_day, ...). transform_event() maps them onto CalEvent, the single type
the expander, the displayed set and the widget all work with. Generated
recurrence instances are CalEvents too, marked with is_instance and
pointing back at their source through original_id.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date, timedelta
from typing import Any, Iterable, Optional
import sys

from .timezone_utils import parse_instant, is_date_only, end_of_day


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] TRANSFORM: {msg}", file=sys.stderr)


class EventTransformError(ValueError):
    """A wire record that cannot be turned into a CalEvent."""


@dataclass(frozen=True)
class ExtendedProps:
    """
    Attributes carried alongside the displayed fields.

    original_id is the identifier edit forms and delete actions operate on:
    the event's own id for stored events, the source event's id for
    generated instances.
    """
    description: Optional[str] = None
    location: Optional[str] = None
    event_type: Optional[str] = None
    is_recurring: bool = False
    recurrence_rule: Optional[str] = None
    recurrence_end: Optional[datetime] = None
    original_id: Optional[str] = None
    is_instance: bool = False


@dataclass(frozen=True)
class CalEvent:
    """
    An event as displayed by the calendar widget.

    Immutable: updates replace the whole object, and generated instances
    are fresh copies.
    """
    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool = False
    background_color: Optional[str] = None
    border_color: Optional[str] = None
    extended_props: ExtendedProps = field(default_factory=ExtendedProps)

    # ==================== Convenience Properties ====================

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_recurring(self) -> bool:
        return self.extended_props.is_recurring

    @property
    def recurrence_rule(self) -> Optional[str]:
        return self.extended_props.recurrence_rule

    @property
    def recurrence_end(self) -> Optional[datetime]:
        return self.extended_props.recurrence_end

    @property
    def is_instance(self) -> bool:
        return self.extended_props.is_instance

    @property
    def original_id(self) -> str:
        """Identifier of the stored event this item stands for."""
        return self.extended_props.original_id or self.id

    @property
    def description(self) -> str:
        return self.extended_props.description or ''

    @property
    def location(self) -> str:
        return self.extended_props.location or ''

    # ==================== Instance Creation ====================

    def create_instance(self, index: int, instance_start: datetime) -> 'CalEvent':
        """
        Create a generated occurrence of this event.

        Args:
            index: Position of the occurrence within the current expansion
            instance_start: Start of the occurrence

        Returns:
            A new CalEvent with id "{id}_{index}" spanning this event's duration
        """
        return replace(
            self,
            id=f"{self.id}_{index}",
            start=instance_start,
            end=instance_start + self.duration,
            extended_props=replace(
                self.extended_props,
                original_id=self.id,
                is_instance=True,
            ),
        )

    def moved(self, start: datetime, end: datetime) -> 'CalEvent':
        """Copy of this event at a new position."""
        return replace(self, start=start, end=end)

    def __repr__(self):
        return f"CalEvent(id={self.id!r}, title={self.title!r}, start={self.start})"


def _parse_field(record: dict, key: str) -> Optional[datetime]:
    try:
        return parse_instant(record.get(key))
    except (TypeError, ValueError) as e:
        raise EventTransformError(f"Invalid {key} {record.get(key)!r}: {e}") from e


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


def transform_event(record: dict) -> CalEvent:
    """
    Map a wire event onto a CalEvent.

    Wire shape: {id, title, start_time, end_time, all_day, color,
    description?, location?, event_type?, is_recurring?, recurrence_rule?,
    recurrence_end_date?}. Unknown optional fields map to None.

    Raises:
        EventTransformError: if the record has no id or an unparseable instant
    """
    if not isinstance(record, dict) or record.get('id') in (None, ''):
        raise EventTransformError(f"Event record without id: {record!r}")

    start = _parse_field(record, 'start_time')
    if start is None:
        raise EventTransformError(f"Event {record['id']!r} has no start_time")
    end = _parse_field(record, 'end_time') or start
    if end < start:
        end = start

    recurrence_end = _parse_field(record, 'recurrence_end_date')
    raw_end = record.get('recurrence_end_date')
    date_only = (
        (isinstance(raw_end, str) and is_date_only(raw_end))
        or (isinstance(raw_end, date) and not isinstance(raw_end, datetime))
    )
    if recurrence_end is not None and date_only:
        # A bare date bounds the series through the end of that day
        recurrence_end = end_of_day(recurrence_end)

    rule = _optional_text(record.get('recurrence_rule'))
    event_id = str(record['id'])
    color = _optional_text(record.get('color'))

    return CalEvent(
        id=event_id,
        title=str(record.get('title') or ''),
        start=start,
        end=end,
        all_day=bool(record.get('all_day', False)),
        background_color=color,
        border_color=color,
        extended_props=ExtendedProps(
            description=_optional_text(record.get('description')),
            location=_optional_text(record.get('location')),
            event_type=_optional_text(record.get('event_type')),
            is_recurring=bool(record.get('is_recurring')) and rule is not None,
            recurrence_rule=rule,
            recurrence_end=recurrence_end,
            original_id=event_id,
        ),
    )


def transform_events(records: Iterable[dict]) -> list[CalEvent]:
    """Transform a batch, skipping (and logging) records that are not well-formed."""
    events = []
    for record in records:
        try:
            events.append(transform_event(record))
        except EventTransformError as e:
            _debug_print(f"Skipping event record: {e}")
    return events
