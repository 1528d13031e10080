"""Unit tests for the wire-to-display event transform."""

from datetime import timedelta

import pytest

from backend.event_wrapper import CalEvent, EventTransformError, transform_event, transform_events
from tests.conftest import local


class TestTransformEvent:
    """transform_event field mapping."""

    def test_maps_all_fields(self, wire_event):
        """Test that every wire field lands on the CalEvent."""
        record = wire_event(
            "42",
            title="Board meeting",
            description="Quarterly review",
            location="Room 1",
            event_type="meeting",
            is_recurring=True,
            recurrence_rule="FREQ=WEEKLY",
            recurrence_end_date="2024-03-01T00:00:00",
        )

        event = transform_event(record)

        assert isinstance(event, CalEvent)
        assert event.id == "42"
        assert event.title == "Board meeting"
        assert event.start == local(2024, 1, 1, 9)
        assert event.end == local(2024, 1, 1, 10)
        assert event.all_day is False
        assert event.background_color == "#3788d8"
        assert event.border_color == "#3788d8"
        assert event.description == "Quarterly review"
        assert event.location == "Room 1"
        assert event.extended_props.event_type == "meeting"
        assert event.is_recurring is True
        assert event.recurrence_rule == "FREQ=WEEKLY"
        assert event.recurrence_end == local(2024, 3, 1)

    def test_original_id_is_own_id(self, wire_event):
        event = transform_event(wire_event("7"))

        assert event.original_id == "7"
        assert event.extended_props.original_id == "7"
        assert event.is_instance is False

    def test_missing_optional_fields_map_to_none(self):
        event = transform_event({"id": 1, "title": "Bare", "start_time": "2024-01-01T09:00:00"})

        assert event.id == "1"
        assert event.extended_props.description is None
        assert event.extended_props.location is None
        assert event.extended_props.event_type is None
        assert event.background_color is None
        assert event.recurrence_rule is None
        assert event.recurrence_end is None
        assert event.is_recurring is False

    def test_recurring_without_rule_is_not_recurring(self, wire_event):
        event = transform_event(wire_event(is_recurring=True, recurrence_rule=""))

        assert event.is_recurring is False
        assert event.recurrence_rule is None

    def test_missing_end_falls_back_to_start(self, wire_event):
        event = transform_event(wire_event(end=None))

        assert event.end == event.start

    def test_end_before_start_is_clamped(self, wire_event):
        event = transform_event(wire_event(start="2024-01-01T10:00:00", end="2024-01-01T09:00:00"))

        assert event.end == event.start

    def test_utc_instant_converted_to_local(self, wire_event):
        """Test that 08:00Z is 09:00 in Amsterdam winter time."""
        event = transform_event(wire_event(start="2024-01-01T08:00:00Z", end="2024-01-01T09:00:00Z"))

        assert event.start == local(2024, 1, 1, 9)
        assert event.start.hour == 9

    def test_date_only_start_is_local_midnight(self, wire_event):
        event = transform_event(wire_event(start="2024-01-05", end="2024-01-06", all_day=True))

        assert event.all_day is True
        assert event.start == local(2024, 1, 5)
        assert event.duration == timedelta(days=1)

    def test_date_only_recurrence_end_means_end_of_day(self, wire_event):
        event = transform_event(wire_event(recurrence_end_date="2024-01-22"))

        assert event.recurrence_end.date() == local(2024, 1, 22).date()
        assert (event.recurrence_end.hour, event.recurrence_end.minute) == (23, 59)

    def test_missing_id_raises(self, wire_event):
        record = wire_event()
        del record["id"]

        with pytest.raises(EventTransformError):
            transform_event(record)

    def test_unparseable_start_raises(self, wire_event):
        with pytest.raises(EventTransformError):
            transform_event(wire_event(start="yesterday"))

    def test_missing_start_raises(self, wire_event):
        with pytest.raises(EventTransformError):
            transform_event(wire_event(start=None))

    def test_non_dict_raises(self):
        with pytest.raises(EventTransformError):
            transform_event(None)


class TestTransformEvents:
    def test_skips_malformed_records(self, wire_event):
        """Test that one bad record does not blank the batch."""
        events = transform_events([wire_event("1"), {"title": "no id"}, wire_event("3", start="bad")])

        assert [e.id for e in events] == ["1"]


class TestCreateInstance:
    def test_instance_fields(self, wire_event):
        """Test that generated instances carry the source id and duration."""
        event = transform_event(wire_event("E", is_recurring=True, recurrence_rule="FREQ=DAILY"))

        instance = event.create_instance(3, local(2024, 1, 4, 9))

        assert instance.id == "E_3"
        assert instance.start == local(2024, 1, 4, 9)
        assert instance.end == local(2024, 1, 4, 10)
        assert instance.original_id == "E"
        assert instance.is_instance is True
        assert instance.title == event.title
        assert instance.background_color == event.background_color
        # Source untouched
        assert event.id == "E"
        assert event.is_instance is False

    def test_moved_returns_copy(self, wire_event):
        event = transform_event(wire_event())

        moved = event.moved(local(2024, 1, 2, 9), local(2024, 1, 2, 11))

        assert moved.start == local(2024, 1, 2, 9)
        assert event.start == local(2024, 1, 1, 9)
