"""Unit tests for the displayed event set."""

import pytest

from backend.displayed_events import DisplayedEvents
from backend.event_wrapper import transform_event
from tests.conftest import local


@pytest.fixture
def displayed():
    d = DisplayedEvents()
    d.changes = 0

    def _count():
        d.changes += 1

    d.set_on_change_callback(_count)
    return d


class TestDisplayedEvents:
    def test_add_and_lookup(self, displayed, wire_event):
        event = transform_event(wire_event("1"))

        displayed.add(event)

        assert "1" in displayed
        assert displayed.get_by_id("1") is event
        assert len(displayed) == 1
        assert displayed.changes == 1

    def test_add_same_id_replaces(self, displayed, wire_event):
        displayed.add(transform_event(wire_event("1", title="old")))
        displayed.add(transform_event(wire_event("1", title="new")))

        assert len(displayed) == 1
        assert displayed.get_by_id("1").title == "new"

    def test_replace_all_notifies_once(self, displayed, wire_event):
        displayed.add(transform_event(wire_event("old")))
        displayed.changes = 0

        displayed.replace_all([transform_event(wire_event(str(i))) for i in range(5)])

        assert displayed.ids() == ["0", "1", "2", "3", "4"]
        assert displayed.changes == 1

    def test_remove_unknown_is_noop(self, displayed, wire_event):
        displayed.add(transform_event(wire_event("1")))
        displayed.changes = 0

        assert displayed.remove("missing") is False
        assert displayed.remove_event("missing") == 0
        assert displayed.ids() == ["1"]
        assert displayed.changes == 0

    def test_remove_event_takes_instances(self, displayed, wire_event):
        """Test that removing an event also removes its generated occurrences."""
        source = transform_event(wire_event("E", is_recurring=True, recurrence_rule="FREQ=DAILY"))
        other = transform_event(wire_event("E_other"))
        displayed.add_all([source.create_instance(0, source.start), source.create_instance(1, local(2024, 1, 2, 9)), other])

        removed = displayed.remove_event("E")

        assert removed == 2
        assert displayed.ids() == ["E_other"]

    def test_remove_all(self, displayed, wire_event):
        displayed.add_all([transform_event(wire_event("1")), transform_event(wire_event("2"))])

        displayed.remove_all()

        assert len(displayed) == 0

    def test_move_and_revert(self, displayed, wire_event):
        event = transform_event(wire_event("1"))
        displayed.add(event)

        revert = displayed.move("1", local(2024, 1, 3, 9), local(2024, 1, 3, 10))
        assert displayed.get_by_id("1").start == local(2024, 1, 3, 9)

        revert()
        assert displayed.get_by_id("1") is event

    def test_move_unknown_raises(self, displayed):
        with pytest.raises(KeyError):
            displayed.move("missing", local(2024, 1, 1), local(2024, 1, 1))

    def test_revert_after_removal_is_noop(self, displayed, wire_event):
        displayed.add(transform_event(wire_event("1")))
        revert = displayed.move("1", local(2024, 1, 3, 9), local(2024, 1, 3, 10))
        displayed.remove("1")

        revert()

        assert "1" not in displayed
