"""Unit tests for RecurrenceRule parsing and enumeration."""

from datetime import datetime, timedelta

import pytest

from backend.recurrence import RecurrenceRule, RecurrenceParseError
from tests.conftest import local


class TestRecurrenceParse:
    """Grammar parsing and validation."""

    def test_parse_weekly_rule(self):
        """Test parsing a weekly rule with BYDAY."""
        rule = RecurrenceRule.parse("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE", anchor=local(2024, 1, 1, 9))

        assert rule.frequency == "WEEKLY"
        assert rule.interval == 2
        assert rule.by_weekday == ["MO", "WE"]
        assert rule.count is None
        assert rule.until is None

    def test_parse_accepts_rrule_prefix(self):
        """Test that an RRULE: prefix is stripped."""
        rule = RecurrenceRule.parse("RRULE:FREQ=DAILY;COUNT=5", anchor=local(2024, 1, 1, 9))

        assert rule.frequency == "DAILY"
        assert rule.count == 5

    def test_parse_monthly_by_month_day(self):
        rule = RecurrenceRule.parse("FREQ=MONTHLY;BYMONTHDAY=15", anchor=local(2024, 1, 15, 10))

        assert rule.frequency == "MONTHLY"
        assert rule.by_month_day == [15]

    def test_event_until_and_grammar_until_tighter_wins(self):
        """Test that the earlier of the two bounds is used."""
        rule = RecurrenceRule.parse(
            "FREQ=DAILY;UNTIL=20240110T235959Z",
            anchor=local(2024, 1, 1, 9),
            until=local(2024, 1, 5, 12),
        )

        assert rule.until == local(2024, 1, 5, 12)
        assert "UNTIL" not in rule.body

    @pytest.mark.parametrize("grammar", [
        "",
        "   ",
        "not a rule",
        "INTERVAL=2",
        "FREQ=HOURLY",
        "FREQ=DAILY;INTERVAL=0",
        "FREQ=DAILY;COUNT=0",
        "FREQ=DAILY;COUNT=-1",
        "FREQ=MONTHLY;BYMONTHDAY=0",
        "FREQ=MONTHLY;BYMONTHDAY=32",
        "FREQ=WEEKLY;BYDAY=XX",
        "FREQ=DAILY;FOO=1",
    ])
    def test_parse_invalid_grammar(self, grammar):
        """Test that malformed grammars raise RecurrenceParseError."""
        with pytest.raises(RecurrenceParseError):
            RecurrenceRule.parse(grammar, anchor=local(2024, 1, 1, 9))

    def test_parse_invalid_anchor(self):
        with pytest.raises(RecurrenceParseError):
            RecurrenceRule.parse("FREQ=DAILY", anchor="2024-01-01")


class TestRecurrenceBetween:
    """Occurrence enumeration within a window."""

    def test_weekly_until_inclusive(self):
        """Test weekly Monday series bounded by an inclusive until."""
        rule = RecurrenceRule.parse(
            "FREQ=WEEKLY;BYDAY=MO",
            anchor=local(2024, 1, 1, 9),
            until=local(2024, 1, 22, 23, 59, 59),
        )

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 31))

        assert starts == [
            local(2024, 1, 1, 9),
            local(2024, 1, 8, 9),
            local(2024, 1, 15, 9),
            local(2024, 1, 22, 9),
        ]

    def test_window_bounds_are_inclusive(self):
        rule = RecurrenceRule.parse("FREQ=DAILY", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1, 9), local(2024, 1, 3, 9))

        assert len(starts) == 3
        assert starts[-1] == local(2024, 1, 3, 9)

    def test_count_limits_occurrences(self):
        rule = RecurrenceRule.parse("FREQ=DAILY;COUNT=3", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 31))

        assert [s.day for s in starts] == [1, 2, 3]

    def test_interval(self):
        rule = RecurrenceRule.parse("FREQ=WEEKLY;INTERVAL=2", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 31))

        assert [s.day for s in starts] == [1, 15, 29]

    def test_monthly_by_month_day(self):
        rule = RecurrenceRule.parse("FREQ=MONTHLY;BYMONTHDAY=15", anchor=local(2024, 1, 15, 10))

        starts = rule.between(local(2024, 1, 1), local(2024, 4, 1))

        assert [(s.month, s.day, s.hour) for s in starts] == [(1, 15, 10), (2, 15, 10), (3, 15, 10)]

    def test_yearly(self):
        rule = RecurrenceRule.parse("FREQ=YEARLY", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2026, 6, 1))

        assert [s.year for s in starts] == [2024, 2025, 2026]

    def test_anchor_included_when_by_day_skips_it(self):
        """Test that the anchor stays the first occurrence even if BYDAY excludes its weekday."""
        rule = RecurrenceRule.parse("FREQ=WEEKLY;BYDAY=WE", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 14))

        assert [s.day for s in starts] == [1, 3, 10]

    def test_grammar_until_utc(self):
        """Test a UTC UNTIL in the grammar (23:59:59Z is 00:59:59 the next day locally)."""
        rule = RecurrenceRule.parse("FREQ=DAILY;UNTIL=20240110T235959Z", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 31))

        assert len(starts) == 10
        assert starts[-1] == local(2024, 1, 10, 9)

    def test_grammar_until_date_only_means_end_of_day(self):
        rule = RecurrenceRule.parse("FREQ=DAILY;UNTIL=20240105", anchor=local(2024, 1, 1, 9))

        starts = rule.between(local(2024, 1, 1), local(2024, 1, 31))

        assert starts[-1] == local(2024, 1, 5, 9)
        assert len(starts) == 5

    def test_window_before_anchor_is_empty(self):
        rule = RecurrenceRule.parse("FREQ=DAILY", anchor=local(2024, 2, 1, 9))

        assert rule.between(local(2024, 1, 1), local(2024, 1, 31)) == []

    def test_until_before_window_is_empty(self):
        rule = RecurrenceRule.parse("FREQ=DAILY", anchor=local(2024, 1, 1, 9), until=local(2024, 1, 10))

        assert rule.between(local(2024, 2, 1), local(2024, 2, 29)) == []

    def test_wall_clock_time_kept_across_dst(self):
        """Test that a 09:00 daily event stays at 09:00 local across the March DST change."""
        rule = RecurrenceRule.parse("FREQ=DAILY", anchor=local(2024, 3, 29, 9))

        starts = rule.between(local(2024, 3, 29), local(2024, 4, 2))

        assert [s.day for s in starts] == [29, 30, 31, 1]
        assert all(s.hour == 9 for s in starts)
        assert starts[1].utcoffset() == timedelta(hours=1)
        assert starts[2].utcoffset() == timedelta(hours=2)

    def test_naive_window_taken_as_local(self):
        rule = RecurrenceRule.parse("FREQ=DAILY;COUNT=2", anchor=local(2024, 1, 1, 9))

        starts = rule.between(datetime(2024, 1, 1), datetime(2024, 1, 31))

        assert starts == [local(2024, 1, 1, 9), local(2024, 1, 2, 9)]
