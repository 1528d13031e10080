"""Unit tests for instant parsing and formatting."""

from datetime import date, datetime, timedelta

import pytest

from backend.timezone_utils import (
    end_of_day, format_instant, get_local_timezone, is_date_only, parse_instant, set_timezone
)
from tests.conftest import local


class TestParseInstant:
    def test_naive_string_is_local(self):
        parsed = parse_instant("2024-07-01T09:00:00")

        assert parsed.hour == 9
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_offset_string_converted(self):
        assert parse_instant("2024-01-01T09:00:00-05:00") == local(2024, 1, 1, 15)

    def test_zulu_suffix(self):
        assert parse_instant("2024-01-01T08:00:00Z") == local(2024, 1, 1, 9)

    def test_date_string_is_local_midnight(self):
        assert parse_instant("2024-01-05") == local(2024, 1, 5)

    def test_date_and_datetime_objects(self):
        assert parse_instant(date(2024, 1, 5)) == local(2024, 1, 5)
        assert parse_instant(datetime(2024, 1, 5, 12)) == local(2024, 1, 5, 12)

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_empty_is_none(self, value):
        assert parse_instant(value) is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_instant("next tuesday")


class TestHelpers:
    def test_is_date_only(self):
        assert is_date_only("2024-01-05")
        assert not is_date_only("2024-01-05T10:00:00")

    def test_end_of_day(self):
        end = end_of_day(local(2024, 1, 5, 10))

        assert end.date() == date(2024, 1, 5)
        assert (end.hour, end.minute, end.second) == (23, 59, 59)

    def test_format_instant(self):
        assert format_instant(local(2024, 1, 5, 10)) == "2024-01-05T10:00:00+01:00"
        assert format_instant(date(2024, 1, 5)) == "2024-01-05"

    def test_unknown_timezone_falls_back(self):
        set_timezone("Not/AZone")

        assert get_local_timezone() is not None
