"""
Recurrence rule parsing and evaluation.

The grammar is the body of an iCalendar RRULE ("FREQ=WEEKLY;BYDAY=MO",
optionally prefixed with "RRULE:"). icalendar's vRecur parses and validates
it; dateutil enumerates the occurrences.

Enumeration runs on local wall-clock times and localizes each candidate
afterwards, so a 09:00 meeting stays at 09:00 across DST changes.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional

from dateutil.rrule import rrulestr
from icalendar.prop import vRecur

from .timezone_utils import get_local_timezone, localize, to_local_naive, end_of_day


SUPPORTED_FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")


class RecurrenceParseError(Exception):
    """Malformed recurrence grammar or anchor."""


def _strip_rule_prefix(grammar: str) -> str:
    text = grammar.strip()
    # Accept a full property block and pick the RRULE line out of it
    if '\n' in text:
        for line in text.splitlines():
            if line.strip().upper().startswith('RRULE:'):
                text = line.strip()
                break
        else:
            raise RecurrenceParseError(f"No RRULE line in {grammar!r}")
    if text.upper().startswith('RRULE:'):
        text = text[len('RRULE:'):]
    return text


def _until_to_instant(value) -> datetime:
    """UNTIL values: dates mean end of that day, naive datetimes are local."""
    if isinstance(value, datetime):
        return localize(value)
    if isinstance(value, date):
        return end_of_day(localize(datetime.combine(value, datetime.min.time())))
    raise RecurrenceParseError(f"Unsupported UNTIL value: {value!r}")


@dataclass
class RecurrenceRule:
    """A parsed recurrence rule bound to its anchor."""
    frequency: str
    anchor: datetime
    interval: int = 1
    by_weekday: list[str] = field(default_factory=list)
    by_month_day: list[int] = field(default_factory=list)
    count: Optional[int] = None
    until: Optional[datetime] = None
    body: str = ""

    @classmethod
    def parse(
        cls,
        grammar: str,
        anchor: datetime,
        until: Optional[datetime] = None
    ) -> 'RecurrenceRule':
        """
        Build a rule from a grammar string and its anchor.

        Args:
            grammar: RRULE body, e.g. "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE"
            anchor: The owning event's start (first candidate occurrence)
            until: Optional inclusive bound (the event's recurrence end);
                combined with the grammar's own UNTIL, the earlier one wins

        Raises:
            RecurrenceParseError: on any malformed input
        """
        if not isinstance(grammar, str) or not grammar.strip():
            raise RecurrenceParseError("Empty recurrence rule")
        if not isinstance(anchor, datetime):
            raise RecurrenceParseError(f"Invalid anchor: {anchor!r}")

        body = _strip_rule_prefix(grammar)
        try:
            parts = vRecur.from_ical(body)
        except (ValueError, TypeError) as e:
            raise RecurrenceParseError(f"Cannot parse {grammar!r}: {e}") from e

        freq = parts.get('FREQ')
        if not freq:
            raise RecurrenceParseError(f"Missing FREQ in {grammar!r}")
        frequency = str(freq[0]).upper()
        if frequency not in SUPPORTED_FREQUENCIES:
            raise RecurrenceParseError(f"Unsupported frequency {frequency!r}")

        interval = int(parts.get('INTERVAL', [1])[0])
        if interval < 1:
            raise RecurrenceParseError(f"Invalid INTERVAL {interval}")

        count = parts.get('COUNT')
        count = int(count[0]) if count else None
        if count is not None and count < 1:
            raise RecurrenceParseError(f"Invalid COUNT {count}")

        by_month_day = [int(day) for day in parts.get('BYMONTHDAY', [])]
        if any(day == 0 or abs(day) > 31 for day in by_month_day):
            raise RecurrenceParseError(f"Invalid BYMONTHDAY in {grammar!r}")

        # UNTIL is handled here rather than by dateutil, which refuses to mix
        # naive and aware values
        bounds = [localize(until)] if until is not None else []
        if parts.get('UNTIL'):
            bounds.append(_until_to_instant(parts['UNTIL'][0]))
        effective_until = min(bounds) if bounds else None

        tokens = [
            token for token in body.split(';')
            if token.strip() and not token.strip().upper().startswith('UNTIL=')
        ]
        rule = cls(
            frequency=frequency,
            anchor=localize(anchor),
            interval=interval,
            by_weekday=[str(day) for day in parts.get('BYDAY', [])],
            by_month_day=by_month_day,
            count=count,
            until=effective_until,
            body=';'.join(tokens),
        )
        # Build the dateutil rule once so grammar errors surface at parse time
        rule._evaluator()
        return rule

    def _evaluator(self):
        try:
            return rrulestr(self.body, dtstart=to_local_naive(self.anchor))
        except (ValueError, TypeError, KeyError) as e:
            raise RecurrenceParseError(f"Invalid rule {self.body!r}: {e}") from e

    def between(self, start: datetime, end: datetime) -> list[datetime]:
        """
        Occurrence starts within [start, end], both bounds inclusive.

        The anchor is always the first occurrence, even when the rule's
        BY* parts would not select it. The until bound clips the window.
        """
        lo = to_local_naive(localize(start))
        hi = to_local_naive(localize(end))
        if self.until is not None:
            hi = min(hi, to_local_naive(self.until))
        if hi < lo:
            return []

        anchor = to_local_naive(self.anchor)
        try:
            found = list(self._evaluator().between(lo, hi, inc=True))
        except (ValueError, OverflowError) as e:
            raise RecurrenceParseError(f"Cannot enumerate {self.body!r}: {e}") from e

        if lo <= anchor <= hi and (not found or found[0] != anchor):
            found.insert(0, anchor)

        tz = get_local_timezone()
        return [tz.localize(dt) for dt in found]
