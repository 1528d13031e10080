"""
Current view of the calendar: which view, which date, what is visible.

ViewState is the navigation model behind the widget. It computes the
visible window for the fetch and the human-readable title reported back to
the remote authority, and steps through periods for prev/next/today.
"""

from datetime import date, datetime, time as dt_time, timedelta
from enum import Enum
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from .config import LocalizationConfig
from .occurrences import ViewWindow
from .timezone_utils import localize


class ViewType(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    LIST = "list"


MONTH_GRID_DAYS = 42  # six weeks


def _start_of(d: date) -> datetime:
    return localize(datetime.combine(d, dt_time.min))


class ViewState:
    """View type plus reference date, with navigation."""

    def __init__(
        self,
        view: ViewType = ViewType.MONTH,
        current_date: Optional[date] = None,
        localization: Optional[LocalizationConfig] = None,
        today_provider: Callable[[], date] = date.today,
    ):
        self._today_provider = today_provider
        self._view = view
        self._date = current_date or today_provider()
        self._localization = localization or LocalizationConfig()
        self._on_change_callback: Optional[Callable[[ViewWindow], None]] = None

    def set_on_change_callback(self, callback: Callable[[ViewWindow], None]) -> None:
        self._on_change_callback = callback

    def _notify_change(self) -> None:
        if self._on_change_callback:
            self._on_change_callback(self.window)

    @property
    def view(self) -> ViewType:
        return self._view

    @property
    def current_date(self) -> date:
        return self._date

    # ==================== Navigation ====================

    def change_view(self, view: ViewType) -> None:
        self._view = view
        self._notify_change()

    def set_date(self, d: date) -> None:
        self._date = d
        self._notify_change()

    def today(self) -> None:
        self.set_date(self._today_provider())

    def prev(self) -> None:
        self.set_date(self._date - self._step())

    def next(self) -> None:
        self.set_date(self._date + self._step())

    def _step(self):
        if self._view == ViewType.DAY:
            return timedelta(days=1)
        if self._view == ViewType.WEEK:
            return timedelta(weeks=1)
        return relativedelta(months=1)

    # ==================== Window ====================

    def _week_start(self) -> date:
        return self._date - timedelta(days=self._date.weekday())

    @property
    def window(self) -> ViewWindow:
        """Visible span of the current view, half-open."""
        if self._view == ViewType.DAY:
            return ViewWindow(_start_of(self._date), _start_of(self._date + timedelta(days=1)))
        if self._view == ViewType.WEEK:
            start = self._week_start()
            return ViewWindow(_start_of(start), _start_of(start + timedelta(days=7)))
        first_of_month = self._date.replace(day=1)
        if self._view == ViewType.MONTH:
            # Grid starts on the Monday on or before the 1st
            grid_start = first_of_month - timedelta(days=first_of_month.weekday())
            return ViewWindow(
                _start_of(grid_start),
                _start_of(grid_start + timedelta(days=MONTH_GRID_DAYS)),
            )
        # LIST: exactly the calendar month
        return ViewWindow(
            _start_of(first_of_month),
            _start_of(first_of_month + relativedelta(months=1)),
        )

    # ==================== Title ====================

    def _month_name(self, month: int) -> str:
        return self._localization.get_month_name(month)

    def _short_month_name(self, month: int) -> str:
        return self._month_name(month)[:3]

    @property
    def title(self) -> str:
        d = self._date
        if self._view == ViewType.DAY:
            return f"{self._month_name(d.month)} {d.day}, {d.year}"
        if self._view == ViewType.WEEK:
            start = self._week_start()
            end = start + timedelta(days=6)
            if start.year != end.year:
                return (f"{self._short_month_name(start.month)} {start.day}, {start.year} - "
                        f"{self._short_month_name(end.month)} {end.day}, {end.year}")
            if start.month != end.month:
                return (f"{self._short_month_name(start.month)} {start.day} - "
                        f"{self._short_month_name(end.month)} {end.day}, {end.year}")
            return f"{self._short_month_name(start.month)} {start.day} - {end.day}, {end.year}"
        return f"{self._month_name(d.month)} {d.year}"
