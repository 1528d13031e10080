"""
Event Calendar GUI Widgets

Custom widgets for displaying calendar data.
"""

from .calendar_widget import CalendarWidget, MonthView, ListView

__all__ = ['CalendarWidget', 'MonthView', 'ListView']
