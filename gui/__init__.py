"""
Event Calendar GUI Module

PySide6-based graphical interface for the calendar application.
"""

from .main_window import MainWindow

__all__ = ['MainWindow']
