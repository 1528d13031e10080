"""
Main Window for the event calendar.

Wires the remote authority, sync controller, view state, view command
channel and calendar widget together, and carries the toolbar and the
status bar.
"""

from datetime import datetime
from typing import Optional
import sys

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QToolBar, QPushButton, QLabel,
    QComboBox, QStatusBar, QSizePolicy
)
from PySide6.QtCore import QTimer
from PySide6.QtGui import QCloseEvent, QFont, QKeySequence, QShortcut

from backend.calendar_controller import CalendarSyncController
from backend.config import Config
from backend.displayed_events import DisplayedEvents
from backend.downloads import DownloadTrigger
from backend.network_worker import get_network_worker
from backend.occurrences import ViewWindow
from backend.remote import FetchError, HttpRemoteAuthority, RemoteAuthority
from backend.ui_state import UIState
from backend.view_commands import ViewCommandChannel
from backend.view_state import ViewState, ViewType

from .widgets.calendar_widget import (
    CalendarWidget, set_localization_config, set_labels_config, set_theme, get_colors
)


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] WINDOW: {msg}", file=sys.stderr)


class MainWindow(QMainWindow):
    """
    Main application window.

    Contains:
    - Toolbar with title, view switching, navigation, reload and theme toggle
    - Calendar widget (month grid or list)
    - Status bar for load counts and fetch errors
    """

    def __init__(self, config: Config, authority: Optional[RemoteAuthority] = None, parent=None):
        super().__init__(parent)
        self.config = config

        set_localization_config(config.localization)
        set_labels_config(config.labels)

        self._ui_state = UIState(config.state_file)
        set_theme(self._ui_state.theme)

        self._worker = get_network_worker()
        self.authority = authority or HttpRemoteAuthority(config.server.url, timeout=config.server.timeout)
        self.displayed = DisplayedEvents()
        self.controller = CalendarSyncController(
            self.authority,
            self.displayed,
            is_admin=config.is_admin,
            worker=self._worker,
            download_trigger=DownloadTrigger(config.download_dir),
        )
        self.controller.set_on_error_callback(self._on_fetch_error)
        self.controller.set_on_loaded_callback(self._on_events_loaded)

        self.view_state = ViewState(self._initial_view(), localization=config.localization)
        self.command_channel = ViewCommandChannel(
            self.view_state,
            self.controller.push,
            enabled_views=config.views.enabled,
        )
        self.authority.view_command.connect(self.command_channel.slot.set)

        # Poll timer for inbound pushes (HTTP authority only)
        self._poll_operation: Optional[str] = None
        self._poll_timer = QTimer(self)
        self._poll_timer.timeout.connect(self._on_poll_timer)
        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_failed.connect(self._on_operation_failed)

        self._setup_window()
        self._setup_ui()
        self._setup_toolbar()
        self._setup_shortcuts()
        self._setup_statusbar()
        self._apply_theme()

        self.displayed.set_on_change_callback(self._calendar_widget.refresh)
        self.view_state.set_on_change_callback(self._on_window_changed)
        self._on_window_changed(self.view_state.window)

        if isinstance(self.authority, HttpRemoteAuthority) and config.server.poll_interval > 0:
            self._poll_timer.start(config.server.poll_interval * 1000)
            _debug_print(f"Polling for updates every {config.server.poll_interval} seconds")

    def _initial_view(self) -> ViewType:
        """Last view from the state file if still enabled, else the configured one."""
        saved = self._ui_state.view
        if saved in self.config.views.enabled:
            return ViewType(saved)
        return ViewType(self.config.views.initial)

    def _setup_window(self):
        """Configure main window properties."""
        self.setWindowTitle(self.config.labels.window_title)
        self.setMinimumSize(800, 600)
        self.resize(1200, 800)

    def _setup_ui(self):
        """Set up the main UI layout."""
        main_widget = QWidget()
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)

        self._calendar_widget = CalendarWidget(self.displayed, self.view_state)
        self._calendar_widget.date_clicked.connect(self.controller.date_clicked)
        self._calendar_widget.range_selected.connect(self.controller.range_selected)
        self._calendar_widget.event_clicked.connect(self.controller.event_clicked)
        self._calendar_widget.event_dropped.connect(self.controller.event_dropped)
        self._calendar_widget.event_resized.connect(self.controller.event_resized)

        main_layout.addWidget(self._calendar_widget)
        self.setCentralWidget(main_widget)

    def _setup_toolbar(self):
        """Set up the navigation toolbar."""
        labels = self.config.labels
        toolbar = QToolBar("Navigation")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        # Title first
        self._title_label = QLabel()
        title_font = QFont(self._title_label.font())
        title_font.setBold(True)
        self._title_label.setFont(title_font)
        self._title_label.setMinimumWidth(200)
        toolbar.addWidget(self._title_label)

        toolbar.addSeparator()

        # View switcher: only the enabled views
        view_labels = {
            "day": labels.view_day,
            "week": labels.view_week,
            "month": labels.view_month,
            "list": labels.view_list,
        }
        self._view_combo = QComboBox()
        for name in self.config.views.enabled:
            self._view_combo.addItem(view_labels[name], ViewType(name))
        self._view_combo.setCurrentIndex(self._view_combo.findData(self.view_state.view))
        self._view_combo.currentIndexChanged.connect(self._on_view_combo_changed)
        toolbar.addWidget(self._view_combo)

        toolbar.addSeparator()

        self._prev_btn = QPushButton(labels.button_prev)
        self._prev_btn.setToolTip("Previous")
        self._prev_btn.clicked.connect(self.view_state.prev)
        toolbar.addWidget(self._prev_btn)

        self._today_btn = QPushButton(labels.button_today)
        self._today_btn.clicked.connect(self.view_state.today)
        toolbar.addWidget(self._today_btn)

        self._next_btn = QPushButton(labels.button_next)
        self._next_btn.setToolTip("Next")
        self._next_btn.clicked.connect(self.view_state.next)
        toolbar.addWidget(self._next_btn)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        toolbar.addWidget(spacer)

        self._reload_btn = QPushButton(labels.button_reload)
        self._reload_btn.setToolTip("Reload events from the server")
        self._reload_btn.clicked.connect(self._on_reload_clicked)
        toolbar.addWidget(self._reload_btn)

        self._theme_btn = QPushButton(labels.button_theme)
        self._theme_btn.setCheckable(True)
        self._theme_btn.setChecked(self._ui_state.theme == "dark")
        self._theme_btn.clicked.connect(self._on_theme_clicked)
        toolbar.addWidget(self._theme_btn)

        self._quit_btn = QPushButton(labels.button_quit)
        self._quit_btn.clicked.connect(self.close)
        toolbar.addWidget(self._quit_btn)

    def _setup_shortcuts(self):
        """Keyboard shortcuts for navigation."""
        QShortcut(QKeySequence("PgUp"), self).activated.connect(self.view_state.prev)
        QShortcut(QKeySequence("PgDown"), self).activated.connect(self.view_state.next)
        QShortcut(QKeySequence("Home"), self).activated.connect(self.view_state.today)
        QShortcut(QKeySequence("F5"), self).activated.connect(self._on_reload_clicked)

    def _setup_statusbar(self):
        """Set up the status bar."""
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    def _apply_theme(self):
        colors = get_colors()
        self.setStyleSheet(f"QMainWindow {{ background-color: {colors['background']}; }}")
        self._calendar_widget.refresh_styles()

    # ==================== View / Window ====================

    def _on_window_changed(self, window: ViewWindow):
        """View or date changed: retitle, re-render and refetch."""
        self._title_label.setText(self.view_state.title)
        index = self._view_combo.findData(self.view_state.view)
        if index >= 0 and index != self._view_combo.currentIndex():
            self._view_combo.blockSignals(True)
            self._view_combo.setCurrentIndex(index)
            self._view_combo.blockSignals(False)
        self._calendar_widget.refresh()
        self._statusbar.showMessage("Loading events...")
        self.controller.set_window(window)

    def _on_view_combo_changed(self, index: int):
        view_type = self._view_combo.currentData()
        if view_type:
            self._ui_state.set_view(view_type.value)
            self.view_state.change_view(view_type)

    def _on_reload_clicked(self):
        _debug_print("Reload clicked")
        self._statusbar.showMessage("Reloading from server...")
        self.controller.refetch()

    def _on_theme_clicked(self):
        theme = self._ui_state.toggle_theme()
        set_theme(theme)
        self._theme_btn.setChecked(theme == "dark")
        self._apply_theme()

    # ==================== Controller Callbacks ====================

    def _on_events_loaded(self, count: int):
        self._statusbar.showMessage(f"Loaded {count} events", 3000)

    def _on_fetch_error(self, error: FetchError):
        self._statusbar.showMessage(f"{self.config.labels.fetch_failed}: {error}")

    # ==================== Polling ====================

    def _on_poll_timer(self):
        # One poll at a time: the update cursor is advanced by the reply
        if self._poll_operation is not None:
            return
        self._poll_operation = self._worker.next_operation_id("poll")
        self._worker.submit(self._poll_operation, self.authority.poll_updates)

    def _on_operation_finished(self, operation_id: str, result: object):
        if operation_id != self._poll_operation:
            return
        self._poll_operation = None
        if result:
            delivered = self.authority.dispatch_all(result)
            _debug_print(f"Applied {delivered} of {len(result)} pushes")

    def _on_operation_failed(self, operation_id: str, error: object):
        if operation_id != self._poll_operation:
            return
        self._poll_operation = None
        self._statusbar.showMessage(f"Update poll failed: {error}", 5000)

    def closeEvent(self, event: QCloseEvent):
        """Handle window close."""
        self._poll_timer.stop()
        self._ui_state.set_view(self.view_state.view.value)
        super().closeEvent(event)
