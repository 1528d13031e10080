"""
Calendar Widget with Month and List views.

Renders the DisplayedEvents that fall inside the ViewState window. Day and
week views are shown as a list over their window.

Interaction:
- click a day: date click; shift-click a second day: range select
- click an item: select it and report the click
- Alt+Left/Right, Alt+Up/Down on the selected item: move it by a day / an hour
- Alt+Shift+Up/Down on the selected item: resize it by half an hour
"""

from datetime import timedelta, date
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel,
    QScrollArea, QFrame, QSizePolicy, QStackedWidget
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont, QFontMetrics, QKeyEvent, QMouseEvent

from backend.config import LocalizationConfig, LabelsConfig
from backend.displayed_events import DisplayedEvents
from backend.event_wrapper import CalEvent
from backend.occurrences import ViewWindow
from backend.timezone_utils import localize, to_local_naive
from backend.view_state import ViewState, ViewType

# Module-level configs (set by MainWindow at startup)
_localization_config: LocalizationConfig = LocalizationConfig()
_labels_config: LabelsConfig = LabelsConfig()
_theme: str = "light"

DEFAULT_EVENT_COLOR = "#3788d8"

THEME_COLORS = {
    "light": {
        "background": "#ffffff",
        "cell_current": "#ffffff",
        "cell_other": "#f4f4f4",
        "text_current": "#202020",
        "text_other": "#a0a0a0",
        "cell_border": "#dddddd",
        "header_background": "#eeeeee",
        "today_background": "#3788d8",
        "today_text": "#ffffff",
        "secondary_text": "#666666",
        "selected_border": "#000000",
    },
    "dark": {
        "background": "#1e1e1e",
        "cell_current": "#262626",
        "cell_other": "#1b1b1b",
        "text_current": "#e6e6e6",
        "text_other": "#6a6a6a",
        "cell_border": "#3a3a3a",
        "header_background": "#303030",
        "today_background": "#5a9ee6",
        "today_text": "#000000",
        "secondary_text": "#aaaaaa",
        "selected_border": "#ffffff",
    },
}

MOVE_STEP_DAY = timedelta(days=1)
MOVE_STEP_HOUR = timedelta(hours=1)
RESIZE_STEP = timedelta(minutes=30)

# Rows per month cell, the "more" row included
MAX_CELL_ROWS = 4


def set_localization_config(config: LocalizationConfig):
    """Set the localization configuration for this module."""
    global _localization_config
    _localization_config = config


def set_labels_config(config: LabelsConfig):
    """Set the labels configuration for this module."""
    global _labels_config
    _labels_config = config


def set_theme(theme: str):
    """Select the color theme ("light" or "dark") used by newly styled widgets."""
    global _theme
    if theme not in THEME_COLORS:
        raise ValueError(f"Unknown theme {theme!r}")
    _theme = theme


def get_colors() -> dict:
    return THEME_COLORS[_theme]


def get_contrasting_text_color(bg_color: str) -> str:
    """Calculate whether black or white text contrasts better with the background."""
    color = bg_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return "#000000"

    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return "#000000" if luminance > 0.5 else "#ffffff"


def lighten_color(hex_color: str, factor: float = 0.3) -> str:
    """Lighten a hex color by the given factor."""
    color = hex_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return hex_color

    r = int(min(255, r + (255 - r) * factor))
    g = int(min(255, g + (255 - g) * factor))
    b = int(min(255, b + (255 - b) * factor))

    return f"#{r:02x}{g:02x}{b:02x}"


def events_in_window(events, window: ViewWindow) -> list[CalEvent]:
    """Items overlapping the window, in chronological order."""
    visible = [
        e for e in events
        if e.start < window.end and (e.end > window.start or e.start >= window.start)
    ]
    return sorted(visible, key=lambda e: (e.start, e.id))


def _display_title(event: CalEvent) -> str:
    # Recurring series and their occurrences get a marker
    if event.is_recurring or event.is_instance:
        return f"↻ {event.title}"
    return event.title


def _days_covered(event: CalEvent) -> tuple[date, date]:
    """First and last local day an item is shown on."""
    start_day = to_local_naive(event.start).date()
    end_day = to_local_naive(event.end).date()
    if event.all_day and end_day > start_day:
        # All-day ends are exclusive midnights
        end_day -= timedelta(days=1)
    if not event.all_day:
        end_day = start_day
    return start_day, end_day


def split_cell_events(events: list[CalEvent], max_rows: int = MAX_CELL_ROWS) -> tuple[list[CalEvent], list[CalEvent]]:
    """
    Split a day's items into the chips to show and the ones behind "+N more".

    When the items overflow, the last row goes to the "more" label, so at
    most max_rows - 1 chips are shown.
    """
    if max_rows < 1 or len(events) <= max_rows:
        return list(events), []
    shown = max(max_rows - 1, 0)
    return list(events[:shown]), list(events[shown:])


class EventChip(QFrame):
    """Single-line event entry inside a month cell."""

    clicked = Signal(str)

    def __init__(self, event: CalEvent, selected: bool = False, parent=None):
        super().__init__(parent)
        self.event = event
        self._selected = selected
        self._setup_ui()

    def _setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(3, 0, 3, 0)
        text = _display_title(self.event)
        if not self.event.all_day:
            text = f"{to_local_naive(self.event.start).strftime('%H:%M')} {text}"
        self._label = QLabel(text)
        layout.addWidget(self._label)
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip(self.event.description or self.event.title)

        bg = self.event.background_color or DEFAULT_EVENT_COLOR
        border = get_colors()["selected_border"] if self._selected else (self.event.border_color or bg)
        self.setStyleSheet(
            f"EventChip {{ background-color: {bg}; border: 1px solid {border}; border-radius: 3px; }}"
            f"QLabel {{ color: {get_contrasting_text_color(bg)}; background: transparent; border: none; }}"
        )
        fm = QFontMetrics(self.font())
        self.setMaximumHeight(fm.height() + 4)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.event.id)
            event.accept()
            return
        super().mousePressEvent(event)


class MonthDayCell(QFrame):
    """Single day cell in month view."""

    clicked = Signal(object, bool)  # date, shift held
    event_clicked = Signal(str)

    def __init__(self, d: date, is_current_month: bool = True, parent=None):
        super().__init__(parent)
        self._date = d
        self.is_current_month = is_current_month
        self._chips: list[EventChip] = []
        self._more_label: Optional[QLabel] = None
        self._setup_ui()

    @property
    def date(self):
        return self._date

    def _setup_ui(self):
        self.setFrameStyle(QFrame.Box | QFrame.Plain)
        fm = QFontMetrics(self.font())
        self.setMinimumSize(max(fm.horizontalAdvance("00") + 16, 60), max(3 * fm.height() + 12, 60))
        self.setCursor(Qt.PointingHandCursor)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self._day_label = QLabel(str(self._date.day))
        self._day_label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        layout.addWidget(self._day_label)

        self._events_layout = QVBoxLayout()
        self._events_layout.setSpacing(1)
        layout.addLayout(self._events_layout)
        layout.addStretch()

        self._update_style()

    def _update_style(self):
        colors = get_colors()
        bg = colors["cell_current"] if self.is_current_month else colors["cell_other"]
        text = colors["text_current"] if self.is_current_month else colors["text_other"]

        if self._date == date.today():
            self._day_label.setStyleSheet(
                f"color: {colors['today_text']}; font-weight: bold; "
                f"background: {colors['today_background']}; border-radius: 10px; padding: 2px 6px;"
            )
        else:
            self._day_label.setStyleSheet(f"color: {text};")

        self.setStyleSheet(f"MonthDayCell {{ background-color: {bg}; border: 1px solid {colors['cell_border']}; }}")

    def set_date(self, d: date, is_current_month: bool = True):
        self._date = d
        self.is_current_month = is_current_month
        self._day_label.setText(str(d.day))
        self._update_style()
        self.clear_events()

    def add_event(self, event: CalEvent, selected: bool = False):
        chip = EventChip(event, selected=selected)
        chip.clicked.connect(self.event_clicked.emit)
        self._events_layout.addWidget(chip)
        self._chips.append(chip)

    def set_events(self, events: list[CalEvent], selected_id: Optional[str] = None):
        self.clear_events()
        shown, hidden = split_cell_events(events)
        for event in shown:
            self.add_event(event, selected=event.id == selected_id)
        if hidden:
            more = QLabel(_labels_config.more_events.format(count=len(hidden)))
            more.setToolTip("\n".join(_display_title(event) for event in hidden))
            more.setStyleSheet(f"color: {get_colors()['secondary_text']}; font-size: 9pt;")
            self._events_layout.addWidget(more)
            self._more_label = more

    def clear_events(self):
        for chip in self._chips:
            chip.deleteLater()
        self._chips.clear()
        if self._more_label is not None:
            self._more_label.deleteLater()
            self._more_label = None

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._date, bool(event.modifiers() & Qt.ShiftModifier))
        super().mousePressEvent(event)


class MonthView(QWidget):
    """Month view showing a six-week calendar grid."""

    day_clicked = Signal(object, bool)
    event_clicked = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._month = date.today().replace(day=1)
        self._cells: list[MonthDayCell] = []
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        # Day name headers
        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)
        header_layout.setSpacing(1)

        self._header_labels = []
        for i in range(7):
            label = QLabel(_localization_config.get_day_name(i))
            label.setAlignment(Qt.AlignCenter)
            header_layout.addWidget(label, 1)
            self._header_labels.append(label)
        layout.addWidget(header)

        grid_widget = QWidget()
        self._grid_layout = QGridLayout(grid_widget)
        self._grid_layout.setContentsMargins(0, 0, 0, 0)
        self._grid_layout.setSpacing(1)
        for col in range(7):
            self._grid_layout.setColumnStretch(col, 1)

        for row in range(6):
            for col in range(7):
                cell = MonthDayCell(date.today())
                cell.clicked.connect(self.day_clicked.emit)
                cell.event_clicked.connect(self.event_clicked.emit)
                self._grid_layout.addWidget(cell, row, col)
                self._cells.append(cell)

        layout.addWidget(grid_widget, 1)
        self.refresh_styles()

    def refresh_styles(self):
        colors = get_colors()
        for label in self._header_labels:
            label.setStyleSheet(
                f"font-weight: bold; padding: 8px; background: {colors['header_background']}; "
                f"color: {colors['text_current']};"
            )

    def set_window(self, window: ViewWindow, reference: date):
        """Lay out the grid for the window starting at window.start."""
        self._month = reference.replace(day=1)
        grid_start = to_local_naive(window.start).date()
        for i, cell in enumerate(self._cells):
            cell_date = grid_start + timedelta(days=i)
            cell.set_date(cell_date, cell_date.month == self._month.month)

    def set_events(self, events: list[CalEvent], selected_id: Optional[str] = None):
        by_cell: list[list[CalEvent]] = [[] for _ in self._cells]
        for event in events:
            start_day, end_day = _days_covered(event)
            for i, cell in enumerate(self._cells):
                if start_day <= cell.date <= end_day:
                    by_cell[i].append(event)

        for cell, cell_events in zip(self._cells, by_cell):
            cell.set_events(cell_events, selected_id)


class ListEventWidget(QFrame):
    """Full-width event widget for list view showing all event info."""

    clicked = Signal(str)

    def __init__(self, event_data: CalEvent, selected: bool = False, parent=None):
        super().__init__(parent)
        self.event_data = event_data
        self._selected = selected
        self._setup_ui()
        self._apply_style()

    def _setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(12)

        local_start = to_local_naive(self.event_data.start)
        local_end = to_local_naive(self.event_data.end)
        if self.event_data.all_day:
            line1 = local_start.strftime("%Y/%m/%d")
            line2 = f"({_labels_config.allday_label})"
        else:
            line1 = local_start.strftime("%Y/%m/%d %H:%M")
            line2 = f"to: {local_end.strftime('%m/%d %H:%M')}"

        datetime_label = QLabel(f"{line1}\n{line2}")
        datetime_label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        fm = QFontMetrics(datetime_label.font())
        datetime_label.setFixedWidth(fm.horizontalAdvance("0000/00/00 00:00") + 8)
        layout.addWidget(datetime_label, 0, Qt.AlignTop)

        content_layout = QVBoxLayout()
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(2)

        title_row = QHBoxLayout()
        title_row.setSpacing(12)
        title_label = QLabel(_display_title(self.event_data))
        title_font = QFont(title_label.font())
        title_font.setBold(True)
        title_label.setFont(title_font)
        title_row.addWidget(title_label, 1)

        if self.event_data.extended_props.event_type:
            type_label = QLabel(self.event_data.extended_props.event_type)
            type_label.setStyleSheet(f"color: {get_colors()['secondary_text']};")
            title_row.addWidget(type_label)
        content_layout.addLayout(title_row)

        if self.event_data.location:
            content_layout.addWidget(QLabel(f" {self.event_data.location}"))

        if self.event_data.description:
            desc = self.event_data.description.replace('\n', ' ').replace('\r', '')
            if len(desc) > 200:
                desc = desc[:200] + "..."
            desc_label = QLabel(desc)
            desc_label.setWordWrap(True)
            content_layout.addWidget(desc_label)

        layout.addLayout(content_layout, 1)

        self.setFrameStyle(QFrame.StyledPanel | QFrame.Plain)
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Minimum)

    def _apply_style(self):
        bg_color = self.event_data.background_color or DEFAULT_EVENT_COLOR
        border_color = get_colors()["selected_border"] if self._selected else (self.event_data.border_color or bg_color)
        bg_lighter = lighten_color(bg_color, 0.4)
        text_color = get_contrasting_text_color(bg_lighter)

        self.setStyleSheet(f"""
            ListEventWidget {{
                background-color: {bg_lighter};
                border: 2px solid {border_color};
                border-left: 4px solid {border_color};
                border-radius: 4px;
            }}
            ListEventWidget:hover {{
                background-color: {lighten_color(bg_color, 0.2)};
            }}
            QLabel {{
                color: {text_color};
                background: transparent;
                border: none;
            }}
        """)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.event_data.id)
        super().mousePressEvent(event)


class DayHeader(QLabel):
    """Clickable date heading in list view."""

    clicked = Signal(object, bool)

    def __init__(self, d: date, parent=None):
        super().__init__(parent)
        self._date = d
        day_name = _localization_config.get_day_name(d.weekday())
        month_name = _localization_config.get_month_name(d.month)
        self.setText(f"{day_name} {d.day} {month_name} {d.year}")
        colors = get_colors()
        self.setStyleSheet(
            f"font-weight: bold; padding: 4px; background: {colors['header_background']}; "
            f"color: {colors['text_current']};"
        )
        self.setCursor(Qt.PointingHandCursor)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._date, bool(event.modifiers() & Qt.ShiftModifier))
        super().mousePressEvent(event)


class ListView(QWidget):
    """Chronological list of the items in the window, grouped by day."""

    day_clicked = Signal(object, bool)
    event_clicked = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._widgets: list[QWidget] = []
        self._setup_ui()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        self._content = QWidget()
        self._content_layout = QVBoxLayout(self._content)
        self._content_layout.setContentsMargins(8, 8, 8, 8)
        self._content_layout.setSpacing(4)
        self._content_layout.addStretch()  # Keep events at top

        self._scroll.setWidget(self._content)
        main_layout.addWidget(self._scroll)

    def set_events(self, events: list[CalEvent], selected_id: Optional[str] = None):
        """Rebuild the list from items already sorted chronologically."""
        for widget in self._widgets:
            widget.deleteLater()
        self._widgets.clear()

        stretch_item = self._content_layout.takeAt(self._content_layout.count() - 1)

        if not events:
            empty = QLabel(_labels_config.no_events)
            empty.setAlignment(Qt.AlignCenter)
            self._content_layout.addWidget(empty)
            self._widgets.append(empty)

        current_day = None
        for event in events:
            day = to_local_naive(event.start).date()
            if day != current_day:
                header = DayHeader(day)
                header.clicked.connect(self.day_clicked.emit)
                self._content_layout.addWidget(header)
                self._widgets.append(header)
                current_day = day
            widget = ListEventWidget(event, selected=event.id == selected_id)
            widget.clicked.connect(self.event_clicked.emit)
            self._content_layout.addWidget(widget)
            self._widgets.append(widget)

        self._content_layout.addItem(stretch_item)


class CalendarWidget(QWidget):
    """
    Main calendar widget with switchable views.

    Drag and resize move the item in the displayed set right away and hand
    a revert callable along with the signal, so the receiver can undo it.
    """

    date_clicked = Signal(object)               # date
    range_selected = Signal(object, object)     # first day, day after last (exclusive)
    event_clicked = Signal(str)                 # item id
    event_dropped = Signal(str, object, object, bool, object)  # id, start, end, all_day, revert
    event_resized = Signal(str, object, object, object)        # id, start, end, revert

    def __init__(self, displayed: DisplayedEvents, view_state: ViewState, parent=None):
        super().__init__(parent)
        self._displayed = displayed
        self._view_state = view_state
        self._selected_id: Optional[str] = None
        self._anchor_day: Optional[date] = None
        self.setFocusPolicy(Qt.StrongFocus)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._stack = QStackedWidget()
        self._month_view = MonthView()
        self._list_view = ListView()

        for view in (self._month_view, self._list_view):
            view.day_clicked.connect(self._on_day_clicked)
            view.event_clicked.connect(self._on_event_clicked)
            self._stack.addWidget(view)

        layout.addWidget(self._stack)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def refresh(self):
        """Re-render the current view from the displayed set."""
        window = self._view_state.window
        visible = events_in_window(self._displayed, window)
        if self._selected_id is not None and self._selected_id not in self._displayed:
            self._selected_id = None

        if self._view_state.view == ViewType.MONTH:
            self._stack.setCurrentWidget(self._month_view)
            self._month_view.set_window(window, self._view_state.current_date)
            self._month_view.set_events(visible, self._selected_id)
        else:
            self._stack.setCurrentWidget(self._list_view)
            self._list_view.set_events(visible, self._selected_id)

    def refresh_styles(self):
        self._month_view.refresh_styles()
        self.refresh()

    # ==================== Clicks ====================

    def _on_day_clicked(self, d: date, extend: bool):
        if extend and self._anchor_day is not None and self._anchor_day != d:
            first, last = sorted((self._anchor_day, d))
            self._anchor_day = None
            self.range_selected.emit(first, last + timedelta(days=1))
            return
        self._anchor_day = d
        self.date_clicked.emit(d)

    def _on_event_clicked(self, item_id: str):
        self._selected_id = item_id
        self.setFocus()
        self.event_clicked.emit(item_id)
        self.refresh()

    # ==================== Keyboard Move / Resize ====================

    def move_selected(self, delta: timedelta) -> bool:
        """Shift the selected item by delta. Returns False if nothing is selected."""
        item = self._displayed.get_by_id(self._selected_id) if self._selected_id else None
        if item is None:
            return False
        # Shift wall-clock time so DST does not change the displayed hour
        start = localize(to_local_naive(item.start) + delta)
        end = start + item.duration
        revert = self._displayed.move(item.id, start, end)
        self.event_dropped.emit(item.id, start, end, item.all_day, revert)
        return True

    def resize_selected(self, delta: timedelta) -> bool:
        """Change the selected item's end by delta (never before its start)."""
        item = self._displayed.get_by_id(self._selected_id) if self._selected_id else None
        if item is None:
            return False
        end = max(item.start, item.end + delta)
        revert = self._displayed.move(item.id, item.start, end)
        self.event_resized.emit(item.id, item.start, end, revert)
        return True

    def keyPressEvent(self, event: QKeyEvent):
        modifiers = event.modifiers()
        if self._selected_id is None or not modifiers & Qt.AltModifier:
            super().keyPressEvent(event)
            return

        key = event.key()
        if modifiers & Qt.ShiftModifier and key in (Qt.Key_Up, Qt.Key_Down):
            self.resize_selected(RESIZE_STEP if key == Qt.Key_Down else -RESIZE_STEP)
        elif key == Qt.Key_Left:
            self.move_selected(-MOVE_STEP_DAY)
        elif key == Qt.Key_Right:
            self.move_selected(MOVE_STEP_DAY)
        elif key == Qt.Key_Up:
            self.move_selected(-MOVE_STEP_HOUR)
        elif key == Qt.Key_Down:
            self.move_selected(MOVE_STEP_HOUR)
        else:
            super().keyPressEvent(event)
            return
        event.accept()
