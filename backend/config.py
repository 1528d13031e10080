"""
Configuration parser for the event calendar.

Handles TOML file parsing into typed dataclasses.
"""

import tomllib
import os
import sys
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


KNOWN_VIEWS = ("month", "week", "day", "list")


@dataclass
class ServerConfig:
    """Connection settings for the remote authority."""
    url: str = "http://localhost:4000/api/calendar"
    timeout: int = 30        # Request timeout in seconds
    poll_interval: int = 5   # Seconds between update polls (0 to disable)


@dataclass
class ViewsConfig:
    """Which calendar views are available, and the one shown at startup."""
    enabled: list[str] = field(default_factory=lambda: ["month", "list"])
    initial: str = "month"

    def __post_init__(self):
        unknown = [v for v in self.enabled if v not in KNOWN_VIEWS]
        if unknown:
            raise ValueError(f"Unknown views in [Views] enabled: {unknown}")
        if not self.enabled:
            raise ValueError("[Views] enabled must list at least one view")
        if self.initial not in self.enabled:
            raise ValueError(f"Initial view {self.initial!r} is not enabled")


@dataclass
class LabelsConfig:
    """Configuration for UI labels."""
    window_title: str = "Event Calendar"

    view_day: str = "Day"
    view_week: str = "Week"
    view_month: str = "Month"
    view_list: str = "List"

    button_prev: str = "◀"
    button_next: str = "▶"
    button_today: str = "Today"
    button_reload: str = "Reload"
    button_theme: str = "Dark Mode"
    button_quit: str = "Quit"

    allday_label: str = "All day"
    no_events: str = "No events"
    fetch_failed: str = "Failed to fetch events"
    more_events: str = "+{count} more"


@dataclass
class LocalizationConfig:
    """Configuration for localized day and month names."""
    # Default to English abbreviated day names
    day_names: list[str] = None  # Mon Tue Wed Thu Fri Sat Sun
    # Default to English full month names
    month_names: list[str] = None  # January February ... December

    def __post_init__(self):
        if self.day_names is None:
            self.day_names = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        if self.month_names is None:
            self.month_names = [
                "January", "February", "March", "April", "May", "June",
                "July", "August", "September", "October", "November", "December"
            ]

    def get_day_name(self, weekday: int) -> str:
        """Get localized day name for weekday (0=Monday, 6=Sunday)."""
        return self.day_names[weekday] if 0 <= weekday < len(self.day_names) else ""

    def get_month_name(self, month: int) -> str:
        """Get localized month name (1=January, 12=December)."""
        return self.month_names[month - 1] if 1 <= month <= len(self.month_names) else ""


@dataclass
class Config:
    """Main configuration container for the event calendar."""

    state_file: Path
    download_dir: Path
    is_admin: bool = False
    timezone: str = "Europe/Amsterdam"
    server: ServerConfig = field(default_factory=ServerConfig)
    views: ViewsConfig = field(default_factory=ViewsConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'event-calendar' / 'event-calendar.toml'

    @classmethod
    def get_default_state_path(cls) -> Path:
        """Get the default state file path."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'event-calendar' / 'state.json'

    @classmethod
    def get_default_download_dir(cls) -> Path:
        return Path(os.path.expanduser('~/Downloads'))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Build a Config from parsed TOML data (missing keys use defaults)."""
        print(f"DEBUG: TOML data keys: {list(data.keys())}", file=sys.stderr)

        # Parse General section
        general = data.get('General', {})
        is_admin = general.get('is_admin', False)
        if not isinstance(is_admin, bool):
            raise ValueError(f"[General] is_admin must be true or false, got {is_admin!r}")

        state_file_str = general.get('state_file', str(cls.get_default_state_path()))
        state_file = Path(os.path.expanduser(state_file_str))
        download_dir_str = general.get('download_dir', str(cls.get_default_download_dir()))
        download_dir = Path(os.path.expanduser(download_dir_str))

        # Parse Server section
        server_data = data.get('Server', {})
        server = ServerConfig(
            url=server_data.get('url', ServerConfig.url).rstrip('/'),
            timeout=server_data.get('timeout', ServerConfig.timeout),
            poll_interval=server_data.get('poll_interval', ServerConfig.poll_interval),
        )
        print(f"DEBUG: Remote authority at {server.url}", file=sys.stderr)

        # Parse Views section
        views_data = data.get('Views', {})
        enabled = views_data.get('enabled')
        views = ViewsConfig(
            enabled=list(enabled) if enabled is not None else ["month", "list"],
            initial=views_data.get('initial', 'month'),
        )

        # Parse Localization section
        localization_data = data.get('Localization', {})
        day_names_str = localization_data.get('day_names', '')
        month_names_str = localization_data.get('month_names', '')

        # Parse space-separated day names (if provided)
        day_names = day_names_str.split() if day_names_str else None
        # Parse space-separated month names (if provided)
        month_names = month_names_str.split() if month_names_str else None

        localization = LocalizationConfig(
            day_names=day_names,
            month_names=month_names
        )

        # Parse Labels section
        labels_data = data.get('Labels', {})
        labels = LabelsConfig(**{
            name: labels_data.get(name, getattr(LabelsConfig, name))
            for name in LabelsConfig.__dataclass_fields__
        })

        return cls(
            state_file=state_file,
            download_dir=download_dir,
            is_admin=is_admin,
            timezone=general.get('timezone', 'Europe/Amsterdam'),
            server=server,
            views=views,
            localization=localization,
            labels=labels,
        )
