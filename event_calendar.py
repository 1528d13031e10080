#!/usr/bin/env python3
"""
Event Calendar - a PySide6 desktop calendar kept in sync with a remote event server.

This is the main entry point for the application.
"""

import sys
import argparse
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from backend.config import Config
from backend.network_worker import shutdown_network_worker
from backend.timezone_utils import set_timezone
from gui.main_window import MainWindow


EXAMPLE_CONFIG = """
[General]
is_admin = false
timezone = "Europe/Amsterdam"

[Server]
url = "https://calendar.example.com/api/calendar"
poll_interval = 5

[Views]
enabled = ["month", "list"]
initial = "month"
"""


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Event Calendar - an interactive calendar for a remote event server"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--admin",
        action="store_true",
        help="Allow creating and moving events (overrides [General] is_admin)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    return parser.parse_args(argv)


def load_config(args) -> Config:
    """Load the configuration, exiting with status 1 if it is missing or invalid."""
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print(EXAMPLE_CONFIG)
        sys.exit(1)
    except (ValueError, TypeError) as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    if args.admin:
        config.is_admin = True
    return config


def main():
    """Main entry point."""
    args = parse_args()

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Event Calendar")
    app.setApplicationVersion("0.1")
    app.setStyle("Fusion")

    config = load_config(args)
    set_timezone(config.timezone)

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  Server: {config.server.url}")
        print(f"  Admin: {config.is_admin}")
        print(f"  Views: {', '.join(config.views.enabled)}")

    window = MainWindow(config)
    window.show()

    exit_code = app.exec()
    shutdown_network_worker()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
