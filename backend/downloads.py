"""
Download trigger: saves content pushed by the remote authority to disk.

The authority sends iCal exports as (content, filename). Files go into the
configured download directory; existing files are never overwritten.
"""

from datetime import datetime
from pathlib import Path
import sys

from icalendar import Calendar as ICalCalendar


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] DOWNLOAD: {msg}", file=sys.stderr)


def _safe_filename(filename: str) -> str:
    name = Path(filename.replace('\\', '/')).name.strip()
    return name or "download"


def _unique_path(directory: Path, filename: str) -> Path:
    target = directory / filename
    stem, suffix = target.stem, target.suffix
    n = 1
    while target.exists():
        target = directory / f"{stem} ({n}){suffix}"
        n += 1
    return target


def count_ical_events(content: bytes) -> int:
    """Number of VEVENTs in an iCalendar payload. Raises ValueError if unparseable."""
    calendar = ICalCalendar.from_ical(content)
    return sum(1 for component in calendar.walk() if component.name == 'VEVENT')


class DownloadTrigger:
    """Writes downloads into a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def save(self, content: bytes, filename: str) -> Path:
        """
        Save content under filename (path components are stripped).

        Returns the path written.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        target = _unique_path(self.directory, _safe_filename(filename))
        target.write_bytes(content)

        if target.suffix.lower() == '.ics':
            try:
                _debug_print(f"Saved {target} ({count_ical_events(content)} events)")
            except ValueError as e:
                _debug_print(f"Saved {target} (not valid iCalendar: {e})")
        else:
            _debug_print(f"Saved {target} ({len(content)} bytes)")
        return target
