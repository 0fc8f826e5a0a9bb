"""
Snapshot directory naming.

Snapshots are addressed as `<root>/<DD-MM-YY>/<HHMM>`. Both keys are built from
integer fields with explicit zero padding so the result never depends on the
host locale (no `strftime("%x")`, no locale separators).

`DD-MM-YY` is the on-disk layout users browse, but it is day-first, so plain
string order of date keys is not calendar order across months. Use
`chronological_key` whenever two date directories are compared.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DATE_SEPARATOR = "-"
_DATE_KEY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{2})$")


@dataclass(frozen=True, slots=True)
class SnapshotLocation:
    """Resolved address of one snapshot directory.

    Attributes
    ----------
    date_key : str
        `DD-MM-YY`, always 8 characters.
    time_key : str
        `HHMM` in 24-hour time, always 4 characters.
    path : Path
        `root / date_key / time_key`.
    """

    date_key: str
    time_key: str
    path: Path

    @property
    def sort_key(self) -> str:
        """`YYMMDDHHMM`; string order equals chronological order."""
        return chronological_key(self.date_key) + self.time_key


def format_date_key(now: datetime) -> str:
    return DATE_SEPARATOR.join(
        (f"{now.day:02d}", f"{now.month:02d}", f"{now.year % 100:02d}")
    )


def format_time_key(now: datetime) -> str:
    return f"{now.hour:02d}{now.minute:02d}"


def chronological_key(date_key: str) -> str:
    """Reorder a `DD-MM-YY` key as `YYMMDD`.

    Names that are not date keys are returned unchanged; callers rank them
    below well-formed keys.
    """
    match = _DATE_KEY_RE.match(date_key)
    if match is None:
        return date_key
    day, month, year = match.groups()
    return f"{year}{month}{day}"


def is_date_key(name: str) -> bool:
    return _DATE_KEY_RE.match(name) is not None


def resolve_snapshot_path(now: datetime, root: Path) -> SnapshotLocation:
    """Compute the snapshot directory for timestamp `now` under `root`.

    Two calls within the same minute return the same path.
    """
    date_key = format_date_key(now)
    time_key = format_time_key(now)
    return SnapshotLocation(date_key=date_key, time_key=time_key, path=root / date_key / time_key)


__all__ = [
    "SnapshotLocation",
    "chronological_key",
    "format_date_key",
    "format_time_key",
    "is_date_key",
    "resolve_snapshot_path",
]
