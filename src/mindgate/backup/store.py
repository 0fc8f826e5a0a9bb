"""
Versioned snapshots of the shell's source artifacts.

`SnapshotStore` owns two stateless operations:

- `create_snapshot`: copy every manifest entry whose source exists into
  `<root>/<DD-MM-YY>/<HHMM>/`. Missing sources are skipped without a record.
- `get_latest_snapshot`: walk the date level, then the time level, and list
  the files of the newest snapshot.

Failure Policy
--------------
Neither operation raises. Filesystem errors and unusable paths (such as an
embedded NUL byte, which `pathlib` reports as `ValueError`) become
`Err(BackupError(IO_FAILURE, ...))`, an absent or empty tree becomes
`Err(BackupError(NOT_FOUND, ...))`. Files already copied when a later copy
fails are left in place.

Concurrency
-----------
There is no lock. Two creates in the same minute share a directory
(`mkdir(exist_ok=True)`), and each copy targets its own file name. A listing
running alongside a create may or may not observe the new snapshot.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from mindgate.backup.manifest import ArtifactManifest
from mindgate.backup.paths import chronological_key, is_date_key, resolve_snapshot_path
from mindgate.core.result import Result, err, ok
from mindgate.core.settings import get_logger

logger = get_logger(__name__)

NO_BACKUPS_MESSAGE = "No backups found"

Clock = Callable[[], datetime]


class BackupErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    IO_FAILURE = "io_failure"


@dataclass(frozen=True, slots=True)
class BackupError:
    """Why a snapshot operation failed; `message` is shown to the user as-is."""

    kind: BackupErrorKind
    message: str


@dataclass(frozen=True, slots=True)
class Snapshot:
    """
    One timestamp-addressed copy of the artifact set.

    Attributes
    ----------
    date_key : str
        `DD-MM-YY` directory name.
    time_key : str
        `HHMM` directory name.
    path : Path
        Absolute snapshot directory.
    files : tuple[str, ...]
        File names inside the directory.
    """

    date_key: str
    time_key: str
    path: Path
    files: tuple[str, ...]


def _not_found() -> Result[Snapshot, BackupError]:
    return err(BackupError(BackupErrorKind.NOT_FOUND, NO_BACKUPS_MESSAGE))


def _subdirectories(parent: Path) -> list[str]:
    return [entry.name for entry in parent.iterdir() if entry.is_dir()]


def _latest_date(names: list[str]) -> str:
    # Well-formed DD-MM-YY names outrank anything else, then calendar order.
    return max(names, key=lambda name: (is_date_key(name), chronological_key(name)))


def _latest_time(names: list[str]) -> str:
    return max(names, key=lambda name: (len(name) == 4 and name.isdigit(), name))


class SnapshotStore:
    """Create and look up snapshots under a single backup root."""

    def __init__(self, root: Path, clock: Clock = datetime.now) -> None:
        self.root = root
        self._clock = clock

    def create_snapshot(self, manifest: ArtifactManifest) -> Result[Snapshot, BackupError]:
        """Copy the existing manifest sources into a new timestamped directory."""
        location = resolve_snapshot_path(self._clock(), self.root)
        copied: list[str] = []
        try:
            location.path.mkdir(parents=True, exist_ok=True)
            for entry in manifest:
                if not entry.source.is_file():
                    continue
                shutil.copyfile(entry.source, location.path / entry.name)
                copied.append(entry.name)
        except (OSError, ValueError) as exc:
            logger.exception("Backup failed: %s", exc)
            return err(BackupError(BackupErrorKind.IO_FAILURE, str(exc)))

        logger.info("Backup written to %s (%d files)", location.path, len(copied))
        return ok(
            Snapshot(
                date_key=location.date_key,
                time_key=location.time_key,
                path=location.path.resolve(),
                files=tuple(copied),
            )
        )

    def get_latest_snapshot(self) -> Result[Snapshot, BackupError]:
        """Return the newest `<date>/<time>` directory and its file names."""
        try:
            if not self.root.is_dir():
                return _not_found()

            dates = _subdirectories(self.root)
            if not dates:
                return _not_found()
            date_key = _latest_date(dates)

            times = _subdirectories(self.root / date_key)
            if not times:
                return _not_found()
            time_key = _latest_time(times)

            latest = self.root / date_key / time_key
            files = sorted(entry.name for entry in latest.iterdir() if entry.is_file())
        except (OSError, ValueError) as exc:
            logger.error("Could not read backups under %s: %s", self.root, exc)
            return err(BackupError(BackupErrorKind.IO_FAILURE, str(exc)))

        return ok(Snapshot(date_key=date_key, time_key=time_key, path=latest.resolve(), files=tuple(files)))


__all__ = [
    "BackupError",
    "BackupErrorKind",
    "NO_BACKUPS_MESSAGE",
    "Snapshot",
    "SnapshotStore",
]
