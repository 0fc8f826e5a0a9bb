"""Timestamped snapshots of the shell's source artifacts.

Public surface:
    from mindgate.backup import SnapshotStore, default_manifest, resolve_snapshot_path
"""

from __future__ import annotations

from mindgate.backup.manifest import ArtifactEntry, ArtifactManifest, default_manifest
from mindgate.backup.paths import SnapshotLocation, resolve_snapshot_path
from mindgate.backup.store import BackupError, BackupErrorKind, Snapshot, SnapshotStore

__all__ = [
    "ArtifactEntry",
    "ArtifactManifest",
    "BackupError",
    "BackupErrorKind",
    "Snapshot",
    "SnapshotLocation",
    "SnapshotStore",
    "default_manifest",
    "resolve_snapshot_path",
]
