"""
Host-facing snapshot triggers.

The desktop host calls these on user action (never over HTTP):

- `backup_source_files` -> `{"success": bool, "path"?: str, "error"?: str}`
- `get_latest_backup`   -> `{"success": bool, "path"?: str, "files"?: [str], "error"?: str}`

Both are coroutines. The blocking filesystem work runs in a worker thread via
`asyncio.to_thread`, so an event loop owned by the host keeps running.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from mindgate.backup.manifest import ArtifactManifest
from mindgate.backup.store import BackupError, Snapshot, SnapshotStore
from mindgate.core.result import Result


class BackupResponse(BaseModel):
    """Payload of `backup-source-files`."""

    success: bool
    path: str | None = None
    error: str | None = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LatestBackupResponse(BaseModel):
    """Payload of `get-latest-backup`."""

    success: bool
    path: str | None = None
    files: list[str] | None = Field(default=None)
    error: str | None = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def to_backup_response(result: Result[Snapshot, BackupError]) -> BackupResponse:
    if result.is_ok():
        return BackupResponse(success=True, path=str(result.unwrap().path))
    return BackupResponse(success=False, error=result.unwrap_err().message)


def to_latest_response(result: Result[Snapshot, BackupError]) -> LatestBackupResponse:
    if result.is_ok():
        snap = result.unwrap()
        return LatestBackupResponse(success=True, path=str(snap.path), files=list(snap.files))
    return LatestBackupResponse(success=False, error=result.unwrap_err().message)


async def backup_source_files(store: SnapshotStore, manifest: ArtifactManifest) -> BackupResponse:
    result = await asyncio.to_thread(store.create_snapshot, manifest)
    return to_backup_response(result)


async def get_latest_backup(store: SnapshotStore) -> LatestBackupResponse:
    result = await asyncio.to_thread(store.get_latest_snapshot)
    return to_latest_response(result)


__all__ = [
    "BackupResponse",
    "LatestBackupResponse",
    "backup_source_files",
    "get_latest_backup",
    "to_backup_response",
    "to_latest_response",
]
