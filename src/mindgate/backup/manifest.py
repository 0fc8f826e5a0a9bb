"""Static list of source artifacts copied into every snapshot."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ArtifactEntry:
    """One file to copy: `source` on disk, stored as `name` in the snapshot."""

    source: Path
    name: str


@dataclass(frozen=True, slots=True)
class ArtifactManifest:
    """Ordered, immutable collection of `ArtifactEntry` items."""

    entries: tuple[ArtifactEntry, ...]

    def __iter__(self) -> Iterator[ArtifactEntry]:
        return iter(self.entries)


# (path relative to app root, name inside the snapshot)
SOURCE_ARTIFACTS: tuple[tuple[str, str], ...] = (
    ("main.js", "main.js"),
    ("preload.js", "preload.js"),
    ("package.json", "package.json"),
    ("app/index.html", "index.html"),
)


def default_manifest(app_root: Path) -> ArtifactManifest:
    """Build the shell's manifest with sources resolved against `app_root`."""
    return ArtifactManifest(
        entries=tuple(ArtifactEntry(source=app_root / rel, name=name) for rel, name in SOURCE_ARTIFACTS)
    )


__all__ = ["ArtifactEntry", "ArtifactManifest", "SOURCE_ARTIFACTS", "default_manifest"]
