"""
Tests for `GatewayServer` lifecycle and its snapshot operations.

The lifecycle tests bind port 0 so the OS picks a free port.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mindgate.core.settings import Settings
from mindgate.gateway.server import GatewayServer


@pytest.fixture  # type: ignore[misc]
def app_root(tmp_path: Path) -> Path:
    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "index.html").write_text("<h1>MIND</h1>", encoding="utf-8")
    (tmp_path / "main.js").write_text("// main", encoding="utf-8")
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    return tmp_path


def test_stop_before_start_is_a_no_op(app_root: Path) -> None:
    server = GatewayServer(Settings(app_root=app_root, port=0))
    server.stop()
    server.stop()
    assert not server.is_running


def test_start_then_stop_twice(app_root: Path) -> None:
    server = GatewayServer(Settings(app_root=app_root, port=0, log_level="WARNING"))

    server.start()
    assert server.is_running

    server.stop()
    assert not server.is_running
    server.stop()


def test_context_manager_stops_on_exit(app_root: Path) -> None:
    with GatewayServer(Settings(app_root=app_root, port=0, log_level="WARNING")) as server:
        assert server.is_running
    assert not server.is_running


def test_backup_then_latest_use_default_layout(app_root: Path) -> None:
    """Snapshots land in app/Backups and `get_latest_backup` finds them."""
    server = GatewayServer(Settings(app_root=app_root))

    created = asyncio.run(server.backup_source_files())
    latest = asyncio.run(server.get_latest_backup())

    assert created.success is True
    assert created.path is not None
    assert Path(created.path).parent.parent == (app_root / "app" / "Backups").resolve()
    assert latest.success is True
    assert latest.path == created.path
    # preload.js is absent from this checkout and silently skipped.
    assert sorted(latest.files or []) == ["index.html", "main.js", "package.json"]


def test_latest_without_backups_reports_failure(app_root: Path) -> None:
    server = GatewayServer(Settings(app_root=app_root))

    latest = asyncio.run(server.get_latest_backup())

    assert latest.success is False
    assert latest.error == "No backups found"
    assert latest.payload() == {"success": False, "error": "No backups found"}


def test_backup_failure_is_reported_not_raised(app_root: Path) -> None:
    (app_root / "app" / "Backups").write_text("blocking file", encoding="utf-8")
    server = GatewayServer(Settings(app_root=app_root))

    created = asyncio.run(server.backup_source_files())

    assert created.success is False
    assert created.error
    assert created.path is None
