"""
Gateway server lifecycle.

`GatewayServer` is the one object the desktop host keeps for its lifetime. It

- serves the `RequestRouter` app with uvicorn on a background thread
  (`start` / `stop`),
- exposes the two snapshot triggers (`backup_source_files`,
  `get_latest_backup`) built from a `SnapshotStore` and the default manifest.

`stop` may be called before `start`, or more than once.

Usage
-----
>>> server = GatewayServer()
>>> server.start()
>>> ...  # host window loads http://127.0.0.1:9876
>>> server.stop()
"""

from __future__ import annotations

import threading
import time

import uvicorn

from mindgate.backup.manifest import ArtifactManifest, default_manifest
from mindgate.backup.store import SnapshotStore
from mindgate.backup.triggers import BackupResponse, LatestBackupResponse
from mindgate.backup.triggers import backup_source_files as run_backup
from mindgate.backup.triggers import get_latest_backup as run_latest
from mindgate.core.settings import Settings, get_logger, load_settings
from mindgate.gateway.router import create_app

logger = get_logger(__name__)

STARTUP_TIMEOUT_S = 10.0


class GatewayServer:
    """Own the listening socket and the snapshot store for one host process."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: SnapshotStore | None = None,
        manifest: ArtifactManifest | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.store = store or SnapshotStore(self.settings.backup_root)
        self.manifest = manifest or default_manifest(self.settings.app_root)
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"http://{self.settings.host}:{self.settings.port}"

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Bind the port and begin accepting connections.

        Blocks until uvicorn reports it is listening. Calling `start` on a
        running server does nothing.
        """
        with self._lock:
            if self.is_running:
                return
            config = uvicorn.Config(
                create_app(self.settings),
                host=self.settings.host,
                port=self.settings.port,
                log_level=self.settings.log_level.lower(),
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(target=server.run, name="mindgate-server", daemon=True)
            thread.start()

            deadline = time.monotonic() + STARTUP_TIMEOUT_S
            while not server.started:
                if not thread.is_alive() or time.monotonic() > deadline:
                    server.should_exit = True
                    thread.join()
                    raise RuntimeError(f"Gateway failed to start on {self.url}")
                time.sleep(0.05)

            self._server = server
            self._thread = thread
            logger.info("MIND server running at %s", self.url)

    def stop(self) -> None:
        """Close the listening socket and wait for the server thread."""
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
            if server is None or thread is None:
                return
            logger.info("Shutting down MIND server...")
            server.should_exit = True
            thread.join()

    async def backup_source_files(self) -> BackupResponse:
        return await run_backup(self.store, self.manifest)

    async def get_latest_backup(self) -> LatestBackupResponse:
        return await run_latest(self.store)

    def __enter__(self) -> GatewayServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["GatewayServer"]
