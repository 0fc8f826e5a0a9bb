"""Centralized gateway configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

Filesystem layout
-----------------
Everything the shell ships lives under `app_root`:

    <app_root>/main.js, preload.js, package.json   (host sources)
    <app_root>/app/                                (static web UI)
    <app_root>/app/Backups/<DD-MM-YY>/<HHMM>/      (snapshots)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_PORT = 9876
DEFAULT_UPSTREAM = "http://localhost:11434"
DEFAULT_PROXY_PREFIX = "/ollama"


class Settings(BaseSettings):
    """Typed gateway configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `MINDGATE_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    host, port :
        Listening address of the gateway. Localhost only by default.
    app_root : Path
        Directory holding the host sources and the bundled `app/` UI.
    upstream_url : str
        Origin of the local inference service.
    proxy_prefix : str
        Request path prefix that is stripped and forwarded upstream.
    """

    environment: EnvName = Field(default="dev", alias="MINDGATE_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="127.0.0.1", alias="MINDGATE_HOST")
    port: int = Field(default=DEFAULT_PORT, alias="MINDGATE_PORT")
    app_root: Path = Field(default_factory=Path.cwd, alias="MINDGATE_APP_ROOT")
    upstream_url: str = Field(default=DEFAULT_UPSTREAM, alias="MINDGATE_UPSTREAM_URL")
    proxy_prefix: str = Field(default=DEFAULT_PROXY_PREFIX, alias="MINDGATE_PROXY_PREFIX")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def static_dir(self) -> Path:
        """Directory served at `/`."""
        return self.app_root / "app"

    @property
    def backup_root(self) -> Path:
        """Root of the `<DD-MM-YY>/<HHMM>` snapshot tree."""
        return self.static_dir / "Backups"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("MINDGATE_ENV", "dev")
    return Settings()


# Import-time read of env / .env files.
settings: Settings = load_settings()


def get_logger(name: str = "mindgate") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
