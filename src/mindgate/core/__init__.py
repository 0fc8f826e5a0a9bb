"""Core package initializer for MindGate.

Shared building blocks live here:
    from mindgate.core.settings import settings, load_settings, Settings, get_logger
    from mindgate.core.result import Result, ok, err
"""

from __future__ import annotations

__all__ = ["__doc__"]
