"""MindGate: local gateway and source snapshots for the MIND desktop shell.

The package has two halves:
- `mindgate.gateway` serves the bundled web UI and proxies `/ollama/*` to the
  local inference service.
- `mindgate.backup` writes timestamped snapshots of the shell's own sources and
  finds the most recent one.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
