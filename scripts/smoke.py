# scripts/smoke.py
"""
Smoke Test Script for the MIND gateway.

Starts the real gateway, requests the UI and the upstream model list through
the proxy, then takes and reads back a snapshot.

Usage
-----
1. Against the current directory as app root:
    $ python scripts/smoke.py

2. Against another checkout on another port:
    $ python scripts/smoke.py --app-root ../mind --port 9877

An Ollama instance on localhost:11434 is optional; without it the proxy check
reports 502 and the script carries on.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

from mindgate.core.settings import load_settings
from mindgate.gateway.server import GatewayServer

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run MIND gateway smoke test")
    parser.add_argument("--app-root", "-r", type=str, help="Directory holding app/ and sources")
    parser.add_argument("--port", "-p", type=int, default=None, help="Listening port")
    args = parser.parse_args()

    updates: dict[str, object] = {}
    if args.app_root:
        updates["app_root"] = Path(args.app_root).resolve()
    if args.port:
        updates["port"] = args.port
    settings = load_settings().model_copy(update=updates)

    # 1. Gateway
    with GatewayServer(settings) as server:
        print(f"\n🌐 Gateway up at {server.url}")
        with httpx.Client(base_url=server.url, timeout=10) as client:
            ui = client.get("/")
            print(f"  GET /                -> {ui.status_code}")
            tags = client.get("/ollama/api/tags")
            print(f"  GET /ollama/api/tags -> {tags.status_code}")
            if tags.status_code == 200:
                names = [m.get("name") for m in tags.json().get("models", [])]
                print(f"  Models: {', '.join(names) or '(none)'}")

        # 2. Snapshots
        created = asyncio.run(server.backup_source_files())
        print(f"\n💾 backup-source-files: {created.payload()}")
        latest = asyncio.run(server.get_latest_backup())
        print(f"📂 get-latest-backup:   {latest.payload()}")

    print("\n✅ Smoke test finished")


if __name__ == "__main__":
    main()
