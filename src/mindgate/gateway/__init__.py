"""Local HTTP gateway: static web UI plus the `/ollama` upstream proxy."""

from __future__ import annotations

from mindgate.gateway.router import RequestRouter, RouteRule, UpstreamUnavailable, create_app
from mindgate.gateway.server import GatewayServer

__all__ = ["GatewayServer", "RequestRouter", "RouteRule", "UpstreamUnavailable", "create_app"]
