"""
Request routing for the local gateway.

Two kinds of traffic reach the gateway:

1.  **Proxy**: any method under `/ollama` (the `RouteRule.prefix`). The prefix
    is removed once from the front of the raw, still percent-encoded, path
    and the request (method,
    headers, body, query) is forwarded to the upstream origin. `Host` follows
    the upstream URL and an `Origin` header, when sent, is replaced with the
    upstream origin so the inference service's same-origin check passes. The
    upstream status, headers and raw body are streamed back as they arrive.
2.  **Static**: everything else is served from the bundled `app/` directory
    (`index.html` for `/`). Paths with no file behind them get a 404.

There is no retry and no timeout on the upstream leg. If the upstream cannot
be reached the client receives a bare `502 Bad Gateway`.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import Response, StreamingResponse
from fastapi.staticfiles import StaticFiles
from starlette.background import BackgroundTask

from mindgate import __version__
from mindgate.core.settings import Settings, get_logger, load_settings

logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


class UpstreamUnavailable(Exception):
    """The upstream service could not be reached."""


@dataclass(frozen=True, slots=True)
class RouteRule:
    """Forward requests under `prefix` to `upstream` with the prefix stripped."""

    prefix: str
    upstream: str

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    def rewrite(self, path: str) -> str:
        """Remove the prefix once from the start of `path`.

        `/ollama/api/tags` becomes `/api/tags`; `/ollama/ollama/x` becomes
        `/ollama/x`. A bare prefix maps to `/`.
        """
        if not path.startswith(self.prefix):
            return path
        return path[len(self.prefix) :] or "/"

    @property
    def upstream_origin(self) -> str:
        url = httpx.URL(self.upstream)
        return f"{url.scheme}://{url.netloc.decode('ascii')}"


class RequestRouter:
    """Owns the route rule, the static root and the upstream HTTP client.

    Pass `client` to use a pre-built `httpx.AsyncClient` (tests hand in one
    backed by `httpx.MockTransport`). Otherwise one is opened on app startup
    and closed on shutdown.
    """

    def __init__(
        self,
        rule: RouteRule,
        static_dir: Path,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.rule = rule
        self.static_dir = static_dir
        self._client = client
        self._owns_client = client is None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=None, trust_env=False)

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Upstream client is not open")
        return self._client

    def upstream_path(self, request: Request) -> str:
        """Rewrite the path exactly as the client sent it, escapes included."""
        raw = request.scope.get("raw_path")
        path = raw.decode("latin-1") if raw else request.url.path
        return self.rule.rewrite(path)

    def upstream_url(self, request: Request, path: str) -> httpx.URL:
        target = self.rule.upstream.rstrip("/") + path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return httpx.URL(target)

    def outbound_headers(self, request: Request) -> list[tuple[str, str]]:
        # Host is dropped so httpx derives it from the upstream URL.
        headers: list[tuple[str, str]] = []
        for name, value in request.headers.items():
            lowered = name.lower()
            if lowered == "host" or lowered in HOP_BY_HOP_HEADERS:
                continue
            if lowered == "origin":
                value = self.rule.upstream_origin
            headers.append((name, value))
        return headers

    async def forward(self, request: Request) -> Response:
        """Relay `request` upstream and stream the answer back."""
        path = self.upstream_path(request)
        url = self.upstream_url(request, path)
        logger.info("Proxying Ollama request: %s %s", request.method, path)

        upstream_request = self.client.build_request(
            request.method,
            url,
            headers=self.outbound_headers(request),
            content=await request.body(),
        )
        try:
            upstream = await self.client.send(upstream_request, stream=True)
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(str(exc)) from exc

        response = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in upstream.headers.multi_items()
            if name.lower() not in HOP_BY_HOP_HEADERS
        ]
        return response

    def mount(self, app: FastAPI) -> None:
        """Register proxy routes first, then the static catch-all."""
        prefix = self.rule.prefix

        async def proxy(request: Request) -> Response:
            return await self.forward(request)

        # Plain Starlette routes with no method list accept every verb.
        app.add_route(prefix, proxy, include_in_schema=False)
        app.add_route(prefix + "/{upstream_path:path}", proxy, include_in_schema=False)

        if self.static_dir.is_dir():
            app.mount("/", StaticFiles(directory=str(self.static_dir), html=True), name="static")
        else:
            logger.warning("Static directory %s not found; only the proxy is served", self.static_dir)


def create_app(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Construct the gateway ASGI application.

    Parameters
    ----------
    settings:
        Configuration to use; defaults to the cached process settings.
    client:
        Optional upstream client. When omitted, the app opens its own on
        startup and closes it on shutdown.
    """
    cfg = settings or load_settings()
    router = RequestRouter(
        rule=RouteRule(prefix=cfg.proxy_prefix, upstream=cfg.upstream_url),
        static_dir=cfg.static_dir,
        client=client,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await router.open()
        yield
        await router.close()

    app = FastAPI(
        title="MIND Gateway",
        description="Static web UI plus a local inference proxy",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.router = router

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable) -> Response:
        logger.error("Upstream unavailable for %s %s: %s", request.method, request.url.path, exc)
        return Response(status_code=502)

    router.mount(app)
    return app


__all__ = ["RequestRouter", "RouteRule", "UpstreamUnavailable", "create_app"]
