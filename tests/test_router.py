"""
Tests for the gateway request router.

Focus
-----
The upstream inference service is replaced by `httpx.MockTransport`, so these
tests check routing decisions and what would go over the wire without any
network access.

Scenarios
---------
1. **Static**: `/` and asset paths come from `app/`; unknown paths are 404.
2. **Proxy**: `/ollama/*` is forwarded with the prefix stripped, body, query
   and method intact, and origin headers pointed at the upstream.
3. **Relay**: upstream status, headers and body come back unchanged.
4. **Failure**: an unreachable upstream gives a bare 502.

Fake upstream bodies are unread async streams (`_UpstreamBody`) because the
router relays them with `aiter_raw()`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from mindgate.core.settings import Settings
from mindgate.gateway.router import RouteRule, create_app

Handler = Callable[[httpx.Request], httpx.Response]


class _UpstreamBody(httpx.AsyncByteStream):
    """Unread async body, like the one a real upstream connection hands back."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk


def _streamed(
    status: int, *chunks: bytes, headers: dict[str, str] | None = None
) -> httpx.Response:
    return httpx.Response(status, headers=headers, stream=_UpstreamBody(*chunks))


@pytest.fixture  # type: ignore[misc]
def seen() -> list[httpx.Request]:
    """Requests that reached the fake upstream."""
    return []


@pytest.fixture  # type: ignore[misc]
def app_root(tmp_path: Path) -> Path:
    static = tmp_path / "app"
    static.mkdir()
    (static / "index.html").write_text("<h1>MIND</h1>", encoding="utf-8")
    (static / "app.js").write_text("console.log('mind')", encoding="utf-8")
    return tmp_path


def _client(app_root: Path, handler: Handler) -> TestClient:
    upstream = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TestClient(create_app(Settings(app_root=app_root), client=upstream))


@pytest.fixture  # type: ignore[misc]
def client(app_root: Path, seen: list[httpx.Request]) -> Generator[TestClient, None, None]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _streamed(
            200,
            b'{"models": [{"name": ',
            b'"llama3.1"}]}',
            headers={"content-type": "application/json"},
        )

    with _client(app_root, handler) as c:
        yield c


def test_root_is_served_from_static(client: TestClient, seen: list[httpx.Request]) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert "<h1>MIND</h1>" in resp.text
    assert seen == [], "Static requests must not reach the upstream"


def test_static_asset_and_missing_asset(client: TestClient) -> None:
    assert client.get("/app.js").text == "console.log('mind')"
    assert client.get("/missing.css").status_code == 404


def test_tags_request_is_forwarded_without_prefix(
    client: TestClient, seen: list[httpx.Request]
) -> None:
    resp = client.get("/ollama/api/tags")

    assert resp.status_code == 200
    assert resp.json() == {"models": [{"name": "llama3.1"}]}
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/tags"
    assert seen[0].url.host == "localhost"
    assert seen[0].url.port == 11434
    assert seen[0].headers["host"] == "localhost:11434"


def test_post_body_query_and_origin_are_forwarded(
    client: TestClient, seen: list[httpx.Request]
) -> None:
    body = b'{"model": "llama3.1", "prompt": "hi"}'
    resp = client.post(
        "/ollama/api/generate?stream=false",
        content=body,
        headers={"Content-Type": "application/json", "Origin": "http://localhost:9876"},
    )

    assert resp.status_code == 200
    forwarded = seen[0]
    assert forwarded.method == "POST"
    assert forwarded.url.path == "/api/generate"
    assert forwarded.url.query == b"stream=false"
    assert forwarded.content == body
    assert forwarded.headers["content-type"] == "application/json"
    assert forwarded.headers["origin"] == "http://localhost:11434"


def test_upstream_status_and_headers_are_relayed(
    app_root: Path, seen: list[httpx.Request]
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _streamed(404, b"model not found", headers={"x-upstream": "ollama"})

    with _client(app_root, handler) as c:
        resp = c.delete("/ollama/api/delete")

    assert resp.status_code == 404
    assert resp.headers["x-upstream"] == "ollama"
    assert resp.text == "model not found"
    assert seen[0].method == "DELETE"


def test_unreachable_upstream_is_bad_gateway(app_root: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(app_root, handler) as c:
        resp = c.get("/ollama/api/tags")

    assert resp.status_code == 502
    assert resp.content == b""


def test_proxy_works_without_static_directory(tmp_path: Path, seen: list[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _streamed(200, b"ok")

    with _client(tmp_path, handler) as c:
        assert c.get("/ollama/api/version").text == "ok"
        assert c.get("/").status_code == 404


def test_route_rule_rewrites_once() -> None:
    rule = RouteRule(prefix="/ollama", upstream="http://localhost:11434")

    assert rule.rewrite("/ollama/api/tags") == "/api/tags"
    assert rule.rewrite("/ollama/ollama/api/tags") == "/ollama/api/tags"
    assert rule.rewrite("/ollama") == "/"
    assert rule.matches("/ollama/api/chat")
    assert rule.matches("/ollama")
    assert not rule.matches("/ollamafoo")
    assert not rule.matches("/")
    assert rule.upstream_origin == "http://localhost:11434"


def test_escaped_path_is_forwarded_verbatim(
    client: TestClient, seen: list[httpx.Request]
) -> None:
    """Percent-escapes survive the rewrite; `%3F` must not turn into a query."""
    resp = client.get("/ollama/api/blobs/a%3Fb%2Fc%23d")

    assert resp.status_code == 200
    assert seen[0].url.raw_path == b"/api/blobs/a%3Fb%2Fc%23d"
    assert seen[0].url.query == b""


def test_any_method_is_forwarded(client: TestClient, seen: list[httpx.Request]) -> None:
    """Verbs outside the usual set are proxied rather than rejected with 405."""
    resp = client.request("TRACE", "/ollama/api/tags")

    assert resp.status_code == 200
    assert seen[0].method == "TRACE"
    assert seen[0].url.path == "/api/tags"
