"""Tests for bundled.routing.asgi — the ASGI middleware."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from bundled.resources import LocalResource, path_of
from bundled.routing.asgi import ResourceMiddleware, not_found_app
from bundled.routing.router import ResourceRouter

from tests.conftest import bump_mtime


async def downstream(scope, receive, send) -> None:
    await send({
        "type": "http.response.start",
        "status": 200,
        "headers": [(b"content-type", b"text/plain")],
    })
    await send({"type": "http.response.body", "body": b"from app"})


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


class TestResourceMiddleware:
    @pytest.mark.asyncio
    async def test_serves_resource(self, web_root: Path) -> None:
        css = LocalResource(web_root, "output.css")
        app = ResourceMiddleware(downstream, ResourceRouter([css]))
        async with _client(app) as client:
            response = await client.get(path_of(css))
        assert response.status_code == 200
        assert response.content == b"body { margin: 0; }\n"
        assert response.headers["content-type"] == "text/css; charset=utf-8"
        assert response.headers["cache-control"] == "max-age=604800, immutable"

    @pytest.mark.asyncio
    async def test_miss_goes_to_app(self, web_root: Path) -> None:
        app = ResourceMiddleware(downstream, ResourceRouter([LocalResource(web_root, "output.css")]))
        async with _client(app) as client:
            response = await client.get("/index.html")
        assert response.status_code == 200
        assert response.text == "from app"

    @pytest.mark.asyncio
    async def test_post_goes_to_app(self, web_root: Path) -> None:
        app = ResourceMiddleware(downstream, ResourceRouter([LocalResource(web_root, "output.css")]))
        async with _client(app) as client:
            response = await client.post("/output.css")
        assert response.text == "from app"

    @pytest.mark.asyncio
    async def test_default_app_is_404(self, web_root: Path) -> None:
        app = ResourceMiddleware(None, ResourceRouter([LocalResource(web_root, "output.css")]))
        async with _client(app) as client:
            response = await client.get("/missing.js")
        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.asyncio
    async def test_live_router(self, web_root: Path) -> None:
        css = web_root / "output.css"
        app = ResourceMiddleware(None, ResourceRouter([LocalResource(web_root, "output.css")], live=True))
        async with _client(app) as client:
            css.write_text("a { color: blue; }")
            bump_mtime(css)
            response = await client.get("/output.css")
        assert response.text == "a { color: blue; }"

    @pytest.mark.asyncio
    async def test_non_http_scope_passes_through(self, web_root: Path) -> None:
        seen = []

        async def app(scope, receive, send) -> None:
            seen.append(scope["type"])

        middleware = ResourceMiddleware(app, ResourceRouter([LocalResource(web_root, "output.css")]))

        async def receive():
            return {"type": "lifespan.startup"}

        async def send(message) -> None:
            pass

        await middleware({"type": "lifespan"}, receive, send)
        assert seen == ["lifespan"]


class TestNotFoundApp:
    @pytest.mark.asyncio
    async def test_answers_404(self) -> None:
        async with _client(not_found_app) as client:
            response = await client.get("/")
        assert response.status_code == 404
        assert response.headers["content-length"] == "9"
