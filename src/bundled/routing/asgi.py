"""ASGI adapter for ResourceRouter.

Wrap any ASGI application so resource GETs are answered before it sees
them::

    app = ResourceMiddleware(app, ResourceRouter(resources, live=True))

Requests the router doesn't own, and non-HTTP scopes (lifespan,
websocket), go straight to the wrapped app.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, MutableMapping
from typing import TYPE_CHECKING, Any

from bundled.routing.router import Request, Response, not_found

if TYPE_CHECKING:
    from bundled.routing.router import ResourceRouter

type Scope = MutableMapping[str, Any]
type Message = MutableMapping[str, Any]
type Receive = Callable[[], Awaitable[Message]]
type Send = Callable[[Message], Awaitable[None]]
type ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]


async def send_response(send: Send, response: Response) -> None:
    """Write a complete :class:`Response` to an ASGI ``send`` channel."""
    await send({
        "type": "http.response.start",
        "status": response.status,
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in response.headers
        ],
    })
    await send({"type": "http.response.body", "body": response.body})


async def not_found_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Minimal ASGI app answering every HTTP request with 404."""
    if scope["type"] != "http":
        return
    await send_response(send, not_found(Request(scope["method"], scope["path"])))


class ResourceMiddleware:
    """ASGI middleware serving a :class:`ResourceRouter` in front of ``app``.

    Args:
        app: The wrapped ASGI application (defaults to :func:`not_found_app`).
        router: Router whose resources are served.

    """

    def __init__(self, app: ASGIApp | None, router: ResourceRouter) -> None:
        self.app = app if app is not None else not_found_app
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            # Live-mode refresh happens here, on the event loop thread.
            entry = self.router.lookup(Request(scope["method"], scope["path"]))
            if entry is not None:
                await send_response(send, Response(200, entry.headers, entry.body))
                return
        await self.app(scope, receive, send)
