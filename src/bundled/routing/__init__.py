"""Routing layer — route maps, change detection and request handling."""

from bundled.routing.asgi import ResourceMiddleware, not_found_app
from bundled.routing.changes import ChangeDetector, check
from bundled.routing.registry import RouteEntry, RouteMap, build_route_map, collect
from bundled.routing.router import Request, ResourceRouter, Response, not_found, route

__all__ = [
    "ChangeDetector",
    "Request",
    "ResourceMiddleware",
    "ResourceRouter",
    "Response",
    "RouteEntry",
    "RouteMap",
    "build_route_map",
    "check",
    "collect",
    "not_found",
    "not_found_app",
    "route",
]
