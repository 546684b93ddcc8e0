"""Resource registry — turns resource descriptions into a route map.

A *source* lists the resources to serve.  It may be an iterable of
resources (or zero-argument producers of resources), or a zero-argument
callable returning such an iterable.  Callables are re-invoked on every
rebuild, which is how a live router picks up new definitions.
"""

from __future__ import annotations

import inspect
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from bundled.resources.identity import content_of, headers_of, route_path_of
from bundled.resources.local import LocalResource
from bundled.resources.remote import RemoteResource

if TYPE_CHECKING:
    from bundled._types import Headers, Resource, ResourceSource, RoutePath


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """What is served for one path."""

    headers: Headers
    body: bytes

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


type RouteMap = dict[RoutePath, RouteEntry]


def _is_resource(value: object) -> bool:
    return isinstance(value, RemoteResource | LocalResource)


def collect(source: ResourceSource) -> list[Resource]:
    """Resolve ``source`` into a flat list of resources."""
    items = source() if callable(source) and not _is_resource(source) else source
    resources: list[Resource] = []
    for item in items:
        resource = item if _is_resource(item) else item()
        if not _is_resource(resource):
            msg = f"{item!r} produced {type(resource).__name__}, not a resource"
            raise TypeError(msg)
        resources.append(resource)
    return resources


def build_route_map(
    resources: Iterable[Resource], *, cache_control: str | None = None,
) -> RouteMap:
    """Map every resource's path to its headers and body.

    Two resources with the same path is a caller error; the later one wins.
    """
    route_map: RouteMap = {}
    for resource in resources:
        body = content_of(resource)
        path = route_path_of(resource, body)
        route_map[path] = RouteEntry(
            headers=headers_of(resource, body, cache_control=cache_control),
            body=body,
        )
    return route_map


def _defining_files(obj: object) -> list[Path]:
    if not callable(obj) or _is_resource(obj):
        return []
    target = inspect.unwrap(obj)  # type: ignore[arg-type]
    try:
        filename = inspect.getsourcefile(target)  # type: ignore[arg-type]
    except TypeError:
        return []
    return [Path(filename)] if filename else []


def watched_files(source: ResourceSource, resources: Iterable[Resource]) -> list[Path]:
    """Files whose change should trigger a rebuild.

    The modules defining ``source`` and its producers, plus every local
    resource's backing files.
    """
    files: list[Path] = list(_defining_files(source))
    if not callable(source):
        for item in source:
            files.extend(_defining_files(item))
    for resource in resources:
        if isinstance(resource, LocalResource):
            files.extend(resource.source_files())
    return list(dict.fromkeys(files))

