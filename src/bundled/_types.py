"""Shared type definitions for bundled."""

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from bundled.resources import LocalResource, RemoteResource
    from bundled.routing.router import Request, Response

# Lowercase hex SHA-256 digest
type Digest = str

# Route URL path without query string (e.g., "/resource/3fK9.../app.js")
type RoutePath = str

# Ordered HTTP header pairs
type Headers = tuple[tuple[str, str], ...]

# Unit accepted for the cache GC interval
type GcUnit = Literal["years", "months", "weeks", "days", "hours", "minutes", "seconds"]

# Any servable resource
type Resource = RemoteResource | LocalResource

# Produces the bytes (or text) of a local resource from (root, path)
type Transform = Callable[[Path, str], bytes | str]

# A resource, or a zero-argument function producing one
type ResourceProducer = Resource | Callable[[], Resource]

# What a router rebuilds its map from
type ResourceSource = Iterable[ResourceProducer] | Callable[[], Iterable[ResourceProducer]]

# Synchronous request handler
type Handler = Callable[[Request], Response]
