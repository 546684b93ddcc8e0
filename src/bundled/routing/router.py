"""Resource router — answers GET requests for registered resources.

Sits in front of another handler (the *fallback*): a GET whose path is in
the route map is answered from memory, everything else is passed on.

Two modes:

- **frozen** (default): the map is built once.  Lookups cost one dict
  access, suitable for production.
- **live**: every request first checks the modification times of the
  resource definitions and backing files; on any change the whole map is
  rebuilt and swapped in.  Requests pay for the check, so use it during
  development only.

Thread Safety:
    The map is replaced by reference, never mutated, so concurrent readers
    always see either the old or the new map in full.  Checks and rebuilds
    are serialized by a lock.

"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from bundled.routing.changes import ChangeDetector, check
from bundled.routing.registry import (
    RouteEntry,
    RouteMap,
    build_route_map,
    collect,
    watched_files,
)

if TYPE_CHECKING:
    from bundled._types import Handler, Headers, Resource, ResourceSource
    from bundled.config import BundledConfig
    from bundled.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class Request:
    """The parts of an HTTP request the router looks at."""

    method: str
    target: str

    @property
    def path(self) -> str:
        return urlsplit(self.target).path


@dataclass(frozen=True, slots=True)
class Response:
    """A complete HTTP response."""

    status: int
    headers: Headers = ()
    body: bytes = b""

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


def not_found(request: Request) -> Response:
    """Default fallback: a plain-text 404."""
    body = b"Not Found"
    return Response(
        status=404,
        headers=(
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Content-Length", str(len(body))),
        ),
        body=body,
    )


def _entry_for(route_map: RouteMap, request: Request) -> RouteEntry | None:
    if request.method.upper() != "GET":
        return None
    return route_map.get(request.path)


def route(route_map: RouteMap, fallback: Handler = not_found) -> Handler:
    """Return a handler serving ``route_map`` in front of ``fallback``."""

    def handler(request: Request) -> Response:
        entry = _entry_for(route_map, request)
        if entry is None:
            return fallback(request)
        return Response(status=200, headers=entry.headers, body=entry.body)

    return handler


class ResourceRouter:
    """Serves resources from ``source`` and delegates the rest to ``fallback``.

    Args:
        source: Resources to serve (see :mod:`bundled.routing.registry`).
        fallback: Handler for requests that aren't resource GETs.
        live: Re-check source files on every request.
        extra_files: Additional files whose change triggers a rebuild.
        cache_control: ``Cache-Control`` for every resource.
        collector: Optional StackCollector for rebuild events.

    """

    def __init__(
        self,
        source: ResourceSource,
        fallback: Handler = not_found,
        *,
        live: bool = False,
        extra_files: Iterable[Path] = (),
        cache_control: str | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        # A one-shot iterator would be empty on the second rebuild
        self._source = source if callable(source) else tuple(source)
        self._fallback = fallback
        self._live = live
        self._extra_files = tuple(Path(f) for f in extra_files)
        self._cache_control = cache_control
        self._collector = collector
        self._lock = threading.Lock()

        resources = collect(self._source)
        self._detector = ChangeDetector(self._files_for(resources))
        self._map: RouteMap = self._build(resources, trigger="initial")

    @classmethod
    def from_config(
        cls,
        source: ResourceSource,
        config: BundledConfig,
        fallback: Handler = not_found,
        **kwargs: object,
    ) -> ResourceRouter:
        """Build a router using ``config.live`` and ``config.cache_control``."""
        return cls(
            source,
            fallback,
            live=config.live,
            cache_control=config.cache_control,
            **kwargs,  # type: ignore[arg-type]
        )

    @property
    def live(self) -> bool:
        return self._live

    @property
    def route_map(self) -> RouteMap:
        """The current map. Never mutated; replaced wholesale on rebuild."""
        return self._map

    @property
    def watched_files(self) -> tuple[Path, ...]:
        return self._detector.files

    # ----- Request handling -----

    def lookup(self, request: Request) -> RouteEntry | None:
        """Return the entry answering ``request``, or None to fall through."""
        if self._live:
            self.refresh()
        return _entry_for(self._map, request)

    def handle(self, request: Request) -> Response:
        entry = self.lookup(request)
        if entry is None:
            return self._fallback(request)
        return Response(status=200, headers=entry.headers, body=entry.body)

    __call__ = handle

    def get(self, target: str) -> Response:
        """Shorthand for ``handle(Request("GET", target))``."""
        return self.handle(Request("GET", target))

    # ----- Rebuilding -----

    def refresh(self) -> bool:
        """Rebuild the map if any watched file changed. Returns True if rebuilt.

        The baseline only advances when the rebuild succeeds, so a failed
        rebuild is retried on the next call.
        """
        with self._lock:
            changed, _ = check(self._detector.files, self._detector.snapshot)
            if not changed:
                return False
            print("  resource files changed, rebuilding route map", file=sys.stderr)
            self._rebuild(trigger="change")
            return True

    def reload(self) -> None:
        """Rebuild the map unconditionally."""
        with self._lock:
            self._rebuild(trigger="manual")

    def _rebuild(self, *, trigger: str) -> None:
        resources = collect(self._source)
        route_map = self._build(resources, trigger=trigger)
        self._detector.rebase(self._files_for(resources))
        self._map = route_map

    def _build(self, resources: list[Resource], *, trigger: str) -> RouteMap:
        t0 = time.perf_counter()
        route_map = build_route_map(resources, cache_control=self._cache_control)
        elapsed = (time.perf_counter() - t0) * 1000
        if self._collector is not None:
            self._collector.record_rebuild(len(route_map), trigger=trigger, duration_ms=elapsed)
        return route_map

    def _files_for(self, resources: list[Resource]) -> list[Path]:
        return [*watched_files(self._source, resources), *self._extra_files]
