"""Stack collector — the single recording entry point for bundled events.

Every component takes an optional collector; the download cache, router and
build watcher call the ``record_*`` methods below instead of constructing
events themselves.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from bundled.observability.events import (
    BuildCompleted,
    BuildDiagnostic,
    CacheCollected,
    RemoteFetched,
    RouteMapRebuilt,
    WatcherLifecycle,
    now_ns,
)
from bundled.observability.log import EventLog


class StackCollector:
    """Unified event collector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Download cache -----

    def record_fetch(
        self,
        url: str,
        digest: str,
        *,
        cached: bool,
        size_bytes: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a download-cache lookup."""
        self._log.append(
            RemoteFetched(
                url=url,
                digest=digest,
                cached=cached,
                size_bytes=size_bytes,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_gc(self, path: str, removed: int) -> None:
        """Record a cache garbage collection."""
        self._log.append(CacheCollected(path=path, removed=removed, timestamp_ns=now_ns()))

    # ----- Routing -----

    def record_rebuild(self, routes: int, *, trigger: str, duration_ms: float = 0.0) -> None:
        """Record a route map (re)build."""
        self._log.append(
            RouteMapRebuilt(
                routes=routes,
                trigger=trigger,  # type: ignore[arg-type]
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Build watcher -----

    def record_build(self, path: str, message: str) -> None:
        """Record a recognised rebuild notice from the build tool."""
        self._log.append(BuildCompleted(path=path, message=message, timestamp_ns=now_ns()))

    def record_diagnostic(self, path: str, message: str, *, stream: str = "stdout") -> None:
        """Record build tool output that was not a rebuild notice."""
        self._log.append(
            BuildDiagnostic(
                path=path,
                message=message,
                stream=stream,  # type: ignore[arg-type]
                timestamp_ns=now_ns(),
            )
        )

    def record_lifecycle(self, path: str, kind: str, pid: int) -> None:
        """Record a watcher start/stop."""
        self._log.append(
            WatcherLifecycle(
                path=path,
                kind=kind,  # type: ignore[arg-type]
                pid=pid,
                timestamp_ns=now_ns(),
            )
        )
