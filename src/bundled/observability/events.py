"""Event model for bundled observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Download cache events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RemoteFetched:
    """A remote resource was requested from the download cache.

    Attributes:
        url: Source URL.
        digest: SHA-256 the bytes were stored under.
        cached: True if no network request was made.
        size_bytes: Number of bytes downloaded (0 on a cache hit).
        duration_ms: Time spent in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    url: str
    digest: str
    cached: bool
    size_bytes: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class CacheCollected:
    """The download cache was garbage collected.

    Attributes:
        path: Cache directory.
        removed: Number of entries deleted.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    removed: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Routing events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RouteMapRebuilt:
    """A router built (or rebuilt) its route map.

    Attributes:
        routes: Number of paths in the new map.
        trigger: ``initial`` at construction, ``change`` after a detected
            file change, ``manual`` for explicit reloads.
        duration_ms: Time spent rebuilding in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    routes: int
    trigger: Literal["initial", "change", "manual"]
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Build watcher events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BuildCompleted:
    """The build tool reported a finished rebuild.

    Attributes:
        path: Output directory.
        message: Output chunk that was recognised as a rebuild notice.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BuildDiagnostic:
    """The build tool printed something that was not a rebuild notice.

    Attributes:
        path: Output directory.
        message: The diagnostic text.
        stream: Which pipe the text arrived on.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    message: str
    stream: Literal["stdout", "stderr"]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class WatcherLifecycle:
    """A build watcher started or stopped.

    Attributes:
        path: Build root directory.
        kind: Lifecycle transition.
        pid: Build tool process id.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: Literal["started", "stopped"]
    pid: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = (
    RemoteFetched
    | CacheCollected
    | RouteMapRebuilt
    | BuildCompleted
    | BuildDiagnostic
    | WatcherLifecycle
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
