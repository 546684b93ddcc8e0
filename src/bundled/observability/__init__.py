"""Observability — structured events from the cache, router and build watcher.

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from request handlers and the watcher thread.

Quick Start:
    >>> from bundled.observability import StackCollector
    >>> collector = StackCollector()
    >>> # pass collector= to ContentStore, ResourceRouter or watch()
    >>> collector.log.stats()["total"]
    0

"""

from bundled.observability.collector import StackCollector
from bundled.observability.events import (
    BuildCompleted,
    BuildDiagnostic,
    CacheCollected,
    RemoteFetched,
    RouteMapRebuilt,
    StackEvent,
    WatcherLifecycle,
    now_ns,
)
from bundled.observability.log import EventLog

__all__ = [
    "BuildCompleted",
    "BuildDiagnostic",
    "CacheCollected",
    "EventLog",
    "RemoteFetched",
    "RouteMapRebuilt",
    "StackCollector",
    "StackEvent",
    "WatcherLifecycle",
    "now_ns",
]
