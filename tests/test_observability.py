"""Tests for bundled.observability — events, event log, and collector."""

from __future__ import annotations

import dataclasses

import pytest

from bundled.observability import (
    BuildCompleted,
    BuildDiagnostic,
    CacheCollected,
    EventLog,
    RemoteFetched,
    RouteMapRebuilt,
    StackCollector,
    WatcherLifecycle,
)


def _fetch(url: str, ts: int) -> RemoteFetched:
    return RemoteFetched(
        url=url, digest="0" * 64, cached=False, size_bytes=1, duration_ms=0.1, timestamp_ns=ts,
    )


class TestEvents:
    def test_frozen(self) -> None:
        event = CacheCollected(path="/cache", removed=3, timestamp_ns=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.removed = 4  # type: ignore[misc]

    def test_slotted(self) -> None:
        assert not hasattr(CacheCollected(path="/c", removed=0, timestamp_ns=1), "__dict__")


class TestEventLog:
    def test_ring_buffer(self) -> None:
        log = EventLog(max_events=3)
        for i in range(5):
            log.append(_fetch(f"https://cdn/{i}", i + 1))
        assert len(log) == 3
        assert [e.url for e in log.recent()] == ["https://cdn/2", "https://cdn/3", "https://cdn/4"]

    def test_query_newest_first(self) -> None:
        log = EventLog()
        log.append(_fetch("https://cdn/a.js", 1))
        log.append(_fetch("https://cdn/b.js", 2))
        assert [e.url for e in log.query()] == ["https://cdn/b.js", "https://cdn/a.js"]

    def test_query_filters(self) -> None:
        log = EventLog()
        log.append(_fetch("https://cdn/a.js", 10))
        log.append(CacheCollected(path="/cache", removed=2, timestamp_ns=20))
        log.append(_fetch("https://cdn/b.js", 30))

        assert len(log.query(event_type=CacheCollected)) == 1
        assert [e.timestamp_ns for e in log.query(since_ns=15)] == [30, 20]
        assert [e.url for e in log.query(path="a.js")] == ["https://cdn/a.js"]
        assert len(log.query(path="/cache")) == 1
        assert len(log.query(limit=2)) == 2

    def test_clear_and_stats(self) -> None:
        log = EventLog(max_events=50)
        log.append(_fetch("https://cdn/a.js", 1))
        log.append(CacheCollected(path="/cache", removed=2, timestamp_ns=2))
        stats = log.stats()
        assert stats == {
            "total": 2,
            "max_events": 50,
            "by_type": {"RemoteFetched": 1, "CacheCollected": 1},
        }
        assert log.clear() == 2
        assert len(log) == 0


class TestStackCollector:
    def test_records_every_kind(self) -> None:
        collector = StackCollector()
        collector.record_fetch("https://cdn/a.js", "f" * 64, cached=True)
        collector.record_gc("/cache", 4)
        collector.record_rebuild(2, trigger="initial", duration_ms=1.5)
        collector.record_build("/web/dist", "index.js 0.1 KB")
        collector.record_diagnostic("/web/dist", "error: nope", stream="stderr")
        collector.record_lifecycle("/web", "started", 1234)

        kinds = [type(e) for e in collector.log.recent()]
        assert kinds == [
            RemoteFetched,
            CacheCollected,
            RouteMapRebuilt,
            BuildCompleted,
            BuildDiagnostic,
            WatcherLifecycle,
        ]
        assert all(e.timestamp_ns > 0 for e in collector.log.recent())

    def test_shared_log(self) -> None:
        log = EventLog()
        StackCollector(log).record_gc("/cache", 0)
        assert len(log) == 1
