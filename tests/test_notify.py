"""Tests for bundled.routing.notify — watchfiles-driven rebuilds."""

from __future__ import annotations

import time
from pathlib import Path

from bundled.resources import LocalResource
from bundled.routing.notify import SourceWatcher
from bundled.routing.router import ResourceRouter

from tests.conftest import wait_for


class TestSourceWatcher:
    def test_rebuilds_frozen_router_on_change(self, web_root: Path) -> None:
        router = ResourceRouter([LocalResource(web_root, "output.css")])
        with SourceWatcher(router, debounce=50) as watcher:
            assert watcher.is_running
            time.sleep(0.5)
            (web_root / "output.css").write_text("h1 { font-weight: 400; }")
            assert wait_for(lambda: router.get("/output.css").body == b"h1 { font-weight: 400; }")
            assert watcher.reloads >= 1
        assert not watcher.is_running

    def test_ignores_unrelated_files(self, web_root: Path) -> None:
        router = ResourceRouter([LocalResource(web_root, "output.css")])
        with SourceWatcher(router, debounce=50) as watcher:
            time.sleep(0.5)
            (web_root / "notes.txt").write_text("unrelated")
            time.sleep(0.5)
            assert watcher.reloads == 0

    def test_nothing_to_watch(self) -> None:
        watcher = SourceWatcher(ResourceRouter([]))
        watcher.start()
        assert wait_for(lambda: not watcher.is_running)
        watcher.stop()

    def test_start_twice_is_noop(self, web_root: Path) -> None:
        watcher = SourceWatcher(ResourceRouter([LocalResource(web_root, "output.css")]))
        watcher.start()
        thread = watcher._thread
        watcher.start()
        assert watcher._thread is thread
        watcher.stop()

    def test_watches_directories_added_by_reload(self, web_root: Path, tmp_path: Path) -> None:
        vendor = tmp_path / "vendor"
        vendor.mkdir()
        (vendor / "app.js").write_text("let v = 1;")
        resources = [LocalResource(web_root, "output.css")]
        router = ResourceRouter(lambda: list(resources))

        with SourceWatcher(router, debounce=50) as watcher:
            time.sleep(0.5)
            resources.append(LocalResource(vendor, "app.js"))
            (web_root / "output.css").write_text("p {}")
            assert wait_for(lambda: "/app.js" in router.route_map)
            reloads = watcher.reloads

            time.sleep(0.5)
            (vendor / "app.js").write_text("let v = 2;")
            assert wait_for(lambda: router.get("/app.js").body == b"let v = 2;")
            assert watcher.reloads > reloads
