"""Push-based invalidation for a ResourceRouter.

Live routers poll modification times on every request.  A
:class:`SourceWatcher` instead watches the router's files with watchfiles on
a background thread and rebuilds the map as soon as one changes, so the next
request is served from a fresh map without paying for the rebuild.  It works
for frozen routers too.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, watch

if TYPE_CHECKING:
    from bundled.routing.router import ResourceRouter


class SourceWatcher:
    """Rebuild ``router`` whenever one of its watched files changes.

    Args:
        router: The router to rebuild.
        debounce: Milliseconds watchfiles waits to group changes.

    """

    def __init__(self, router: ResourceRouter, *, debounce: int = 300) -> None:
        self._router = router
        self._debounce = debounce
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.reloads = 0

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="bundled-source-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def __enter__(self) -> SourceWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _watched(self) -> set[Path]:
        return {path.resolve() for path in self._router.watched_files}

    def _watch_loop(self) -> None:
        # watchfiles watches a fixed set of directories; restart it whenever a
        # reload moves resources into a directory not yet covered
        while not self._stop_event.is_set():
            files = self._watched()
            dirs = _directories(files)
            if not dirs:
                return
            self._watch_dirs(dirs, files)

    def _watch_dirs(self, dirs: list[str], files: set[Path]) -> None:
        def interesting(change: Change, path: str) -> bool:
            return Path(path).resolve() in files

        for _changes in watch(
            *dirs,
            watch_filter=interesting,
            stop_event=self._stop_event,
            debounce=self._debounce,
            step=50,
        ):
            try:
                self._router.reload()
            except Exception as exc:
                print(f"  Resource reload error: {exc}", file=sys.stderr)
                continue
            self.reloads += 1
            # Pick up files added to already-watched directories
            files.clear()
            files.update(self._watched())
            if _directories(files) != dirs:
                return


def _directories(files: set[Path]) -> list[str]:
    return sorted({str(path.parent) for path in files if path.parent.is_dir()})
