"""Build watcher — supervises ``bun build --watch`` during development.

Spawns the build tool in watch mode and reads its output on a background
thread.  Each chunk of stdout is classified by :func:`is_rebuild_message`:

- Mentions a file currently in ``outdir`` -> the bundle was rewritten, call
  ``after_rebuild()``
- Anything else (and all of stderr) -> print it as a diagnostic

The classification is a text heuristic.  A rebuild notice that names no
output file is missed, and a diagnostic that happens to name one is taken
for a rebuild.  Both are accepted approximations until the tool offers a
machine-readable completion marker.

Lifecycle::

    watcher = watch(root="web", entrypoint="index.tsx", outdir="dist",
                    after_rebuild=reload_browsers)
    ...
    watcher.close()     # or let the atexit hook do it

"""

from __future__ import annotations

import atexit
import os
import selectors
import shlex
import subprocess
import sys
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from bundled._errors import AlreadyClosed, NotADirectory, ProcessSpawnError, ResourceNotFound
from bundled.build.tool import build_command, find_tool

if TYPE_CHECKING:
    from bundled.observability.collector import StackCollector

# How long the reader waits for output before re-checking the closed flag
_POLL_INTERVAL = 0.1
_CHUNK_SIZE = 65536
# Seconds between SIGTERM and SIGKILL
_TERMINATE_GRACE = 5.0


def is_rebuild_message(message: str, outdir: Path) -> bool:
    """Return True if ``message`` names any file currently in ``outdir``."""
    try:
        names = os.listdir(outdir)
    except FileNotFoundError:
        return False
    return any(name in message for name in names)


def default_after_rebuild() -> None:
    """Rebuild callback used when the caller supplies none."""


def _use_color() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def _report(message: str) -> None:
    if _use_color():
        message = f"\033[31m{message}\033[0m"
    print(f"\n{message}\n", file=sys.stderr)


class BuildWatcher:
    """A running ``build --watch`` process and the thread reading its output.

    Created by :func:`watch`.  Moves from running to closed exactly once;
    :meth:`close` a second time raises :class:`AlreadyClosed`.

    Thread Safety:
        ``after_rebuild`` is only ever called from the reader thread, one
        call at a time, in the order rebuilds are reported.  :meth:`close`
        may be called from any thread, including from inside
        ``after_rebuild``.

    """

    def __init__(
        self,
        process: subprocess.Popen[bytes],
        *,
        root: Path,
        outdir: Path,
        after_rebuild: Callable[[], object],
        collector: StackCollector | None = None,
    ) -> None:
        self._process = process
        self._root = root
        self._outdir = outdir
        self._after_rebuild = after_rebuild
        self._collector = collector
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._read_loop,
            name="bundled-build-watcher",
            daemon=True,
        )

    def __repr__(self) -> str:
        return f"BuildWatcher(running={self.running})"

    def __enter__(self) -> BuildWatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed:
            self.close()

    @property
    def process(self) -> subprocess.Popen[bytes]:
        return self._process

    @property
    def outdir(self) -> Path:
        return self._outdir

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def running(self) -> bool:
        """Whether the reader thread is still consuming build output."""
        return self._thread.is_alive() and not self.closed

    def start(self) -> None:
        """Start the reader thread and register the exit hook."""
        atexit.register(self._close_at_exit)
        self._thread.start()
        if self._collector is not None:
            self._collector.record_lifecycle(str(self._root), "started", self._process.pid)

    # ----- Reader thread -----

    def _read_loop(self) -> None:
        print("  running `bun build` watcher", file=sys.stderr)
        selector = selectors.DefaultSelector()
        for stream, name in ((self._process.stdout, "stdout"), (self._process.stderr, "stderr")):
            if stream is not None:
                selector.register(stream, selectors.EVENT_READ, name)
        try:
            while not self.closed and selector.get_map():
                ready = selector.select(timeout=_POLL_INTERVAL)
                if not ready and self._process.poll() is not None:
                    break
                for key, _ in ready:
                    if self.closed:
                        break
                    try:
                        chunk = os.read(key.fd, _CHUNK_SIZE)
                    except OSError:
                        chunk = b""
                    if not chunk:
                        selector.unregister(key.fileobj)
                        continue
                    self._dispatch(chunk.decode("utf-8", "replace").strip(), key.data)
        finally:
            selector.close()
            print("  `bun build` watcher exited", file=sys.stderr)

    def _dispatch(self, message: str, stream: str) -> None:
        if not message:
            return
        if stream == "stdout" and is_rebuild_message(message, self._outdir):
            if self.closed:
                return
            if self._collector is not None:
                self._collector.record_build(str(self._outdir), message)
            try:
                self._after_rebuild()
            except Exception as exc:
                print(f"  after_rebuild error: {exc!r}", file=sys.stderr)
            return
        if self._collector is not None:
            self._collector.record_diagnostic(str(self._outdir), message, stream=stream)
        _report(message)

    # ----- Shutdown -----

    def close(self) -> None:
        """Stop the build process and wait for the reader thread to finish.

        Raises:
            AlreadyClosed: The watcher was already closed.

        """
        with self._close_lock:
            if self._closed.is_set():
                msg = "`bun build` watcher already closed."
                raise AlreadyClosed(msg)
            self._closed.set()
        self._shutdown()

    def _shutdown(self) -> None:
        print("  closing `bun build` watcher", file=sys.stderr)
        process = self._process
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=_TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        # From inside after_rebuild the loop exits on its own once it returns
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join()

        for stream in (process.stdin, process.stdout, process.stderr):
            if stream is not None:
                stream.close()

        atexit.unregister(self._close_at_exit)
        if self._collector is not None:
            self._collector.record_lifecycle(str(self._root), "stopped", process.pid)

    def _close_at_exit(self) -> None:
        # Avoid orphaned build processes when the host exits without close().
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._shutdown()


def watch(
    root: str | Path = ".",
    entrypoint: str = "index.ts",
    outdir: str = "dist",
    after_rebuild: Callable[[], object] = default_after_rebuild,
    *,
    tool: str | Sequence[str] | None = None,
    collector: StackCollector | None = None,
) -> BuildWatcher:
    """Run ``bun build <entrypoint> --outdir <outdir> --watch`` in ``root``.

    ``after_rebuild`` is called with no arguments whenever the build tool
    reports a finished rebuild, e.g. to tell browsers to reload.

    Args:
        root: Directory the build runs in.
        entrypoint: Entry point, relative to ``root``.
        outdir: Output directory, relative to ``root``; created if missing.
        after_rebuild: Zero-argument callback.
        tool: Build tool command prefix (see :func:`find_tool`).
        collector: Optional StackCollector for watcher events.

    Raises:
        NotADirectory: ``root`` is not a directory.
        ResourceNotFound: ``entrypoint`` is not a file.
        ProcessSpawnError: The build tool could not be started.

    """
    root = Path(root).resolve()
    if not root.is_dir():
        msg = f"{str(root)!r} is not a directory."
        raise NotADirectory(msg)
    if not (root / entrypoint).is_file():
        msg = f"{entrypoint!r} is not a file."
        raise ResourceNotFound(msg)

    out_path = root / outdir
    if not out_path.is_dir():
        print(f"  {outdir!r} directory does not exist. Creating...", file=sys.stderr)
        out_path.mkdir(parents=True)

    if tool is None:
        command = find_tool()
    else:
        command = [tool] if isinstance(tool, str) else list(tool)
    cmd = build_command(command, entrypoint, outdir, watch=True)
    try:
        process = subprocess.Popen(
            cmd,
            cwd=root,
            env=os.environ.copy(),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        msg = f"Failed to start {shlex.join(cmd)}: {exc}"
        raise ProcessSpawnError(msg) from exc

    watcher = BuildWatcher(
        process,
        root=root,
        outdir=out_path,
        after_rebuild=after_rebuild,
        collector=collector,
    )
    watcher.start()
    return watcher

