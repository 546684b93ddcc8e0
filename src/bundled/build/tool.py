"""Locating and invoking the ``bun`` build tool.

The tool is looked up in this order:

1. ``$BUNDLED_BUN``
2. an explicit path (``BundledConfig.bun``)
3. ``bun`` on ``PATH``

Anything that accepts ``build <entrypoint> --outdir <dir> [--watch]`` works,
which is how the test suite substitutes a small Python script.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from bundled._errors import BuildError, ProcessSpawnError

TOOL_ENV = "BUNDLED_BUN"


def find_tool(configured: str | Sequence[str] | None = None) -> list[str]:
    """Return the command prefix used to run the build tool.

    Raises:
        ProcessSpawnError: No build tool could be found.

    """
    override = os.environ.get(TOOL_ENV)
    if override:
        return shlex.split(override)
    if configured:
        if isinstance(configured, str):
            return [configured]
        return list(configured)
    found = shutil.which("bun")
    if found is None:
        msg = f"Could not find 'bun' on PATH. Install it or set ${TOOL_ENV}."
        raise ProcessSpawnError(msg)
    return [found]


def build_command(
    tool: Sequence[str],
    entrypoint: str,
    outdir: str | None = None,
    *,
    watch: bool = False,
) -> list[str]:
    """Assemble ``<tool> build <entrypoint> [--outdir <dir>] [--watch]``."""
    cmd = [*tool, "build", entrypoint]
    if outdir is not None:
        cmd += ["--outdir", outdir]
    if watch:
        cmd.append("--watch")
    return cmd


class BunBuild:
    """A LocalResource transform that bundles a source file with ``bun build``.

    Every call rebuilds ``source`` (or the resource path when ``source`` is
    omitted) and returns the bundle printed on stdout.  When the root or the
    source file is missing the last good bundle is served instead, so a
    resource keeps working while files are moved around during development.

    Args:
        source: Entry point relative to the resource root, for when it
            differs from the served path (e.g. ``app.ts`` served as
            ``app.js``).
        tool: Build tool command prefix; looked up with :func:`find_tool`
            when omitted.

    """

    def __init__(self, source: str | None = None, *, tool: Sequence[str] | None = None) -> None:
        self._source = source
        self._tool = list(tool) if tool is not None else None
        self._cache = b""
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"BunBuild(source={self._source!r})"

    def __call__(self, root: Path, path: str) -> bytes:
        root = Path(root)
        if not root.is_dir():
            if not self._cache:
                print(
                    f"  bun_build: no directory found at {root} and cache is empty.",
                    file=sys.stderr,
                )
            return self._cache

        entry = self._source if self._source is not None else path
        if not (root / entry).is_file():
            print(f"  bun_build: no file found at {root / entry}.", file=sys.stderr)
            return self._cache

        tool = self._tool if self._tool is not None else find_tool()
        cmd = build_command(tool, entry)
        try:
            result = subprocess.run(cmd, cwd=root, capture_output=True, check=True)
        except OSError as exc:
            msg = f"Failed to run {shlex.join(cmd)}: {exc}"
            raise ProcessSpawnError(msg) from exc
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr.decode("utf-8", "replace").strip()
            msg = f"{shlex.join(cmd)} exited with status {exc.returncode}: {stderr}"
            raise BuildError(msg) from exc

        with self._lock:
            self._cache = result.stdout.rstrip(b"\n")
            return self._cache

    def source_files(self, root: Path, path: str) -> tuple[Path, ...]:
        entry = self._source if self._source is not None else path
        return (Path(root) / entry,)


def bun_build(source: str | None = None, *, tool: Sequence[str] | None = None) -> BunBuild:
    """Return a transform that builds local scripts on the fly with ``bun``."""
    return BunBuild(source, tool=tool)
