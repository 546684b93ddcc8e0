"""Change detection by modification time.

A snapshot maps each watched file to its ``st_mtime_ns``.  Files that can't
be stat'ed get ``0``, which always counts as a change: an unknown timestamp
is treated as stale rather than fresh.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

type Snapshot = dict[Path, int]


def mtime_ns(path: Path) -> int:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return 0


def snapshot(files: Iterable[Path]) -> Snapshot:
    """Return ``{file: mtime_ns}`` for ``files``."""
    return {Path(f): mtime_ns(Path(f)) for f in files}


def check(files: Iterable[Path], previous: Mapping[Path, int]) -> tuple[bool, Snapshot]:
    """Compare ``files`` against ``previous``.

    Returns:
        ``(changed, new_snapshot)``.  The new snapshot is returned whether or
        not anything changed so callers can store it unconditionally.

    """
    current = snapshot(files)
    changed = any(
        stamp == 0 or previous.get(path) != stamp
        for path, stamp in current.items()
    )
    return changed, current


class ChangeDetector:
    """Remembers the last snapshot of a file set and reports changes.

    Args:
        files: Initial file set; its snapshot becomes the baseline.

    """

    __slots__ = ("_files", "_snapshot")

    def __init__(self, files: Iterable[Path] = ()) -> None:
        self._files = tuple(dict.fromkeys(Path(f) for f in files))
        self._snapshot: Snapshot = snapshot(self._files)

    @property
    def files(self) -> tuple[Path, ...]:
        return self._files

    @property
    def snapshot(self) -> Snapshot:
        return dict(self._snapshot)

    def poll(self, files: Iterable[Path] | None = None) -> bool:
        """Return True if any file changed since the last poll.

        Passing ``files`` replaces the watched set; new files count as
        changed.
        """
        if files is not None:
            self._files = tuple(dict.fromkeys(Path(f) for f in files))
        changed, self._snapshot = check(self._files, self._snapshot)
        return changed

    def rebase(self, files: Iterable[Path]) -> None:
        """Replace the watched set and take its snapshot as the new baseline."""
        self._files = tuple(dict.fromkeys(Path(f) for f in files))
        self._snapshot = snapshot(self._files)
