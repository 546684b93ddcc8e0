"""Content-addressed download cache.

Downloaded bytes live in a flat directory, one file per blob, named by the
lowercase hex SHA-256 of the blob.  The file's existence is the only state.
A reserved ``last_gc`` file records when the cache was last garbage
collected; collection is blunt (everything goes) because every entry can be
re-downloaded from its URL.

Thread Safety:
    Writes go through a temporary file and ``os.replace``.  Two threads
    fetching the same URL may both download it; the last writer wins, which
    is harmless because the bytes are identical by construction.

"""

from __future__ import annotations

import calendar
import hashlib
import os
import re
import shutil
import sys
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from bundled._errors import ConfigError, DownloadError, ResourceNotFound
from bundled.config import BundledConfig, validate_gc_interval
from bundled.config_loader import load_config

if TYPE_CHECKING:
    from collections.abc import Iterator

    from bundled.observability.collector import StackCollector

LAST_GC = "last_gc"

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")

_FIXED_UNITS = {
    "weeks": timedelta(weeks=1),
    "days": timedelta(days=1),
    "hours": timedelta(hours=1),
    "minutes": timedelta(minutes=1),
    "seconds": timedelta(seconds=1),
}


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 of ``data``."""
    return hashlib.sha256(data).hexdigest()


def _add_months(moment: datetime, months: int) -> datetime:
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True, slots=True)
class GcPolicy:
    """How often the download cache may be emptied.

    Attributes:
        interval: Positive number of ``unit`` between collections.
        unit: ``years``, ``months``, ``weeks``, ``days``, ``hours``,
            ``minutes`` or ``seconds``.

    """

    interval: int = 1
    unit: str = "months"

    def __post_init__(self) -> None:
        validate_gc_interval(self.interval, self.unit)

    @classmethod
    def from_config(cls, config: BundledConfig) -> GcPolicy:
        return cls(interval=config.gc_interval, unit=config.gc_interval_unit)

    def next_due(self, last_gc: datetime) -> datetime:
        """Return the moment after which a collection following ``last_gc`` is due."""
        if self.unit == "years":
            return _add_months(last_gc, 12 * self.interval)
        if self.unit == "months":
            return _add_months(last_gc, self.interval)
        return last_gc + _FIXED_UNITS[self.unit] * self.interval

    def is_due(self, last_gc: datetime, now: datetime) -> bool:
        return self.next_due(last_gc) < now


def _parse_marker(text: str, marker: Path) -> datetime:
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        msg = f"Invalid {LAST_GC!r} file {marker}: {text!r}. Must be an ISO-8601 timestamp."
        raise ConfigError(msg) from exc
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


class ContentStore:
    """Download cache keyed by SHA-256.

    Args:
        root: Cache directory (created if missing).
        policy: Garbage-collection interval.
        client: Optional ``httpx.Client`` used for downloads. When omitted a
            short-lived client is created per download.
        collector: Optional StackCollector for fetch/GC events.

    """

    def __init__(
        self,
        root: Path,
        *,
        policy: GcPolicy | None = None,
        client: httpx.Client | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._policy = policy if policy is not None else GcPolicy()
        self._client = client
        self._collector = collector

    @property
    def root(self) -> Path:
        return self._root

    @property
    def policy(self) -> GcPolicy:
        return self._policy

    @property
    def marker(self) -> Path:
        """Path of the ``last_gc`` marker file."""
        return self._root / LAST_GC

    # ----- Lookup -----

    def path_for(self, digest: str) -> Path:
        """Return where the blob with ``digest`` is (or would be) stored."""
        if not _HEX_DIGEST.match(digest):
            msg = f"Not a lowercase hex SHA-256 digest: {digest!r}"
            raise ValueError(msg)
        return self._root / digest

    def contains(self, digest: str) -> bool:
        return bool(_HEX_DIGEST.match(digest)) and (self._root / digest).is_file()

    def entries(self) -> Iterator[str]:
        """Yield the digests of every cached blob."""
        for entry in sorted(self._root.iterdir()):
            if entry.is_file() and _HEX_DIGEST.match(entry.name):
                yield entry.name

    def read_cached(self, digest: str) -> bytes:
        """Return the cached bytes for ``digest``.

        Raises:
            ResourceNotFound: Nothing is cached under ``digest``.

        """
        if not self.contains(digest):
            msg = f"No cached download with SHA-256 {digest!r} in {self._root}"
            raise ResourceNotFound(msg)
        return (self._root / digest).read_bytes()

    # ----- Fetch -----

    def fetch_and_cache(self, url: str, expected_hash: str) -> str:
        """Make sure the content of ``url`` is cached and return its SHA-256.

        Skips the network entirely when a blob named ``expected_hash`` is
        already cached.  Otherwise downloads ``url`` and stores the bytes
        under their *actual* hash, which is returned.  Whether that matches
        ``expected_hash`` is for the caller to decide.

        Raises:
            DownloadError: The request failed or returned an error status.

        """
        if self.contains(expected_hash):
            if self._collector is not None:
                self._collector.record_fetch(url, expected_hash, cached=True)
            return expected_hash

        t0 = time.perf_counter()
        data = self._download(url)
        digest = sha256_hex(data)
        self._write(digest, data)
        elapsed = (time.perf_counter() - t0) * 1000

        if self._collector is not None:
            self._collector.record_fetch(
                url, digest, cached=False, size_bytes=len(data), duration_ms=elapsed,
            )
        return digest

    def _download(self, url: str) -> bytes:
        try:
            if self._client is not None:
                response = self._client.get(url, follow_redirects=True)
                response.raise_for_status()
                return response.content
            with httpx.Client(follow_redirects=True, timeout=60.0) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            msg = f"Failed to download {url!r}: {exc}"
            raise DownloadError(msg) from exc

    def _write(self, digest: str, data: bytes) -> None:
        target = self._root / digest
        tmp = target.with_name(f".{digest}.{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    # ----- Garbage collection -----

    def gc(self, now: datetime | None = None, *, force: bool = False) -> int:
        """Empty the cache if the GC interval has elapsed since ``last_gc``.

        A missing or empty marker is (re)written with the current time and
        nothing is deleted.  The marker itself is never deleted.  With
        ``force`` the interval check is skipped and the marker is always
        rewritten.

        Returns:
            Number of entries removed.

        Raises:
            ConfigError: The marker does not hold a valid timestamp.

        """
        now = now if now is not None else datetime.now()
        marker = self.marker

        if not force:
            if not marker.is_file():
                self._stamp(now)
                return 0
            text = marker.read_text().strip()
            if not text:
                self._stamp(now)
                return 0

            last_gc = _parse_marker(text, marker)
            if not self._policy.is_due(last_gc, now):
                return 0

        print(
            f"  Garbage collecting cached downloads in {self._root} "
            f"(gc_interval={self._policy.interval}, gc_interval_unit={self._policy.unit}).",
            file=sys.stderr,
        )
        entries = list(self._root.iterdir())
        others = [entry for entry in entries if entry.name != LAST_GC]
        if len(entries) <= 1 and not (force and others):
            print("  No files to garbage collect.", file=sys.stderr)
            if force:
                self._stamp(now)
            return 0

        removed = 0
        for entry in others:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink(missing_ok=True)
            removed += 1
        self._stamp(now)

        print(f"  Garbage collection complete. {removed} files removed.", file=sys.stderr)
        if self._collector is not None:
            self._collector.record_gc(str(self._root), removed)
        return removed

    def _stamp(self, now: datetime) -> None:
        self.marker.write_text(now.isoformat())


# ---------------------------------------------------------------------------
# Process-wide default store
# ---------------------------------------------------------------------------

_default_store: ContentStore | None = None
_default_lock = threading.Lock()


def default_store(config: BundledConfig | None = None) -> ContentStore:
    """Return the process-wide store, creating it (and running GC) on first use.

    The store is configured from ``config``, or from the ``bundled.yaml`` /
    ``bundled.toml`` in the working directory when omitted.  ``config`` is
    ignored once the store exists.
    """
    global _default_store  # noqa: PLW0603
    with _default_lock:
        if _default_store is None:
            if config is None:
                config = load_config(Path.cwd())
            store = ContentStore(config.cache_dir, policy=GcPolicy.from_config(config))
            store.gc()
            _default_store = store
        return _default_store


def set_default_store(store: ContentStore | None) -> None:
    """Replace the process-wide store; ``None`` resets to lazy creation."""
    global _default_store  # noqa: PLW0603
    with _default_lock:
        _default_store = store
