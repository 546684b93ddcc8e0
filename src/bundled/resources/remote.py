"""Remote resources — downloaded once, verified, then served from memory."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import urlsplit

from bundled._errors import IntegrityError
from bundled.resources.headers import freeze_headers
from bundled.store import ContentStore, default_store, sha256_hex

DEFAULT_PREFIX = "/resource"


def _basename(url: str) -> str:
    return PurePosixPath(urlsplit(url).path).name


@dataclass(frozen=True, slots=True)
class RemoteResource:
    """A remote file pinned to a SHA-256.

    Build one with :meth:`fetch`, which goes through the download cache.
    Direct construction re-hashes ``content``, so an instance whose bytes
    don't match ``hash`` can never exist.

    Attributes:
        name: File name used in the serving path (and for ``Content-Type``).
        url: Where the bytes were downloaded from.
        content: The verified bytes.
        hash: Lowercase hex SHA-256 of ``content``.
        headers: Header overrides as ``(name, value)`` pairs.
        prefix: URL prefix of the serving path.

    """

    name: str
    url: str
    content: bytes = field(repr=False)
    hash: str
    headers: tuple[tuple[str, str], ...] = ()
    prefix: str = DEFAULT_PREFIX

    def __post_init__(self) -> None:
        actual = sha256_hex(self.content)
        if actual != self.hash:
            msg = (
                f"SHA256 mismatch for {self.url!r}: "
                f"expected {self.hash!r}, got {actual!r}."
            )
            raise IntegrityError(msg)
        object.__setattr__(self, "headers", freeze_headers(self.headers))

    @classmethod
    def fetch(
        cls,
        url: str,
        *,
        sha256: str,
        name: str | None = None,
        headers: Mapping[str, str] | None = None,
        prefix: str = DEFAULT_PREFIX,
        store: ContentStore | None = None,
    ) -> RemoteResource:
        """Download (or reuse the cached copy of) ``url`` and verify it.

        Args:
            url: Location of the file.
            sha256: Expected hex SHA-256 of the file.
            name: Served file name; defaults to the last segment of the URL.
            headers: Header overrides, e.g. an explicit ``Content-Type``.
            prefix: URL prefix of the serving path.
            store: Download cache; defaults to the process-wide store.

        Raises:
            IntegrityError: The downloaded bytes hash to something else.
            DownloadError: The file could not be downloaded.

        """
        store = store if store is not None else default_store()
        expected = sha256.lower()
        actual = store.fetch_and_cache(url, expected)
        if actual != expected:
            msg = f"SHA256 mismatch for {url!r}: expected {sha256!r}, got {actual!r}."
            raise IntegrityError(msg)
        return cls(
            name=name if name is not None else _basename(url),
            url=url,
            content=store.read_cached(actual),
            hash=actual,
            headers=freeze_headers(headers),
            prefix=prefix,
        )
