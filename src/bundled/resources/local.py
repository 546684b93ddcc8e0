"""Local resources — files on disk, optionally produced by a transform."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from bundled._errors import NotADirectory, ResourceNotFound
from bundled._types import Transform
from bundled.resources.headers import freeze_headers


def read_file(root: Path, path: str) -> bytes:
    """Default transform: the raw bytes of ``root / path``."""
    return (Path(root) / path).read_bytes()


@dataclass(frozen=True, slots=True)
class LocalResource:
    """A file under ``root`` served at its relative ``path``.

    ``transform(root, path)`` produces the served bytes on every call to
    :meth:`content`; the default reads the file as-is.  A custom transform
    (e.g. :func:`bundled.build.tool.bun_build`) may synthesise the output
    from other inputs, so the file at ``path`` need not exist for it.

    The transform runs once during construction.  That surfaces errors at
    definition time and lets caching transforms warm up, so transforms must
    tolerate an extra call.

    Raises:
        NotADirectory: ``root`` is not a directory.
        ResourceNotFound: ``path`` does not exist and the default transform
            is used.

    """

    root: Path
    path: str
    transform: Transform = read_file
    headers: tuple[tuple[str, str], ...] | Mapping[str, str] = ()
    prefix: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "path", str(self.path))
        object.__setattr__(self, "headers", freeze_headers(self.headers))

        if not self.root.is_dir():
            msg = f"{str(self.root)!r} is not a directory."
            raise NotADirectory(msg)
        if self.transform is read_file and not self.file.is_file():
            msg = f"{self.path!r} is not a file in {str(self.root)!r}."
            raise ResourceNotFound(msg)

        self.content()

    @property
    def file(self) -> Path:
        """Absolute-ish path of the backing file."""
        return self.root / self.path

    @property
    def transformed(self) -> bool:
        return self.transform is not read_file

    def content(self) -> bytes:
        """Run the transform and return the bytes to serve."""
        data = self.transform(self.root, self.path)
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    def source_files(self) -> tuple[Path, ...]:
        """Files whose modification should invalidate this resource."""
        extra = getattr(self.transform, "source_files", None)
        files = [self.file]
        if callable(extra):
            files.extend(extra(self.root, self.path))
        return tuple(dict.fromkeys(files))
