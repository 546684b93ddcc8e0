"""Tests for bundled._errors — the error hierarchy."""

import pytest

from bundled._errors import (
    AlreadyClosed,
    BuildError,
    BundledError,
    ConfigError,
    DownloadError,
    IntegrityError,
    NotADirectory,
    ProcessSpawnError,
    ResourceNotFound,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            AlreadyClosed,
            BuildError,
            ConfigError,
            DownloadError,
            IntegrityError,
            NotADirectory,
            ProcessSpawnError,
            ResourceNotFound,
        ],
    )
    def test_all_are_bundled_errors(self, error: type[Exception]) -> None:
        assert issubclass(error, BundledError)

    def test_builtin_compat(self) -> None:
        assert issubclass(ResourceNotFound, FileNotFoundError)
        assert issubclass(NotADirectory, NotADirectoryError)

    def test_catch_as_builtin(self) -> None:
        with pytest.raises(FileNotFoundError):
            raise ResourceNotFound("gone")
