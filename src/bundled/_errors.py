"""Bundled error hierarchy.

All bundled-specific errors inherit from BundledError for easy catching.
Errors that describe a missing path also inherit from the matching builtin
so callers that already handle ``FileNotFoundError`` keep working.
"""


class BundledError(Exception):
    """Base error for all bundled operations."""


class ConfigError(BundledError):
    """Invalid configuration (GC interval, unit, or ``last_gc`` marker)."""


class IntegrityError(BundledError):
    """Downloaded content does not match its declared SHA-256."""


class ResourceNotFound(BundledError, FileNotFoundError):
    """A file or cache entry that a resource depends on does not exist."""


class NotADirectory(BundledError, NotADirectoryError):
    """A resource or build root is not a directory."""


class DownloadError(BundledError):
    """A remote resource could not be downloaded."""


class ProcessSpawnError(BundledError):
    """The external build tool could not be located or launched."""


class AlreadyClosed(BundledError):
    """A build watcher was closed twice."""


class BuildError(BundledError):
    """The build tool ran but reported failure."""
