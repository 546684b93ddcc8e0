"""Bundled configuration.

BundledConfig is the central configuration object, frozen after creation.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from bundled._errors import ConfigError

GC_UNITS = ("years", "months", "weeks", "days", "hours", "minutes", "seconds")

DEFAULT_CACHE_CONTROL = "max-age=604800, immutable"

# Environment variable that relocates the download cache
CACHE_DIR_ENV = "BUNDLED_CACHE_DIR"


def default_cache_dir() -> Path:
    """Return ``$BUNDLED_CACHE_DIR`` or ``~/.cache/bundled/download_cache``."""
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".cache" / "bundled" / "download_cache"


def validate_gc_interval(interval: object, unit: object) -> None:
    """Raise ConfigError unless ``interval`` is a positive int and ``unit`` is known."""
    if unit not in GC_UNITS:
        msg = f"Invalid 'gc_interval_unit': {unit!r}. Must be one of {', '.join(GC_UNITS)}."
        raise ConfigError(msg)
    # bool is an int subclass; "true" is not an interval
    if isinstance(interval, bool) or not isinstance(interval, int):
        msg = f"Invalid 'gc_interval': {interval!r}. Must be an integer."
        raise ConfigError(msg)
    if interval < 1:
        msg = f"Invalid 'gc_interval': {interval!r}. Must be greater than 0."
        raise ConfigError(msg)


@dataclass(frozen=True, slots=True)
class BundledConfig:
    """Configuration for bundled resources.

    Attributes:
        cache_dir: Download cache directory. Always resolved to an absolute
            path on construction.
        gc_interval: How many ``gc_interval_unit`` must pass between cache
            garbage collections.
        gc_interval_unit: One of ``years``, ``months``, ``weeks``, ``days``,
            ``hours``, ``minutes``, ``seconds``.
        bun: Path to the ``bun`` executable (``None`` = look it up).
        prefix: URL prefix for remote resources.
        cache_control: ``Cache-Control`` header sent with every resource.
        live: Re-check source files on every request (development).

    """

    cache_dir: Path = field(default_factory=default_cache_dir)
    gc_interval: int = 1
    gc_interval_unit: str = "months"
    bun: str | None = None
    prefix: str = "/resource"
    cache_control: str = DEFAULT_CACHE_CONTROL
    live: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.cache_dir, Path):
            object.__setattr__(self, "cache_dir", Path(self.cache_dir))
        if not self.cache_dir.is_absolute():
            object.__setattr__(self, "cache_dir", self.cache_dir.resolve())
        validate_gc_interval(self.gc_interval, self.gc_interval_unit)
