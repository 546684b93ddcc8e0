"""Process-wide, build-once values.

Decorate a zero-argument factory with :func:`constant` to compute its result
on first call and hand back the same object afterwards::

    @constant("plotly")
    def plotly() -> RemoteResource:
        return RemoteResource.fetch(PLOTLY_URL, sha256=PLOTLY_SHA256)

Unlike a module-level constant the value can be dropped with
:func:`reset_constants`, after which the next call rebuilds it.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any

_values: dict[str, Any] = {}
# Re-entrant: a factory may call another constant.
_lock = threading.RLock()


def constant[T](key: str) -> Callable[[Callable[[], T]], Callable[[], T]]:
    """Cache a factory's result process-wide under ``key``."""

    def decorator(factory: Callable[[], T]) -> Callable[[], T]:
        @functools.wraps(factory)
        def wrapper() -> T:
            with _lock:
                if key not in _values:
                    _values[key] = factory()
                return _values[key]

        wrapper.constant_key = key  # type: ignore[attr-defined]
        return wrapper

    return decorator


def reset_constants(*keys: str) -> None:
    """Drop cached values for ``keys``, or every value when none are given."""
    with _lock:
        if not keys:
            _values.clear()
            return
        for key in keys:
            _values.pop(key, None)


def is_cached(key: str) -> bool:
    with _lock:
        return key in _values
