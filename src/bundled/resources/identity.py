"""Serving paths, bodies and headers of resources.

A resource's URL is derived from its content: identical bytes always serve
at the same path and any change to the bytes changes the path, so browsers
and proxies can cache resources forever.

Remote resources live at ``{prefix}/{token}/{name}`` where ``token`` encodes
the declared SHA-256.  Local resources live at their relative path with the
token as a ``?v=`` query parameter; the router matches on the path alone so
a rebuilt file replaces its predecessor in place.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

from bundled.resources.headers import build_headers
from bundled.resources.local import LocalResource
from bundled.resources.remote import RemoteResource
from bundled.store import sha256_hex

if TYPE_CHECKING:
    from bundled._types import Resource

_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


def encode_digest(digest: str) -> str:
    """Render the first 64 bits of a hex digest in base 62."""
    value = int(digest[:16], 16)
    if value == 0:
        return _ALPHABET[0]
    chars: list[str] = []
    while value:
        value, rem = divmod(value, 62)
        chars.append(_ALPHABET[rem])
    return "".join(reversed(chars))


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./`` or ``/``."""
    return PurePath(path).as_posix().lstrip("/")


def content_of(resource: Resource) -> bytes:
    """Return the bytes served for ``resource``."""
    if isinstance(resource, RemoteResource):
        return resource.content
    return resource.content()


def path_of(resource: Resource, body: bytes | None = None) -> str:
    """Return the cache-busting URL for ``resource``.

    For local resources the version token hashes ``body`` when given,
    otherwise the transform is run to produce it.
    """
    if isinstance(resource, RemoteResource):
        return f"{resource.prefix}/{encode_digest(resource.hash)}/{resource.name}"
    if body is None:
        body = resource.content()
    token = encode_digest(sha256_hex(body))
    return f"{resource.prefix}/{normalize_path(resource.path)}?v={token}"


def route_path_of(resource: Resource, body: bytes | None = None) -> str:
    """Return the part of :func:`path_of` that requests are matched on."""
    return path_of(resource, body).split("?", 1)[0]


def headers_of(
    resource: Resource, body: bytes, *, cache_control: str | None = None,
) -> tuple[tuple[str, str], ...]:
    """Return the response headers for serving ``body`` as ``resource``."""
    name = resource.name if isinstance(resource, RemoteResource) else resource.path
    if cache_control is None:
        return build_headers(name, body, resource.headers)
    return build_headers(name, body, resource.headers, cache_control=cache_control)
