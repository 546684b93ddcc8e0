"""Response headers for served resources.

``Content-Type`` resolution order:
    1. An explicit ``Content-Type`` in the resource's header overrides.
    2. The file extension of the resource name.
    3. Sniffing the first bytes of the body.

``Content-Length`` always reflects the body actually served.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Mapping
from pathlib import PurePosixPath

from bundled.config import DEFAULT_CACHE_CONTROL

# Web types whose mimetypes entry varies by platform registry
_WEB_TYPES = {
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".cjs": "text/javascript",
    ".css": "text/css",
    ".html": "text/html",
    ".json": "application/json",
    ".map": "application/json",
    ".svg": "image/svg+xml",
    ".wasm": "application/wasm",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".txt": "text/plain",
}

_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"wOF2", "font/woff2"),
    (b"wOFF", "font/woff"),
    (b"\x00asm", "application/wasm"),
    (b"%PDF-", "application/pdf"),
)

_TEXTUAL = ("application/json", "application/javascript", "image/svg+xml")


def sniff_content_type(body: bytes) -> str:
    """Guess a MIME type from the leading bytes of ``body``."""
    for magic, mime in _MAGIC:
        if body.startswith(magic):
            return mime
    window = body[:4096]
    if b"\x00" in window:
        return "application/octet-stream"
    try:
        window.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut at the window edge is still text
        if len(body) <= len(window) or exc.start < len(window) - 3:
            return "application/octet-stream"
    return "text/plain"


def with_charset(mime: str) -> str:
    if mime.startswith("text/") or mime in _TEXTUAL:
        return f"{mime}; charset=utf-8"
    return mime


def content_type_for(name: str, body: bytes) -> str:
    """Infer a ``Content-Type`` from the file name, falling back to the bytes."""
    suffix = PurePosixPath(name).suffix.lower()
    mime = _WEB_TYPES.get(suffix) or mimetypes.guess_type(name, strict=False)[0]
    if mime is None:
        mime = sniff_content_type(body)
    return with_charset(mime)


def freeze_headers(headers: Mapping[str, str] | tuple[tuple[str, str], ...] | None) -> tuple[tuple[str, str], ...]:
    """Normalize header overrides to a hashable tuple of pairs."""
    if not headers:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(k), str(v)) for k, v in items)


def build_headers(
    name: str,
    body: bytes,
    overrides: tuple[tuple[str, str], ...] = (),
    *,
    cache_control: str = DEFAULT_CACHE_CONTROL,
) -> tuple[tuple[str, str], ...]:
    """Return the full header set for serving ``body`` as ``name``."""
    extra = {k.lower(): (k, v) for k, v in overrides}
    content_type = extra.pop("content-type", (None, None))[1] or content_type_for(name, body)
    extra.pop("content-length", None)
    cache = extra.pop("cache-control", (None, None))[1] or cache_control
    return (
        ("Content-Type", content_type),
        ("Content-Length", str(len(body))),
        ("Cache-Control", cache),
        *extra.values(),
    )
