"""Shared test fixtures for bundled."""

from __future__ import annotations

import hashlib
import os
import sys
import time
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from bundled.resources.constants import reset_constants
from bundled.store import ContentStore, set_default_store

PLOTLY_URL = "https://cdn.example.com/npm/plotly.js@2.26.2/dist/plotly.min.js"
PLOTLY_BYTES = b"/* plotly */\nwindow.Plotly = {};\n"
PLOTLY_SHA256 = hashlib.sha256(PLOTLY_BYTES).hexdigest()

# Stands in for ``bun``: ``build <entry> [--outdir DIR] [--watch]``.
# One-shot builds print the bundle; watch mode rewrites DIR/<stem>.js whenever
# the entry point changes and announces it the way bun does.  Sources
# containing ERROR produce a diagnostic instead.
FAKE_BUN = r'''
import os, sys, time
from pathlib import Path

args = sys.argv[1:]
assert args[0] == "build", args
entry = Path(args[1])
outdir = Path(args[args.index("--outdir") + 1]) if "--outdir" in args else None
watching = "--watch" in args

def bundle():
    return "// bundled\n" + entry.read_text()

if outdir is None:
    sys.stdout.write(bundle())
    sys.exit(0)

last = entry.stat().st_mtime_ns
target = outdir / (entry.stem + ".js")
target.write_text(bundle())
if not watching:
    sys.exit(0)

while True:
    time.sleep(0.05)
    try:
        current = entry.stat().st_mtime_ns
    except FileNotFoundError:
        continue
    if current == last:
        continue
    last = current
    source = entry.read_text()
    if "ERROR" in source:
        print("error: Unexpected token at line 1", flush=True)
        continue
    target.write_text(bundle())
    print(f"Bundled 1 module in 3ms\n\n  {target.name}  0.1 KB  (entry point)", flush=True)
'''


class FakeCDN:
    """httpx MockTransport handler serving a fixed set of URLs."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = dict(files or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        body = self.files.get(url)
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)


@pytest.fixture(autouse=True)
def _isolate(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    """Keep the default cache out of $HOME and reset process-wide state."""
    monkeypatch.setenv("BUNDLED_CACHE_DIR", str(tmp_path_factory.mktemp("default-cache")))
    monkeypatch.delenv("BUNDLED_BUN", raising=False)
    set_default_store(None)
    reset_constants()
    yield
    set_default_store(None)
    reset_constants()


@pytest.fixture
def cdn() -> FakeCDN:
    return FakeCDN({PLOTLY_URL: PLOTLY_BYTES})


@pytest.fixture
def store(tmp_path: Path, cdn: FakeCDN) -> ContentStore:
    """A ContentStore in a temp dir whose downloads hit ``cdn``."""
    client = httpx.Client(transport=httpx.MockTransport(cdn))
    return ContentStore(tmp_path / "cache", client=client)


@pytest.fixture
def fake_bun(tmp_path_factory: pytest.TempPathFactory) -> list[str]:
    """Command prefix running the fake build tool."""
    script = tmp_path_factory.mktemp("tool") / "fake_bun.py"
    script.write_text(FAKE_BUN)
    return [sys.executable, str(script)]


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """A directory with an entry point and a stylesheet."""
    root = tmp_path / "web"
    root.mkdir()
    (root / "index.ts").write_text("console.log('hello');\n")
    (root / "output.css").write_text("body { margin: 0; }\n")
    return root


def bump_mtime(path: Path, seconds: int = 1) -> None:
    """Move ``path``'s mtime forward so coarse clocks still see a change."""
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


def wait_for(predicate: Callable[[], bool], timeout: float = 10.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()
