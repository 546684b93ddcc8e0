"""Bundled CLI — bundled gc / fetch / hash / watch.

Entry point for the ``bundled`` command-line interface.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bundled.config import BundledConfig
    from bundled.store import ContentStore


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the bundled CLI."""
    parser = argparse.ArgumentParser(
        prog="bundled",
        description="Integrity-verified, content-addressed web resources.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("--root", default=".", help="Directory holding bundled.yaml/toml")
    parser.add_argument("--cache-dir", default=None, help="Download cache directory")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # bundled gc
    gc_parser = subparsers.add_parser("gc", help="Garbage collect the download cache")
    gc_parser.add_argument(
        "--force", action="store_true", help="Collect now, ignoring the GC interval",
    )

    # bundled fetch
    fetch_parser = subparsers.add_parser(
        "fetch", help="Download a URL into the cache and print its SHA-256",
    )
    fetch_parser.add_argument("url", help="URL to download")
    fetch_parser.add_argument("--sha256", default="", help="Expected SHA-256")
    fetch_parser.add_argument("--name", default=None, help="Served file name")

    # bundled hash
    hash_parser = subparsers.add_parser("hash", help="Print the SHA-256 of local files")
    hash_parser.add_argument("files", nargs="+", help="Files to hash")

    # bundled watch
    watch_parser = subparsers.add_parser("watch", help="Run `bun build --watch`")
    watch_parser.add_argument("build_root", nargs="?", default=".", help="Build directory")
    watch_parser.add_argument("--entrypoint", default="index.ts", help="Entry point")
    watch_parser.add_argument("--outdir", default="dist", help="Output directory")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from bundled import __version__

    return __version__


def _store(args: argparse.Namespace) -> tuple[BundledConfig, ContentStore]:
    from bundled.config_loader import load_config
    from bundled.store import ContentStore, GcPolicy

    config = load_config(Path(args.root), cache_dir=args.cache_dir)
    return config, ContentStore(config.cache_dir, policy=GcPolicy.from_config(config))


def _cmd_gc(args: argparse.Namespace) -> int:
    config, store = _store(args)
    removed = store.gc(force=args.force)
    print(f"{removed} cached files removed from {config.cache_dir}")
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    from bundled._errors import IntegrityError
    from bundled.resources import RemoteResource, path_of

    config, store = _store(args)
    if not args.sha256:
        digest = store.fetch_and_cache(args.url, "")
        print(digest)
        return 0
    try:
        resource = RemoteResource.fetch(
            args.url, sha256=args.sha256, name=args.name, prefix=config.prefix, store=store,
        )
    except IntegrityError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"{resource.hash}  {path_of(resource)}")
    return 0


def _cmd_hash(args: argparse.Namespace) -> int:
    from bundled.store import sha256_hex

    status = 0
    for name in args.files:
        path = Path(name)
        if not path.is_file():
            print(f"error: {name!r} is not a file", file=sys.stderr)
            status = 1
            continue
        print(f"{sha256_hex(path.read_bytes())}  {name}")
    return status


def _cmd_watch(args: argparse.Namespace) -> int:
    from bundled.build.watcher import watch
    from bundled.config_loader import load_config

    config = load_config(Path(args.root))
    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    def announce() -> None:
        print(f"  rebuilt {args.outdir} at {datetime.now():%H:%M:%S}", file=sys.stderr)

    watcher = watch(
        args.build_root,
        args.entrypoint,
        args.outdir,
        announce,
        tool=config.bun,
    )
    try:
        while watcher.running and not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        if not watcher.closed:
            watcher.close()
    return 0


_COMMANDS = {
    "gc": _cmd_gc,
    "fetch": _cmd_fetch,
    "hash": _cmd_hash,
    "watch": _cmd_watch,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from bundled._errors import BundledError

    try:
        status = _COMMANDS[args.command](args)
    except BundledError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(status)


if __name__ == "__main__":
    main()
