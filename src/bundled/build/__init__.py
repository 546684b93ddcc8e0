"""Build layer — running the external ``bun`` bundler.

One-shot builds for LocalResource transforms and a supervised
``build --watch`` process for development.
"""

from bundled.build.tool import BunBuild, build_command, bun_build, find_tool
from bundled.build.watcher import BuildWatcher, is_rebuild_message, watch

__all__ = [
    "BuildWatcher",
    "BunBuild",
    "build_command",
    "bun_build",
    "find_tool",
    "is_rebuild_message",
    "watch",
]
