"""Load BundledConfig from bundled.yaml / bundled.toml if present.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from bundled._errors import ConfigError
from bundled.config import BundledConfig

_CONFIG_KEYS = frozenset({
    "cache_dir", "gc_interval", "gc_interval_unit", "bun",
    "prefix", "cache_control", "live",
})


def load_config(root: Path, **overrides: object) -> BundledConfig:
    """Load BundledConfig from root, optionally merging bundled.yaml.

    Looks for bundled.yaml, bundled.yml, or bundled.toml in root. If found,
    loads and merges with overrides. Overrides take precedence. Keys set to
    ``None`` in overrides are ignored so CLI defaults don't mask the file.
    """
    file_config = _read_bundled_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    if "cache_dir" in merged:
        cache_dir = Path(str(merged["cache_dir"])).expanduser()
        if not cache_dir.is_absolute():
            cache_dir = root / cache_dir
        merged["cache_dir"] = cache_dir
    return BundledConfig(**merged)  # type: ignore[arg-type]


def _read_bundled_config(root: Path) -> dict[str, object]:
    """Read bundled config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("bundled.yaml", "bundled.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "bundled.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        msg = f"Could not parse {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_bundled_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        msg = f"Could not parse {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_bundled_section(data)


def _flatten_bundled_section(data: dict[str, object]) -> dict[str, object]:
    """Extract bundled.* keys into top-level config."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "bundled" and k in _CONFIG_KEYS:
            result[k] = v
    section = data.get("bundled")
    if isinstance(section, dict):
        for k, v in section.items():
            if k not in _CONFIG_KEYS:
                msg = f"Unknown bundled config key: {k!r}"
                raise ConfigError(msg)
            result[k] = v
    return result
