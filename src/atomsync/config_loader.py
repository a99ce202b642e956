"""Load RelayConfig from atomsync.yaml / atomsync.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from atomsync._errors import ConfigError
from atomsync.config import RelayConfig

_CONFIG_KEYS = frozenset({
    "host", "port", "max_message_size", "ping_interval", "ping_timeout",
    "outbound_queue_size", "max_events", "verbose",
})


def load_config(root: Path, **overrides: object) -> RelayConfig:
    """Load RelayConfig from root, optionally merging atomsync.yaml.

    Looks for atomsync.yaml, atomsync.yml, or atomsync.toml in root. If found,
    loads and merges with overrides. Overrides take precedence; ``None``
    overrides (unset CLI flags) are ignored.

    Raises:
        ConfigError: If a config file exists but cannot be parsed, or holds
            unknown keys.

    """
    file_config = _read_config_file(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    unknown = sorted(set(merged) - _CONFIG_KEYS)
    if unknown:
        msg = f"Unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)
    try:
        return RelayConfig(**merged)  # type: ignore[arg-type]
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("atomsync.yaml", "atomsync.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "atomsync.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping"
        raise ConfigError(msg)
    return _flatten_atomsync_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_atomsync_section(data)


def _flatten_atomsync_section(data: dict[str, object]) -> dict[str, object]:
    """Extract atomsync.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("atomsync")
    if isinstance(section, dict):
        result.update(section)
    for k, v in data.items():
        if k != "atomsync" and k in _CONFIG_KEYS:
            result[k] = v
    return result
