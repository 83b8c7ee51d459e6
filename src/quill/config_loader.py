"""Load QuillConfig from quill.yaml / quill.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path

import yaml

from quill._errors import ConfigError
from quill.config import QuillConfig

_PATH_KEYS = frozenset({"base_path", "file_server_path", "theme_path", "style_path"})
_KNOWN_KEYS = frozenset(f.name for f in fields(QuillConfig)) - {"root"}


def load_config(root: Path, **overrides: object) -> QuillConfig:
    """Load QuillConfig from root, optionally merging a quill config file.

    Looks for quill.yaml, quill.yml, or quill.toml in root.  Overrides take
    precedence; ``None`` overrides are dropped so unset CLI flags keep the
    file's value.

    Raises:
        ConfigError: If a config file exists but cannot be parsed.

    """
    file_config = _read_quill_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    for key in _PATH_KEYS & merged.keys():
        if not isinstance(merged[key], Path):
            merged[key] = Path(str(merged[key]))
    try:
        return QuillConfig(root=root, **merged)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc


def _read_quill_config(root: Path) -> dict[str, object]:
    """Read quill config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("quill.yaml", "quill.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "quill.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_quill_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_quill_section(data)


def _flatten_quill_section(data: dict[str, object]) -> dict[str, object]:
    """Extract quill.* and known top-level keys into one flat mapping."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("quill")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result
