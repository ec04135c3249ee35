"""Load and merge configuration from .pkgdiff.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pkgdiff.config.schema import (
    OUTPUT_FORMATS,
    DiffConfig,
    OutputConfig,
    PkgDiffConfig,
    SourcesConfig,
)

CONFIG_FILENAME = ".pkgdiff.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Return *override*, or the nearest CONFIG_FILENAME in *root* or its parents."""
    if override:
        path = Path(override)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return path
    for directory in (root, *root.resolve().parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _parse_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


def _merge_env_overrides(cfg: PkgDiffConfig) -> None:
    """Apply PKGDIFF_* environment variable overrides; invalid values are ignored."""
    if val := os.environ.get("PKGDIFF_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("PKGDIFF_TIMEOUT"):
        timeout = _parse_float(val)
        if timeout is not None and timeout > 0:
            cfg.sources.timeout = timeout
    if val := os.environ.get("PKGDIFF_SIMILARITY_THRESHOLD"):
        threshold = _parse_float(val)
        if threshold is not None and 0.0 <= threshold <= 1.0:
            cfg.diff.similarity_threshold = threshold


def _check_value(section: str, name: str, value: Any, default: Any) -> Any:
    """Return *value* if it has the type of *default*; ints are accepted as floats."""
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, float):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        value = float(value) if ok else value
    else:
        ok = isinstance(value, type(default))
    if not ok:
        raise ConfigError(
            f"[{section}] {name} must be a {type(default).__name__}, got {value!r}"
        )
    return value


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    defaults = {f.name: f.default for f in dataclasses.fields(cls)}
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    return cls(**{
        k: _check_value(section, k, v, defaults[k])
        for k, v in raw.items()
        if k in defaults
    })


def load_config(root: Path, config_override: Optional[str] = None) -> PkgDiffConfig:
    """Load, validate, and return a PkgDiffConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = PkgDiffConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = PkgDiffConfig(
            version=raw.get("version", "1.0"),
            diff=_build_section(raw, DiffConfig, "diff"),
            sources=_build_section(raw, SourcesConfig, "sources"),
            output=_build_section(raw, OutputConfig, "output"),
        )
        if cfg.output.format not in OUTPUT_FORMATS:
            raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
        if not 0.0 <= cfg.diff.similarity_threshold <= 1.0:
            raise ConfigError("[diff] similarity_threshold must be between 0 and 1")
        if cfg.sources.timeout <= 0:
            raise ConfigError("[sources] timeout must be positive")

    _merge_env_overrides(cfg)
    return cfg
