"""Configuration loading, schema, and defaults."""

from pkgdiff.config.loader import ConfigError, load_config
from pkgdiff.config.schema import PkgDiffConfig

__all__ = [
    "ConfigError",
    "PkgDiffConfig",
    "load_config",
]
