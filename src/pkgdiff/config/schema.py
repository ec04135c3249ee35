"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutputFormat = Literal["terminal", "json"]

OUTPUT_FORMATS = ("terminal", "json")


@dataclass
class DiffConfig:
    similarity_threshold: float = 0.5  # renames must score strictly above this
    basename_boost: float = 1.2  # score multiplier when file names match


@dataclass
class SourcesConfig:
    timeout: float = 30.0  # seconds, per HTTP request
    npm_registry: str = "https://registry.npmjs.org"
    crates_static: str = "https://static.crates.io"
    pypi_url: str = "https://pypi.org"
    rubygems_url: str = "https://rubygems.org"


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_unchanged: bool = False


@dataclass
class PkgDiffConfig:
    version: str = "1.0"
    diff: DiffConfig = field(default_factory=DiffConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
