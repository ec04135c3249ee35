"""Starter .pkgdiff.toml template."""

DEFAULT_TOML = """\
# pkgdiff configuration
version = "1.0"

[diff]
similarity_threshold = 0.5   # a rename must score strictly above this (0.0 - 1.0)
basename_boost = 1.2         # score multiplier when old and new file names match

[sources]
timeout = 30.0               # seconds per HTTP request
# npm_registry = "https://registry.npmjs.org"
# crates_static = "https://static.crates.io"
# pypi_url = "https://pypi.org"
# rubygems_url = "https://rubygems.org"

[output]
format = "terminal"          # terminal | json
show_unchanged = false
"""
