"""pkgdiff — structural and line-level diffs between package versions."""

__version__ = "0.1.0"
