"""Diff engine — line diffs, rename detection, diff trees."""

from pkgdiff.engine.linediff import (
    Edit,
    EditOp,
    count_changes,
    diff_file,
    edit_script,
    line_count,
    render_diff,
    similarity,
    split_lines,
)
from pkgdiff.engine.models import DiffCounts, DiffNode, DiffStatus, FileDiff, RenameMap
from pkgdiff.engine.tree import DiffTreeBuilder, build_diff_tree

__all__ = [
    "DiffCounts",
    "DiffNode",
    "DiffStatus",
    "DiffTreeBuilder",
    "Edit",
    "EditOp",
    "FileDiff",
    "RenameMap",
    "build_diff_tree",
    "count_changes",
    "diff_file",
    "edit_script",
    "line_count",
    "render_diff",
    "similarity",
    "split_lines",
]
