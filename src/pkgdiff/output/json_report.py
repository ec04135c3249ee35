"""JSON reporter for tree diffs and file diffs."""

from __future__ import annotations

import json
from typing import Any, Dict

from pkgdiff.engine.models import DiffNode, FileDiff
from pkgdiff.session.session import DiffOutcome


def node_to_dict(node: DiffNode) -> Dict[str, Any]:
    """Convert a DiffNode (recursively) to a JSON-serialisable dict."""
    data: Dict[str, Any] = {
        "path": node.path,
        "type": node.kind.value,
        "status": node.status.value,
        "added": node.added_lines,
        "removed": node.removed_lines,
        **({"old_path": node.old_path} if node.old_path else {}),
    }
    if node.children is not None:
        data["children"] = [node_to_dict(child) for child in node.children]
    return data


def to_dict(outcome: DiffOutcome) -> Dict[str, Any]:
    """Convert a DiffOutcome to a JSON-serialisable dict."""
    return {
        "version": "1.0",
        "request_id": outcome.request_id,
        "duration_ms": outcome.duration_ms,
        "summary": {status.value: count for status, count in outcome.tree.stats().items()},
        "tree": node_to_dict(outcome.tree),
    }


def file_diff_to_dict(diff: FileDiff) -> Dict[str, Any]:
    return {
        "path": diff.path,
        **({"old_path": diff.old_path} if diff.old_path else {}),
        "is_textually_different": diff.is_textually_different,
        "added": diff.counts.added,
        "removed": diff.counts.removed,
        "text": diff.text,
    }


def render(outcome: DiffOutcome) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(outcome), indent=2)


def render_file_diff(diff: FileDiff) -> str:
    return json.dumps(file_diff_to_dict(diff), indent=2)
