"""Line-level diff: LCS edit scripts, change counts and diff rendering.

Lines are split on ``\\n`` and keep their terminator, so ``"".join(lines)``
reproduces the input exactly (carriage returns included).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pkgdiff.engine.models import DiffCounts, FileDiff

ABSENT_FILE = "/dev/null"
NO_NEWLINE_MARKER = "\\ No newline at end of file"


class EditOp(str, Enum):
    KEEP = "keep"
    DELETE = "delete"
    INSERT = "insert"


_MARKERS = {EditOp.KEEP: " ", EditOp.DELETE: "-", EditOp.INSERT: "+"}


@dataclass(frozen=True, slots=True)
class Edit:
    op: EditOp
    line: str


def split_lines(content: str) -> List[str]:
    """Split *content* on ``\\n``, keeping the terminator on each line."""
    if not content:
        return []
    parts = content.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_count(content: str) -> int:
    return len(split_lines(content))


def _intern(a: Sequence[str], b: Sequence[str]):
    ids: Dict[str, int] = {}
    a_ids = [ids.setdefault(line, len(ids)) for line in a]
    b_ids = [ids.setdefault(line, len(ids)) for line in b]
    return a_ids, b_ids


def _lcs_walk(a: Sequence[str], b: Sequence[str]) -> List[Edit]:
    """Minimal edit script for *a* -> *b* from a suffix-LCS table."""
    a_ids, b_ids = _intern(a, b)
    m, n = len(a_ids), len(b_ids)

    # table[i][j] = LCS length of a[i:] and b[j:]
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m - 1, -1, -1):
        row, below = table[i], table[i + 1]
        ai = a_ids[i]
        for j in range(n - 1, -1, -1):
            if ai == b_ids[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

    edits: List[Edit] = []
    i = j = 0
    while i < m and j < n:
        if a_ids[i] == b_ids[j]:
            edits.append(Edit(EditOp.KEEP, a[i]))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            edits.append(Edit(EditOp.DELETE, a[i]))
            i += 1
        else:
            edits.append(Edit(EditOp.INSERT, b[j]))
            j += 1
    edits.extend(Edit(EditOp.DELETE, line) for line in a[i:])
    edits.extend(Edit(EditOp.INSERT, line) for line in b[j:])
    return edits


def edit_script(from_lines: Sequence[str], to_lines: Sequence[str]) -> List[Edit]:
    """Return a minimal keep/delete/insert script turning *from_lines* into *to_lines*.

    Where both branches keep the same remaining LCS, deletions come first.
    The common prefix and suffix are kept without building the table.
    """
    limit = min(len(from_lines), len(to_lines))
    prefix = 0
    while prefix < limit and from_lines[prefix] == to_lines[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < limit - prefix
        and from_lines[len(from_lines) - 1 - suffix] == to_lines[len(to_lines) - 1 - suffix]
    ):
        suffix += 1

    head = [Edit(EditOp.KEEP, line) for line in from_lines[:prefix]]
    tail = [Edit(EditOp.KEEP, line) for line in from_lines[len(from_lines) - suffix:]]
    middle = _lcs_walk(
        from_lines[prefix:len(from_lines) - suffix],
        to_lines[prefix:len(to_lines) - suffix],
    )
    return head + middle + tail


def count_changes(from_content: Optional[str], to_content: Optional[str]) -> DiffCounts:
    """Count inserted and deleted lines between two contents.

    ``None`` marks an absent side: every line of the other side counts as a
    pure addition or removal.
    """
    if from_content == to_content:
        return DiffCounts()
    if from_content is None:
        return DiffCounts(added=line_count(to_content or ""))
    if to_content is None:
        return DiffCounts(removed=line_count(from_content))

    added = removed = 0
    for edit in edit_script(split_lines(from_content), split_lines(to_content)):
        if edit.op is EditOp.INSERT:
            added += 1
        elif edit.op is EditOp.DELETE:
            removed += 1
    return DiffCounts(added=added, removed=removed)


def similarity(
    from_content: str,
    to_content: str,
    counts: Optional[DiffCounts] = None,
) -> float:
    """Return ``1 - changed / total`` lines, in [0, 1]; 1.0 means identical."""
    total = line_count(from_content) + line_count(to_content)
    if total == 0:
        return 1.0
    if counts is None:
        counts = count_changes(from_content, to_content)
    return 1.0 - counts.total / total


def render_diff(
    old_name: Optional[str],
    new_name: Optional[str],
    from_content: Optional[str],
    to_content: Optional[str],
) -> str:
    """Render the full edit script of two contents as diff text.

    A side whose content is None is shown as ``/dev/null``.
    """
    old_label = f"from/{old_name}" if from_content is not None and old_name else ABSENT_FILE
    new_label = f"to/{new_name}" if to_content is not None and new_name else ABSENT_FILE
    out = [f"--- {old_label}", f"+++ {new_label}"]

    edits = edit_script(split_lines(from_content or ""), split_lines(to_content or ""))
    for edit in edits:
        line = edit.line
        terminated = line.endswith("\n")
        out.append(_MARKERS[edit.op] + (line[:-1] if terminated else line))
        if not terminated and edit.op is not EditOp.KEEP:
            out.append(NO_NEWLINE_MARKER)
    return "\n".join(out)


def diff_file(
    path: str,
    from_content: Optional[str],
    to_content: Optional[str],
    old_path: Optional[str] = None,
) -> FileDiff:
    """Produce the viewable diff for one file pair.

    Identical contents come back as the plain content with
    ``is_textually_different=False``.
    """
    if from_content is not None and from_content == to_content:
        return FileDiff(path=path, text=from_content, is_textually_different=False, old_path=old_path)

    counts = count_changes(from_content, to_content)
    text = render_diff(old_path or path, path, from_content, to_content)
    return FileDiff(
        path=path,
        text=text,
        is_textually_different=True,
        old_path=old_path,
        counts=counts,
    )
