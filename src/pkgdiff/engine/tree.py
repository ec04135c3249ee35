"""Diff tree builder — rename detection plus a status-annotated directory tree.

Rename matching is greedy and order dependent: added and removed paths are
visited in lexicographic order, an exact-content pass runs before the
similarity pass, and an added path keeps the best candidate available when it
is visited. Rename sources stay in the tree as ``removed`` leaves.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Optional, Set

from pkgdiff.archive.models import EntryKind, ExtractedPackage, file_content
from pkgdiff.engine.linediff import count_changes, line_count, similarity, split_lines
from pkgdiff.engine.models import DiffCounts, DiffNode, DiffStatus, RenameMap

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.5
DEFAULT_BASENAME_BOOST = 1.2


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _file_paths(files: ExtractedPackage) -> Set[str]:
    return {path for path, entry in files.items() if entry.is_file}


def _directories(files: ExtractedPackage) -> Set[str]:
    """Directory entries plus every directory prefix of every path."""
    dirs = {path for path, entry in files.items() if entry.is_directory}
    for path in files:
        parts = path.split("/")
        for i in range(1, len(parts)):
            dirs.add("/".join(parts[:i]))
    return dirs


class DiffTreeBuilder:
    """Compare two extracted packages and build the annotated diff tree."""

    def __init__(
        self,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        basename_boost: float = DEFAULT_BASENAME_BOOST,
    ) -> None:
        self.similarity_threshold = min(max(similarity_threshold, 0.0), 1.0)
        self.basename_boost = basename_boost

    # ---- rename detection ----

    def detect_renames(
        self, from_files: ExtractedPackage, to_files: ExtractedPackage
    ) -> RenameMap:
        """Match removed file paths to added file paths."""
        from_paths = _file_paths(from_files)
        to_paths = _file_paths(to_files)
        removed = sorted(from_paths - to_paths)
        added = sorted(to_paths - from_paths)

        renames: RenameMap = {}
        unmatched = dict.fromkeys(removed)  # insertion-ordered set

        # Exact content
        by_content: Dict[str, list] = {}
        for path in removed:
            by_content.setdefault(from_files[path].content, []).append(path)
        for path in added:
            for candidate in by_content.get(to_files[path].content, ()):
                if candidate in unmatched:
                    renames[path] = candidate
                    del unmatched[candidate]
                    break

        # Similar content
        old_lines: Dict[str, Counter] = {}
        for path in added:
            if path in renames:
                continue
            content = to_files[path].content
            name = _basename(path)
            new_lines = Counter(split_lines(content))
            new_total = sum(new_lines.values())
            best: Optional[str] = None
            best_score = self.similarity_threshold
            for candidate in unmatched:
                old_content = from_files[candidate].content
                shorter, longer = sorted((len(content), len(old_content)))
                if shorter * 2 < longer:
                    continue
                boost = self.basename_boost if _basename(candidate) == name else 1.0
                if candidate not in old_lines:
                    old_lines[candidate] = Counter(split_lines(old_content))
                # shared lines bound the LCS, so this bounds the score
                total = new_total + sum(old_lines[candidate].values())
                shared = sum((old_lines[candidate] & new_lines).values())
                bound = 1.0 - (total - 2 * shared) / total if total else 1.0
                if bound * boost <= best_score:
                    continue
                score = similarity(old_content, content) * boost
                if score > best_score:
                    best, best_score = candidate, score
            if best is not None:
                renames[path] = best
                del unmatched[best]

        logger.debug(
            "Rename detection: %d removed, %d added, %d renames",
            len(removed), len(added), len(renames),
        )
        return renames

    # ---- tree construction ----

    def build(self, from_files: ExtractedPackage, to_files: ExtractedPackage) -> DiffNode:
        """Return the root node (path ``"/"``) of the diff between two packages."""
        renames = self.detect_renames(from_files, to_files)
        from_dirs = _directories(from_files)
        to_dirs = _directories(to_files)

        root = DiffNode(path="/", kind=EntryKind.DIRECTORY, children=[])
        index: Dict[str, DiffNode] = {}
        all_paths = set(from_files) | set(to_files) | from_dirs | to_dirs
        for path in sorted(all_paths):
            is_dir = path in from_dirs or path in to_dirs
            self._insert(root, index, path, EntryKind.DIRECTORY if is_dir else EntryKind.FILE)

        self._compute(root, from_files, to_files, renames, from_dirs, to_dirs)
        return root

    @staticmethod
    def _insert(root: DiffNode, index: Dict[str, DiffNode], path: str, kind: EntryKind) -> None:
        parts = path.split("/")
        parent = root
        for i in range(len(parts)):
            current = "/".join(parts[:i + 1])
            node = index.get(current)
            if node is None:
                node_kind = kind if i == len(parts) - 1 else EntryKind.DIRECTORY
                node = DiffNode(
                    path=current,
                    kind=node_kind,
                    children=[] if node_kind is EntryKind.DIRECTORY else None,
                )
                assert parent.children is not None
                parent.children.append(node)
                index[current] = node
            parent = node

    # ---- status and counts ----

    def _compute(
        self,
        node: DiffNode,
        from_files: ExtractedPackage,
        to_files: ExtractedPackage,
        renames: RenameMap,
        from_dirs: Set[str],
        to_dirs: Set[str],
    ) -> DiffCounts:
        if not node.is_directory:
            counts = self._compute_leaf(node, from_files, to_files, renames)
            node.added_lines = counts.added
            node.removed_lines = counts.removed
            return counts

        added = removed = 0
        all_unchanged = True
        for child in node.children or ():
            counts = self._compute(child, from_files, to_files, renames, from_dirs, to_dirs)
            added += counts.added
            removed += counts.removed
            if child.status is not DiffStatus.UNCHANGED:
                all_unchanged = False
        node.added_lines = added
        node.removed_lines = removed

        in_from = node.path == "/" or node.path in from_dirs
        in_to = node.path == "/" or node.path in to_dirs
        if in_from and not in_to:
            node.status = DiffStatus.REMOVED
        elif in_to and not in_from:
            node.status = DiffStatus.ADDED
        elif all_unchanged:
            node.status = DiffStatus.UNCHANGED
        else:
            node.status = DiffStatus.MODIFIED
        return DiffCounts(added=added, removed=removed)

    @staticmethod
    def _compute_leaf(
        node: DiffNode,
        from_files: ExtractedPackage,
        to_files: ExtractedPackage,
        renames: RenameMap,
    ) -> DiffCounts:
        new = file_content(to_files, node.path)
        old_path = renames.get(node.path)
        if old_path is not None:
            node.status = DiffStatus.RENAMED
            node.old_path = old_path
            return count_changes(file_content(from_files, old_path), new)

        old = file_content(from_files, node.path)
        if old is None and new is None:
            node.status = DiffStatus.UNCHANGED
            return DiffCounts()
        if new is None:
            node.status = DiffStatus.REMOVED
            return DiffCounts(removed=line_count(old))
        if old is None:
            node.status = DiffStatus.ADDED
            return DiffCounts(added=line_count(new))
        if old == new:
            node.status = DiffStatus.UNCHANGED
            return DiffCounts()
        node.status = DiffStatus.MODIFIED
        return count_changes(old, new)


def build_diff_tree(
    from_files: ExtractedPackage,
    to_files: ExtractedPackage,
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    basename_boost: float = DEFAULT_BASENAME_BOOST,
) -> DiffNode:
    """Build the diff tree between two extracted packages."""
    builder = DiffTreeBuilder(similarity_threshold, basename_boost)
    return builder.build(from_files, to_files)
