"""Tests for the diff tree builder and rename detection."""

from types import MappingProxyType

from pkgdiff.archive.models import ArchiveEntry, EntryKind
from pkgdiff.archive.paths import ensure_directories
from pkgdiff.engine.models import DiffStatus
from pkgdiff.engine import tree as tree_module
from pkgdiff.engine.tree import DiffTreeBuilder, build_diff_tree


def _pkg(files):
    """Build an ExtractedPackage from path -> content (None for a directory)."""
    entries = {
        path: ArchiveEntry(EntryKind.DIRECTORY) if content is None else ArchiveEntry(EntryKind.FILE, content)
        for path, content in files.items()
    }
    return MappingProxyType(ensure_directories(entries))


FOUR_LINES = "alpha\nbeta\ngamma\ndelta\n"


class TestUnchanged:
    def test_identical_packages(self):
        files = _pkg({"a.txt": "a\n", "lib/b.txt": "b\n"})
        root = build_diff_tree(files, files)
        assert root.path == "/"
        assert all(node.status is DiffStatus.UNCHANGED for node in root.walk())
        assert (root.added_lines, root.removed_lines) == (0, 0)

    def test_empty_packages(self):
        root = build_diff_tree(_pkg({}), _pkg({}))
        assert root.status is DiffStatus.UNCHANGED
        assert root.children == []

    def test_build_is_repeatable(self):
        old = _pkg({"a": "1\n", "d/b": "2\n"})
        new = _pkg({"a": "1\n2\n", "d/c": "3\n"})
        assert build_diff_tree(old, new) == build_diff_tree(old, new)


class TestStatuses:
    def test_modified_counts_propagate(self):
        old = _pkg({"lib/a.js": "x\ny\n", "README": "r\n"})
        new = _pkg({"lib/a.js": "x\nz\n", "README": "r\n"})
        root = build_diff_tree(old, new)
        a = root.find("lib/a.js")
        assert a.status is DiffStatus.MODIFIED
        assert (a.added_lines, a.removed_lines) == (1, 1)
        assert root.find("lib").status is DiffStatus.MODIFIED
        assert root.find("README").status is DiffStatus.UNCHANGED
        assert root.status is DiffStatus.MODIFIED
        assert (root.added_lines, root.removed_lines) == (1, 1)

    def test_added_and_removed_directories(self):
        old = _pkg({"old/x.txt": "1\n2\n"})
        new = _pkg({"new/y.txt": "a\nb\nc\n"})
        root = build_diff_tree(old, new)
        assert root.find("old").status is DiffStatus.REMOVED
        assert root.find("old/x.txt").removed_lines == 2
        assert root.find("new").status is DiffStatus.ADDED
        assert root.find("new").added_lines == 3

    def test_empty_directory_added(self):
        root = build_diff_tree(_pkg({"a": "1\n"}), _pkg({"a": "1\n", "empty": None}))
        empty = root.find("empty")
        assert empty.is_directory
        assert empty.status is DiffStatus.ADDED
        assert root.status is DiffStatus.MODIFIED

    def test_children_sorted(self):
        root = build_diff_tree(_pkg({}), _pkg({"b": "", "a": "", "c/d": ""}))
        assert [child.name for child in root.children] == ["a", "b", "c"]

    def test_file_replaced_by_directory(self):
        old = _pkg({"thing": "file\n"})
        new = _pkg({"thing/inner.txt": "dir\n"})
        node = build_diff_tree(old, new).find("thing")
        assert node.is_directory
        assert node.find("thing/inner.txt").status is DiffStatus.ADDED

    def test_stats(self):
        old = _pkg({"a": "1\n", "b": "2\n", "c": "3\n"})
        new = _pkg({"a": "1\n", "b": "changed\n", "d": "4\n"})
        stats = build_diff_tree(old, new).stats()
        assert stats[DiffStatus.UNCHANGED] == 1
        assert stats[DiffStatus.MODIFIED] == 1
        assert stats[DiffStatus.ADDED] == 1
        assert stats[DiffStatus.REMOVED] == 1


class TestRenames:
    def test_exact_rename(self):
        old = _pkg({"lib/a.js": FOUR_LINES})
        new = _pkg({"src/a.js": FOUR_LINES})
        root = build_diff_tree(old, new)
        moved = root.find("src/a.js")
        assert moved.status is DiffStatus.RENAMED
        assert moved.old_path == "lib/a.js"
        assert (moved.added_lines, moved.removed_lines) == (0, 0)
        # the source stays in the tree
        assert root.find("lib/a.js").status is DiffStatus.REMOVED

    def test_similar_rename_counts_against_source(self):
        old = _pkg({"lib/util.js": FOUR_LINES})
        new = _pkg({"src/helpers.js": FOUR_LINES.replace("delta", "epsilon")})
        moved = build_diff_tree(old, new).find("src/helpers.js")
        assert moved.status is DiffStatus.RENAMED
        assert (moved.added_lines, moved.removed_lines) == (1, 1)

    def test_exactly_half_is_not_a_rename(self):
        old = _pkg({"one.txt": "a\nb\n"})
        new = _pkg({"two.txt": "a\nc\n"})
        assert DiffTreeBuilder().detect_renames(old, new) == {}

    def test_basename_boost_tips_the_balance(self):
        old = _pkg({"old/same.txt": "a\nb\n"})
        new = _pkg({"new/same.txt": "a\nc\n"})
        assert DiffTreeBuilder().detect_renames(old, new) == {"new/same.txt": "old/same.txt"}

    def test_length_prefilter(self):
        old = _pkg({"a.txt": "a\nb\nc\n"})
        new = _pkg({"b.txt": "a\nb\nc\nd\ne\nf\ng\n"})
        assert DiffTreeBuilder().detect_renames(old, new) == {}

    def test_source_used_once(self):
        old = _pkg({"orig.txt": FOUR_LINES})
        new = _pkg({"copy1.txt": FOUR_LINES, "copy2.txt": FOUR_LINES})
        renames = DiffTreeBuilder().detect_renames(old, new)
        assert renames == {"copy1.txt": "orig.txt"}

    def test_exact_match_preferred_over_similar(self):
        changed = FOUR_LINES.replace("alpha", "omega")
        old = _pkg({"a/x.txt": changed, "b/y.txt": FOUR_LINES})
        new = _pkg({"c/z.txt": FOUR_LINES})
        assert DiffTreeBuilder().detect_renames(old, new) == {"c/z.txt": "b/y.txt"}

    def test_threshold_configurable(self):
        old = _pkg({"one.txt": FOUR_LINES})
        new = _pkg({"two.txt": FOUR_LINES.replace("delta", "epsilon")})
        assert DiffTreeBuilder(similarity_threshold=0.8).detect_renames(old, new) == {}
        assert DiffTreeBuilder(similarity_threshold=0.7).detect_renames(old, new) == {"two.txt": "one.txt"}

    def test_tie_keeps_first_candidate(self):
        old = _pkg({
            "a/x.txt": FOUR_LINES.replace("alpha", "one"),
            "b/y.txt": FOUR_LINES.replace("alpha", "two"),
        })
        new = _pkg({"c/z.txt": FOUR_LINES.replace("alpha", "three")})
        assert DiffTreeBuilder().detect_renames(old, new) == {"c/z.txt": "a/x.txt"}

    def test_assignment_is_greedy(self):
        # a.txt is visited first and takes p.txt, though b.txt matches it better
        old = _pkg({"p.txt": FOUR_LINES})
        new = _pkg({
            "a.txt": FOUR_LINES.replace("delta", "epsilon"),
            "b.txt": FOUR_LINES + "epsilon\n",
        })
        assert DiffTreeBuilder().detect_renames(old, new) == {"a.txt": "p.txt"}
        root = build_diff_tree(old, new)
        assert root.find("b.txt").status is DiffStatus.ADDED


class TestSimilarityBound:
    def test_disjoint_pairs_skip_line_diff(self, monkeypatch):
        calls = []

        def spy(old, new, counts=None):
            calls.append((old, new))
            return 0.0

        monkeypatch.setattr(tree_module, "similarity", spy)
        block = "".join(f"old {i}\n" for i in range(200))
        other = "".join(f"new {i}\n" for i in range(200))
        old = _pkg({f"old{i}.txt": block.replace("old", f"o{i}") for i in range(4)})
        new = _pkg({f"new{i}.txt": other.replace("new", f"n{i}") for i in range(4)})
        assert DiffTreeBuilder().detect_renames(old, new) == {}
        assert calls == []

    def test_promising_pair_still_scored(self, monkeypatch):
        calls = []
        real = tree_module.similarity

        def spy(old, new, counts=None):
            calls.append((old, new))
            return real(old, new, counts)

        monkeypatch.setattr(tree_module, "similarity", spy)
        old = _pkg({"lib/util.js": FOUR_LINES})
        new = _pkg({"src/helpers.js": FOUR_LINES.replace("delta", "epsilon")})
        assert DiffTreeBuilder().detect_renames(old, new) == {"src/helpers.js": "lib/util.js"}
        assert len(calls) == 1

    def test_bound_applies_basename_boost(self):
        # a plain score of 0.5 needs the boost in the bound as well
        old = _pkg({"old/same.txt": "a\nb\n", "old/other.txt": "a\nb\n\n"})
        new = _pkg({"new/same.txt": "a\nc\n"})
        assert DiffTreeBuilder().detect_renames(old, new) == {"new/same.txt": "old/same.txt"}


class TestDirectoryStatus:
    def test_directory_with_added_child_is_modified(self):
        old = _pkg({"lib/old.js": "x\n"})
        new = _pkg({"lib/old.js": "x\n", "lib/new.js": "y\n"})
        root = build_diff_tree(old, new)
        lib = root.find("lib")
        assert lib.status is DiffStatus.MODIFIED
        assert (lib.added_lines, lib.removed_lines) == (1, 0)
        assert root.find("lib/old.js").status is DiffStatus.UNCHANGED
        assert root.find("lib/new.js").status is DiffStatus.ADDED
