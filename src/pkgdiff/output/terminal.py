"""Rich terminal reporter — status-coloured file tree and diff text."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text
from rich.tree import Tree

from pkgdiff.engine.models import DiffNode, DiffStatus, FileDiff
from pkgdiff.session.session import DiffOutcome

_STATUS_STYLE = {
    DiffStatus.ADDED: "green",
    DiffStatus.REMOVED: "red",
    DiffStatus.MODIFIED: "yellow",
    DiffStatus.RENAMED: "cyan",
    DiffStatus.UNCHANGED: "dim",
}

_STATUS_ICON = {
    DiffStatus.ADDED: "A",
    DiffStatus.REMOVED: "D",
    DiffStatus.MODIFIED: "M",
    DiffStatus.RENAMED: "R",
    DiffStatus.UNCHANGED: " ",
}


def _label(node: DiffNode) -> Text:
    style = _STATUS_STYLE[node.status]
    label = Text()
    label.append(f"{_STATUS_ICON[node.status]} ", style=f"bold {style}")
    if node.is_directory:
        label.append(f"{node.name}/", style=f"bold {style}")
    else:
        label.append(node.name, style=style)
    if node.old_path:
        label.append(f" ← {node.old_path}", style="dim")
    if node.added_lines or node.removed_lines:
        label.append("  ")
        label.append(f"+{node.added_lines}", style="green")
        label.append(" ")
        label.append(f"-{node.removed_lines}", style="red")
    return label


def _add_children(branch: Tree, node: DiffNode, show_unchanged: bool) -> None:
    for child in node.children or ():
        if child.status is DiffStatus.UNCHANGED and not show_unchanged:
            continue
        sub = branch.add(_label(child))
        if child.is_directory:
            _add_children(sub, child, show_unchanged)


def build_tree(root: DiffNode, *, title: str = "/", show_unchanged: bool = False) -> Tree:
    """Return a Rich Tree for *root*; unchanged nodes are hidden unless asked for."""
    tree = Tree(Text(title, style="bold"), guide_style="dim")
    _add_children(tree, root, show_unchanged)
    return tree


def render(
    outcome: DiffOutcome,
    *,
    title: str = "/",
    show_unchanged: bool = False,
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print a tree diff to the terminal using Rich."""
    console = console or Console()
    tree = outcome.tree

    if tree.status is DiffStatus.UNCHANGED and not show_unchanged:
        console.print("[bold green]No differences.[/bold green]")
    else:
        console.print(build_tree(tree, title=title, show_unchanged=show_unchanged))

    if show_summary:
        _print_summary(console, outcome)


def _print_summary(console: Console, outcome: DiffOutcome) -> None:
    stats = outcome.tree.stats()
    console.print()
    for status in (DiffStatus.ADDED, DiffStatus.REMOVED, DiffStatus.MODIFIED, DiffStatus.RENAMED):
        console.print(f"[dim]{status.value.capitalize() + ':':<11}[/dim] {stats[status]}")
    console.print(
        f"[dim]Lines:[/dim]      [green]+{outcome.tree.added_lines}[/green] "
        f"[red]-{outcome.tree.removed_lines}[/red]"
    )
    console.print(f"[dim]Duration:[/dim]   {outcome.duration_ms:.0f}ms")


def render_file_diff(diff: FileDiff, *, console: Optional[Console] = None) -> None:
    """Print one file diff with diff syntax highlighting."""
    console = console or Console()
    if not diff.is_textually_different:
        console.print(f"[dim]{diff.path}: no changes[/dim]")
        console.print(Syntax(diff.text, "text", word_wrap=False))
        return
    console.print(Syntax(diff.text, "diff", word_wrap=False))
