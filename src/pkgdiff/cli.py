"""pkgdiff CLI — Typer application with diff, show, and init commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from pkgdiff import __version__
from pkgdiff.sources import registry as source_registry

app = typer.Typer(
    name="pkgdiff",
    help="Compare two published versions of a package.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)
out = Console()


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def _load(config: Optional[str]):
    from pkgdiff.config.loader import ConfigError, load_config

    try:
        return load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


async def _run_diff(
    cfg, source: str, package: str, from_version: str, to_version: str, path: Optional[str] = None
):
    from pkgdiff.session.session import DiffSession

    async with DiffSession(source_registry.build_source_registry(cfg), cfg) as session:
        outcome = await session.start_diff(source, package, from_version, to_version)
        node = outcome.tree.find(path) if path else None
        if node is None or node.is_directory:
            return outcome, None
        return outcome, session.get_file_diff(path)


def _diff_or_exit(
    cfg, source: str, package: str, from_version: str, to_version: str, path: Optional[str] = None
):
    from pkgdiff.archive.gzip import DecompressionError
    from pkgdiff.archive.tar import MalformedArchiveError
    from pkgdiff.session.session import SessionError
    from pkgdiff.sources.base import SourceError

    try:
        return asyncio.run(_run_diff(cfg, source, package, from_version, to_version, path))
    except (SourceError, DecompressionError, MalformedArchiveError, SessionError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


# ── diff ──────────────────────────────────────────────────────────────────────


@app.command()
def diff(
    source: str = typer.Argument(..., help="Registry: npm | crates | pypi | rubygems"),
    package: str = typer.Argument(..., help="Package name"),
    from_version: str = typer.Argument(..., metavar="FROM", help="Old version"),
    to_version: str = typer.Argument(..., metavar="TO", help="New version"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .pkgdiff.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include unchanged files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Show the file tree diff between two versions of a package."""
    from pkgdiff.config.schema import OUTPUT_FORMATS
    from pkgdiff.output import json_report, terminal

    _setup_logging(verbose, debug)
    cfg = _load(config)

    # --- CLI overrides ---
    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if show_all:
        cfg.output.show_unchanged = True

    outcome, _ = _diff_or_exit(cfg, source, package, from_version, to_version)

    if debug:
        console.print(f"[dim]Diff duration: {outcome.duration_ms:.0f}ms[/dim]")

    report_text: Optional[str] = None
    if cfg.output.format == "json":
        report_text = json_report.render(outcome)
        print(report_text)
    else:
        terminal.render(
            outcome,
            title=f"{package} {from_version} → {to_version}",
            show_unchanged=cfg.output.show_unchanged,
            console=out,
        )

    if output:
        Path(output).write_text(report_text or json_report.render(outcome), encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")


# ── show ──────────────────────────────────────────────────────────────────────


@app.command()
def show(
    source: str = typer.Argument(..., help="Registry: npm | crates | pypi | rubygems"),
    package: str = typer.Argument(..., help="Package name"),
    from_version: str = typer.Argument(..., metavar="FROM", help="Old version"),
    to_version: str = typer.Argument(..., metavar="TO", help="New version"),
    path: str = typer.Argument(..., help="File path inside the package"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .pkgdiff.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Show the line diff of one file between two versions."""
    from pkgdiff.config.schema import OUTPUT_FORMATS
    from pkgdiff.output import json_report, terminal

    _setup_logging(verbose, debug)
    cfg = _load(config)
    if format and format not in OUTPUT_FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {format}")
        raise typer.Exit(code=2)
    _, result = _diff_or_exit(cfg, source, package, from_version, to_version, path)

    if result is None:
        console.print(f"[yellow]⚠[/yellow]  {path} is not a file in either version")
        raise typer.Exit(code=1)

    if (format or cfg.output.format) == "json":
        print(json_report.render_file_diff(result))
    else:
        terminal.render_file_diff(result, console=out)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .pkgdiff.toml in the current directory."""
    from pkgdiff.config.defaults import DEFAULT_TOML
    from pkgdiff.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"pkgdiff {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """pkgdiff — Compare two published versions of a package."""
