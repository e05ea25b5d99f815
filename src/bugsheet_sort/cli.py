"""CLI entry point for bugsheet-sort."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from bugsheet_sort import __version__
from bugsheet_sort.errors import MissingColumns
from bugsheet_sort.io import write_bytes, write_json
from bugsheet_sort.resolver import describe_columns
from bugsheet_sort.session import SessionState, SortSession

app = typer.Typer(
    name="bugsort",
    help="bugsheet-sort — Reorder a Bugs Reported sheet by triage priority.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"bugsheet-sort v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_missing_columns(exc: MissingColumns) -> None:
    tbl = RichTable(title="Discovered columns", show_lines=False)
    tbl.add_column("#", justify="right")
    tbl.add_column("Column", style="bold")
    tbl.add_column("Sample")
    for pos, name, sample in exc.discovered:
        tbl.add_row(str(pos), name, sample)
    console.print(tbl)


def _fail_exit(session: SortSession) -> NoReturn:
    if session.banner is not None:
        _err(session.banner.text)
    if isinstance(session.last_error, MissingColumns):
        _print_missing_columns(session.last_error)
    raise typer.Exit(code=2)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """bugsheet-sort CLI."""


# ── sort command ─────────────────────────────────────────────────


@app.command()
def sort(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xlsx or .xls workbook.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Directory for the sorted workbook.",
    ),
    summary_path: Path | None = typer.Option(
        None, "--summary",
        help="Also write the sort summary as JSON to this path.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes the sorted workbook.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log sheet, column and sort details.",
    ),
) -> None:
    """Sort the Bugs Reported sheet and write <name>_sorted.xlsx."""
    _configure_logging(verbose)
    echo = _printer(quiet)

    if not quiet:
        console.print(Panel(
            f"[bold]bugsheet-sort[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Sort Start", border_style="blue",
        ))

    session = SortSession()
    try:
        echo("[blue]>[/blue] Loading workbook …")
        session.load_path(input_file)
        if session.state is not SessionState.SORTED:
            _fail_exit(session)

        echo(f"  {session.row_count} rows in sheet {session.sheet_name!r}")
        echo(f"  Status: {session.status_label}")
        if session.summary is not None and not quiet:
            for w in session.summary.warnings:
                console.print(f"  [yellow]![/yellow] {w}")

        echo("[blue]>[/blue] Writing sorted workbook …")
        artifact = session.download()
        if artifact is None:
            _fail_exit(session)
        output_path = write_bytes(out_dir / artifact.file_name, artifact.payload)
        echo(f"  Sorted -> {output_path}")

        if summary_path is not None and session.summary is not None:
            write_json(summary_path, session.summary.to_dict())
            echo(f"  Summary -> {summary_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {session.row_count} rows -> {output_path}",
                title="Sort Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xlsx or .xls workbook.",
        exists=True, readable=True, dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log sheet and column details.",
    ),
) -> None:
    """Show how the sheet and columns resolve, without writing anything.

    Exit 0 = sortable, exit 2 = sheet or columns missing.
    """
    _configure_logging(verbose)
    session = SortSession()
    session.load_path(input_file)
    document, sheet_name, binding = session.document, session.sheet_name, session.binding
    if session.state is not SessionState.SORTED or document is None:
        _fail_exit(session)
    if sheet_name is None or binding is None:
        _fail_exit(session)

    tbl = RichTable(title="Resolution Summary", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")
    tbl.add_row("Sheet", sheet_name)
    tbl.add_row("Rows", str(session.row_count))
    tbl.add_row("New/Existing", binding.new_existing or "[dim]n/a[/dim]")
    tbl.add_row("Priority", binding.priority or "[dim]n/a[/dim]")
    tbl.add_row("Bugs", binding.bugs_text or "[yellow]not found[/yellow]")
    if session.summary is not None:
        tbl.add_row("Rows with date", str(session.summary.dated_rows))
        for w in session.summary.warnings:
            tbl.add_row("Warning", f"[yellow]{w}[/yellow]")
    tbl.add_row("Status", "[green]PASS[/green]")
    console.print(tbl)

    records = document.sheet(sheet_name).records
    if records:
        cols = RichTable(title="Discovered columns")
        cols.add_column("#", justify="right")
        cols.add_column("Column", style="bold")
        cols.add_column("Sample")
        for pos, name, sample in describe_columns(records[0]):
            cols.add_row(str(pos), name, sample)
        console.print(cols)
