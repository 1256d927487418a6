"""Select test suites for a set of changed files."""

from typing import List

import typer
from rich.markup import escape
from rich.table import Table

from ..coverage import CoverageStore
from ..models import FileChange
from ..selection.engine import select_suites
from . import app
from ._common import console, print_json, resolve_config


@app.command()
def select(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Changed files, relative to the project root"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Print which suites would run for the given changes, and why.

    [bold cyan]Examples:[/bold cyan]

      testsift select src/api/user.ts

      testsift --config testsift.toml select src/a.ts src/b.ts --json
    """
    config = resolve_config(ctx)
    changes = FileChange.modified(files)

    snapshot = previous = None
    if config.coverage.enabled:
        store = CoverageStore(config.coverage_dir, history_limit=config.coverage.history_limit)
        snapshot = store.load_report(root=config.root_path)
        previous = store.previous()

    decision = select_suites(changes, config, snapshot, previous)

    if json_output:
        print_json(decision.to_dict())
        return

    if not decision.suites:
        console.print("[yellow]No test suites selected.[/yellow]")
    else:
        table = Table(title="Selected test suites")
        table.add_column("Suite", style="cyan")
        table.add_column("Category")
        table.add_column("Priority", justify="right")
        table.add_column("Command", style="dim")
        for suite in decision.suites:
            table.add_row(
                escape(suite.name),
                suite.category.value,
                str(suite.priority),
                escape(suite.command),
            )
        console.print(table)

    console.print(f"[bold]Reason:[/bold] {escape(decision.reason)}")
    if decision.coverage_gaps:
        console.print("[bold yellow]Coverage gaps:[/bold yellow]")
        for path in decision.coverage_gaps:
            console.print(f"  {escape(path)}")
