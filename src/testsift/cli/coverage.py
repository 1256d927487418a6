"""Coverage status, trend and recommendations."""

import typer
from rich.markup import escape
from rich.table import Table

from ..coverage import CoverageStore, TrendDirection, compute_trend
from ..selection.engine import recommend
from . import app
from ._common import console, print_json, resolve_config

_TREND_STYLES = {
    TrendDirection.IMPROVING: "green",
    TrendDirection.STABLE: "dim",
    TrendDirection.DECLINING: "red",
}


@app.command()
def coverage(
    ctx: typer.Context,
    record: bool = typer.Option(
        False,
        "--record",
        help="Append the current report to coverage-history.json",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show the latest coverage report against configured thresholds.

    Reads coverage-summary.json from the configured coverage directory.

    [bold cyan]Examples:[/bold cyan]

      testsift coverage

      testsift coverage --record --json
    """
    config = resolve_config(ctx)
    store = CoverageStore(config.coverage_dir, history_limit=config.coverage.history_limit)
    snapshot = store.load_report(root=config.root_path)

    if snapshot is None:
        console.print(
            f"[yellow]No coverage data in {escape(str(config.coverage_dir))}.[/yellow] "
            "Run your tests with coverage first."
        )
        raise typer.Exit(1)

    trend = compute_trend(snapshot, store.previous())
    recommendations = recommend(snapshot, config.coverage.thresholds)
    if record:
        store.record_and_persist(snapshot)

    if json_output:
        print_json(
            {
                "coverage": snapshot.to_dict(),
                "trend": trend.to_dict(),
                "recommendations": recommendations,
                "recorded": record,
            }
        )
        return

    thresholds = config.coverage.thresholds
    table = Table(title="Coverage")
    table.add_column("Metric", style="cyan")
    table.add_column("Covered", justify="right")
    table.add_column("Percent", justify="right")
    for name in ("lines", "statements", "functions", "branches"):
        metric = getattr(snapshot, name)
        style = "green" if metric.pct >= thresholds.unit else "yellow"
        table.add_row(
            name, f"{metric.covered}/{metric.total}", f"[{style}]{metric.pct:.1f}%[/{style}]"
        )
    console.print(table)

    style = _TREND_STYLES[trend.direction]
    console.print(f"Trend: [{style}]{trend.direction.value}[/{style}] ({trend.delta:+.1f}%)")

    if recommendations:
        console.print()
        console.print("[bold]Recommendations:[/bold]")
        for line in recommendations:
            console.print(f"  - {escape(line)}")

    if record:
        console.print(f"[dim]Recorded to {escape(str(store.history_file))}[/dim]")
