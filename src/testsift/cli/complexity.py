"""Cyclomatic complexity report for source files."""

from typing import List

import typer
from rich.markup import escape

from ..complexity import ComplexityAnalyzer, ComplexityCache, ComplexityLevel
from ..exceptions import TestSiftError
from ..vcs import GitRevisionReader
from . import app
from ._common import console, fail, print_json, resolve_config

_LEVEL_STYLES = {
    ComplexityLevel.NORMAL: "green",
    ComplexityLevel.WARNING: "yellow",
    ComplexityLevel.VIOLATION: "red",
}


@app.command()
def complexity(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Files to analyze"),
    compare: bool = typer.Option(
        False,
        "--compare",
        help="Compare against the last committed revision (HEAD)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Score functions, methods and classes in JavaScript/TypeScript files.

    [bold cyan]Examples:[/bold cyan]

      testsift complexity src/utils/calc.ts

      testsift complexity src/**/*.ts --compare --json
    """
    config = resolve_config(ctx)
    settings = config.complexity
    cache = ComplexityCache(
        cache_dir=str(config.root_path / settings.cache_dir),
        ttl_hours=settings.cache_ttl_hours,
        enabled=settings.cache_enabled,
    )
    analyzer = ComplexityAnalyzer(
        settings,
        revision_reader=GitRevisionReader(config.root_path) if compare else None,
        cache=cache,
    )

    output = []
    try:
        for path in files:
            if not analyzer.should_analyze(path):
                console.print(f"[dim]Skipping {escape(path)}[/dim]")
                continue
            report = analyzer.analyze_file(path)
            comparison = analyzer.compare(path) if compare else None
            output.append((report, comparison))
    except TestSiftError as e:
        fail(e)
    finally:
        cache.close()

    if json_output:
        print_json(
            [
                {
                    "report": report.to_dict(),
                    "comparison": comparison.to_dict() if comparison else None,
                }
                for report, comparison in output
            ]
        )
        return

    for report, comparison in output:
        style = _LEVEL_STYLES[analyzer.classify(report.total)]
        console.print()
        console.print(f"[bold]{escape(report.path)}[/bold]")
        console.print(f"Total complexity: [{style}]{report.total}[/{style}]")

        if comparison is not None:
            sign = "+" if comparison.delta > 0 else ""
            color = "red" if comparison.increased else "green"
            console.print(
                f"Since HEAD: {comparison.previous} -> {comparison.current} "
                f"([{color}]{sign}{comparison.delta}, {comparison.percentage_delta:+.1f}%[/{color}])"
            )
        elif compare:
            console.print("[dim]No committed revision to compare with[/dim]")

        if report.high_complexity:
            console.print("[yellow]High complexity:[/yellow]")
            for record in report.high_complexity:
                rstyle = _LEVEL_STYLES[analyzer.classify(record.score)]
                console.print(
                    f"  {escape(record.name)} ({record.kind.value}) - "
                    f"[{rstyle}]{record.score}[/{rstyle}] at line {record.line}"
                )
