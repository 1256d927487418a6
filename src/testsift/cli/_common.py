"""Shared CLI helpers."""

import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console

from ..config import SelectorConfig, load_config
from ..exceptions import TestSiftError
from ..logging_config import get_logger

console = Console()

logger = get_logger(__name__)


def resolve_config(ctx: typer.Context, **overrides: Any) -> SelectorConfig:
    """Load configuration using the --config path stored by the main callback."""
    config_file: Optional[Path] = (ctx.obj or {}).get("config")
    try:
        return load_config(config_file=config_file, **overrides)
    except TestSiftError as e:
        fail(e)


def fail(error: Exception) -> NoReturn:
    """Report an error and exit with status 1."""
    logger.error(f"{error.__class__.__name__}: {error}")
    console.print(f"[red]Error:[/red] {error}", markup=True, highlight=False)
    raise typer.Exit(1)


def print_json(data: Any) -> None:
    """Write JSON to stdout without rich markup or wrapping."""
    typer.echo(json.dumps(data, indent=2, default=str))
