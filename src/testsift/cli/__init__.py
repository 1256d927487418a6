"""CLI entry point: the typer app and its subcommands."""

import typer

from ._common import console

app = typer.Typer(
    name="testsift",
    help="testsift - coverage- and complexity-aware test selection",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .select import select as _select  # noqa: F401, E402
from .complexity import complexity as _complexity  # noqa: F401, E402
from .coverage import coverage as _coverage  # noqa: F401, E402

__all__ = ["app", "console"]
