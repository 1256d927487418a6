"""
Logging configuration for testsift.

Routes library logs through a rich handler on stderr so decision rationale
and workflow step failures stay readable next to test-runner output.
Verbosity applies to the ``testsift`` namespace only; third-party loggers
(tree-sitter, diskcache) stay at WARNING.
"""

import logging
from typing import Any, MutableMapping, Optional

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "testsift"

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure rich console logging, plus an optional log file.

    Args:
        verbose: DEBUG for testsift loggers (guard decisions, step outcomes)
        quiet: Only ERROR from testsift loggers; wins over ``verbose``
        log_file: Append plain-text records to this file as well

    Returns:
        The ``testsift`` logger
    """
    level = _level_for(verbose, quiet)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=max(level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the testsift namespace.

    Args:
        name: Module name (e.g., 'testsift.coverage.store')
              If None, returns the root testsift logger
    """
    if name is None:
        return logging.getLogger(_ROOT_LOGGER)

    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"

    return logging.getLogger(name)


class WorkflowLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with ``[workflow]`` and tags records with it.

    The workflow name is available to handlers and filters as
    ``record.workflow``; ``step=`` passed to a logging call is prefixed
    too and lands on ``record.step``.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        step = kwargs.pop("step", None)
        extra = dict(self.extra)
        extra["step"] = step
        kwargs["extra"] = extra
        prefix = f"[{extra['workflow']}]" if step is None else f"[{extra['workflow']}] {step}"
        return f"{prefix} {msg}", kwargs


def workflow_logger(workflow: str, name: Optional[str] = None) -> WorkflowLogAdapter:
    """Logger for one workflow run; see :class:`WorkflowLogAdapter`."""
    return WorkflowLogAdapter(get_logger(name or "testsift.workflow"), {"workflow": workflow})
