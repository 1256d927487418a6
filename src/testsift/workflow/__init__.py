"""Parallel, cached workflows composed from the selection core and collaborators."""

from .cache import TTLCache
from .collaborators import (
    CommitMessageProvider,
    DeploymentProvider,
    DeploymentStatus,
    E2ERunner,
    RepositoryStatusProvider,
    ReviewProvider,
    ReviewStatus,
    SuiteRunner,
    SuiteRunResult,
    TicketProvider,
    TicketStatus,
    WatcherControl,
)
from .orchestrator import WorkflowOrchestrator
from .runner import Step, WorkflowResult, run_steps, validate_steps
from .summary import summarize

__all__ = [
    "TTLCache",
    "WorkflowOrchestrator",
    "Step",
    "WorkflowResult",
    "run_steps",
    "validate_steps",
    "summarize",
    "CommitMessageProvider",
    "DeploymentProvider",
    "DeploymentStatus",
    "E2ERunner",
    "RepositoryStatusProvider",
    "ReviewProvider",
    "ReviewStatus",
    "SuiteRunner",
    "SuiteRunResult",
    "TicketProvider",
    "TicketStatus",
    "WatcherControl",
]
