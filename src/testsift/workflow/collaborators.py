"""Interfaces of the external systems a workflow talks to.

Each collaborator exposes a single call and either returns a small result
or raises on failure (transport errors, timeouts). Timeouts are enforced
by the collaborator, not by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..models import FileChange, TestSuiteDefinition
from ..vcs import RepositoryStatus


@dataclass(frozen=True)
class TicketStatus:
    """Completeness of the ticket behind the current branch."""

    key: str
    complete: bool
    summary: str = ""
    missing: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "complete": self.complete,
            "summary": self.summary,
            "missing": list(self.missing),
        }


@dataclass(frozen=True)
class DeploymentStatus:
    """Branch deployed per environment."""

    environments: Mapping[str, str] = field(default_factory=dict)
    default_branches: tuple[str, ...] = ("main", "master")

    @property
    def off_default(self) -> list[str]:
        """Environments running something other than a default branch."""
        return sorted(
            env for env, branch in self.environments.items() if branch not in self.default_branches
        )

    def to_dict(self) -> dict[str, Any]:
        return {"environments": dict(self.environments), "off_default": self.off_default}


@dataclass(frozen=True)
class ReviewStatus:
    """Resolution of code-review comments on the open pull request."""

    resolved: int = 0
    partially_resolved: int = 0
    unresolved: int = 0
    confidence: float = 0.0

    @property
    def has_unresolved(self) -> bool:
        return self.unresolved > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolved": self.resolved,
            "partially_resolved": self.partially_resolved,
            "unresolved": self.unresolved,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class SuiteRunResult:
    suite: str
    success: bool
    duration: float = 0.0
    output: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite": self.suite,
            "success": self.success,
            "duration": self.duration,
            "output": self.output,
        }


class RepositoryStatusProvider(Protocol):
    def repository_status(self) -> RepositoryStatus:
        ...


class TicketProvider(Protocol):
    def ticket_status(self) -> TicketStatus:
        ...


class DeploymentProvider(Protocol):
    def deployment_status(self) -> DeploymentStatus:
        ...


class ReviewProvider(Protocol):
    def review_status(self) -> ReviewStatus:
        ...


class WatcherControl(Protocol):
    def start(self, project_root: Optional[str] = None) -> None:
        ...

    def stop(self) -> None:
        ...

    def is_running(self) -> bool:
        ...


class SuiteRunner(Protocol):
    def run_suites(
        self, suites: Sequence[TestSuiteDefinition], changes: Sequence[FileChange]
    ) -> list[SuiteRunResult]:
        ...


class E2ERunner(Protocol):
    def run_scenarios(self) -> list[Any]:
        ...


class CommitMessageProvider(Protocol):
    def commit_message(self, ticket: TicketStatus, repository: RepositoryStatus) -> str:
        ...
