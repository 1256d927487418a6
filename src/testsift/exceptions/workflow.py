"""Workflow exceptions: collaborator availability, step graph definition."""

from typing import Optional

from .base import TestSiftError


class WorkflowError(TestSiftError):
    """Base class for workflow-related errors."""

    pass


class CollaboratorUnavailableError(WorkflowError):
    """Raised by a step whose external collaborator is not configured."""

    def __init__(self, name: str):
        super().__init__(f"{name} integration not enabled", details={"collaborator": name})
        self.name = name

    def __str__(self) -> str:
        return self.message


class CoverageUnavailableError(WorkflowError):
    """Raised by the coverage step when no coverage report can be loaded."""

    def __init__(self, location: Optional[str] = None):
        super().__init__("No coverage data available")
        self.location = location


class WorkflowDefinitionError(WorkflowError):
    """Raised when a step graph references unknown steps or contains a cycle."""

    def __init__(self, workflow: str, reason: str):
        super().__init__(
            f"Invalid workflow definition: {workflow}",
            details={"workflow": workflow, "reason": reason},
        )
        self.workflow = workflow
        self.reason = reason


class GitCommandError(WorkflowError):
    """Raised when a git subprocess fails or cannot be started."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"git {command} failed", details={"reason": reason})
        self.command = command
        self.reason = reason
