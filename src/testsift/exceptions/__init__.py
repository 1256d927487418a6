"""Exception hierarchy for testsift."""

from .analysis import (
    AnalysisError,
    FileAccessError,
    UnsupportedLanguageError,
)
from .base import TestSiftError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
)
from .workflow import (
    CollaboratorUnavailableError,
    CoverageUnavailableError,
    GitCommandError,
    WorkflowDefinitionError,
    WorkflowError,
)

__all__ = [
    "TestSiftError",
    "AnalysisError",
    "FileAccessError",
    "UnsupportedLanguageError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "WorkflowError",
    "CollaboratorUnavailableError",
    "CoverageUnavailableError",
    "GitCommandError",
    "WorkflowDefinitionError",
]
