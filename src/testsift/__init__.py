"""
testsift - coverage- and complexity-aware test selection

Decides which test suites to run for a set of changed files, using glob
watch patterns, critical paths, coverage snapshots and cyclomatic
complexity, and runs multi-step developer workflows around that decision.
"""

__version__ = "0.1.0"

from .config import SelectorConfig, load_config
from .coverage import CoverageSnapshot, CoverageStore, parse_coverage
from .complexity import ComplexityAnalyzer, analyze_source
from .models import ChangeKind, FileChange, TestDecision, TestSuiteDefinition
from .selection import match_suites
from .selection.engine import recommend, select_suites
from .workflow import WorkflowOrchestrator, WorkflowResult

__all__ = [
    "select_suites",  # Main entry point
    "recommend",
    "match_suites",
    "load_config",
    "SelectorConfig",
    "ChangeKind",
    "FileChange",
    "TestDecision",
    "TestSuiteDefinition",
    "CoverageSnapshot",
    "CoverageStore",
    "parse_coverage",
    "ComplexityAnalyzer",
    "analyze_source",
    "WorkflowOrchestrator",
    "WorkflowResult",
]
