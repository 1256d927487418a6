"""Map changed files to the test suites that watch them."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from ..models import FileChange, TestSuiteDefinition, normalize_path
from .patterns import matches_any

TEST_FILE_PATTERNS = (
    "**/*.test.{js,jsx,ts,tsx}",
    "**/*.spec.{js,jsx,ts,tsx}",
    "**/__tests__/**/*.{js,jsx,ts,tsx}",
    "**/test/**/*.{js,jsx,ts,tsx}",
    "**/*.cy.{js,jsx,ts,tsx}",
    "**/*.stories.{js,jsx,ts,tsx}",
)

_SOURCE_EXT = re.compile(r"\.(ts|tsx|js|jsx)$")


def match_suites(
    changes: Iterable[FileChange], suites: Sequence[TestSuiteDefinition]
) -> list[TestSuiteDefinition]:
    """Suites whose watch patterns match at least one changed path.

    Order follows ``suites``; each suite appears at most once.
    """
    paths = [c.path for c in changes]
    if not paths:
        return []
    return [
        suite
        for suite in suites
        if any(matches_any(path, suite.effective_watch_patterns) for path in paths)
    ]


def detect_suites_for_test_files(
    changes: Iterable[FileChange], suites: Sequence[TestSuiteDefinition]
) -> list[TestSuiteDefinition]:
    """Suites owning a changed test file, matched on their test-file patterns."""
    paths = [c.path for c in changes]
    return [
        suite
        for suite in suites
        if suite.patterns and any(matches_any(path, suite.patterns) for path in paths)
    ]


def is_test_file(path: str) -> bool:
    return matches_any(normalize_path(path), TEST_FILE_PATTERNS)


def related_test_files(source_path: str) -> list[str]:
    """Conventional locations of tests for a source file."""
    source_path = normalize_path(source_path)
    return [
        _SOURCE_EXT.sub(r".test.\1", source_path),
        _SOURCE_EXT.sub(r".spec.\1", source_path),
        _SOURCE_EXT.sub(r".test.\1", source_path.replace("src/", "test/", 1)),
        _SOURCE_EXT.sub(r".test.\1", source_path.replace("src/", "__tests__/", 1)),
    ]
