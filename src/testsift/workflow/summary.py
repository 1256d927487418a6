"""One-line, human-readable workflow summaries."""

from __future__ import annotations

from typing import Any, Callable

from ..vcs import RepositoryStatus
from .collaborators import DeploymentStatus, ReviewStatus

Summarizer = Callable[[dict[str, Any], dict[str, str], bool], str]


def _repository_part(status: Any) -> str | None:
    if not isinstance(status, RepositoryStatus):
        return None
    if status.behind:
        return f"git {status.behind} behind {status.upstream or 'upstream'}"
    if status.dirty:
        return f"git {len(status.changed_files)} uncommitted changes"
    return "git clean"


def _deployments_part(status: Any) -> str | None:
    if not isinstance(status, DeploymentStatus):
        return None
    if status.off_default:
        return f"{len(status.off_default)} environments off the default branch"
    return "environments clean"


def _review_part(status: Any) -> str | None:
    if not isinstance(status, ReviewStatus):
        return None
    confidence = round(status.confidence * 100)
    if status.has_unresolved:
        return f"{status.unresolved} review items unresolved ({confidence}% confidence)"
    return f"review comments addressed ({confidence}% confidence)"


def _join(head: str, parts: list[str | None]) -> str:
    return " | ".join([head] + [p for p in parts if p])


def _session_start(results: dict[str, Any], errors: dict[str, str], success: bool) -> str:
    if not success:
        return f"Session start failed ({len(errors)} errors)"
    return _join(
        "Session ready",
        [
            _repository_part(results.get("repository")),
            _deployments_part(results.get("deployments")),
            "ticket checked" if "ticket" in results else None,
            _review_part(results.get("review")),
            "watching files" if "watching" in results else None,
        ],
    )


def _full_test_pass(results: dict[str, Any], errors: dict[str, str], success: bool) -> str:
    if not success:
        return f"Test pass failed ({len(errors)} errors)"
    parts: list[str | None] = []
    tests = results.get("tests")
    if isinstance(tests, dict):
        parts.append(f"{len(tests.get('runs') or [])} suites run")
    coverage = results.get("coverage")
    if isinstance(coverage, dict) and "lines" in coverage:
        parts.append(f"{coverage['lines']:.1f}% line coverage")
    if "complexity" in results:
        parts.append("complexity analyzed")
    if "e2e" in results:
        parts.append("e2e scenarios complete")
    return _join("Test pass complete", parts)


def _pre_commit(results: dict[str, Any], errors: dict[str, str], success: bool) -> str:
    if not success:
        return f"Pre-commit validation failed ({len(errors)} errors)"
    return _join(
        "Pre-commit validation passed",
        [
            _repository_part(results.get("repository")),
            "ticket validated" if "ticket" in results else None,
            _deployments_part(results.get("deployments")),
            _review_part(results.get("review")),
            "commit message ready" if "commit_message" in results else None,
        ],
    )


def _health_check(results: dict[str, Any], errors: dict[str, str], success: bool) -> str:
    total = len(results) + len(errors)
    state = "passed" if success else "completed with issues"
    return f"Health check {state} ({len(results)}/{total} checks successful)"


_SUMMARIZERS: dict[str, Summarizer] = {
    "session_start": _session_start,
    "full_test_pass": _full_test_pass,
    "pre_commit": _pre_commit,
    "health_check": _health_check,
}


def summarize(workflow: str, results: dict[str, Any], errors: dict[str, str], success: bool) -> str:
    """Render one line describing a workflow outcome."""
    summarizer = _SUMMARIZERS.get(workflow)
    if summarizer is None:
        state = "succeeded" if success else "failed"
        return f"{workflow} {state} ({len(results)} ok, {len(errors)} failed)"
    return summarizer(results, errors, success)
