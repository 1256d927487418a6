"""Decide which test suites to run for a set of changes.

Selection is an ordered list of guards. Each guard looks at the same
:class:`SelectionContext` and either returns a :class:`TestDecision`
(short-circuiting the rest) or ``None`` to fall through:

    1. critical path changed      -> every enabled suite
    2. no coverage signal          -> matched suites, unfiltered
    3. coverage-guided selection   -> categories driven by coverage gaps,
                                      critical files, trend and overall level

The last guard always decides, so the chain never runs dry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from ..config import CoverageThresholds, SelectorConfig
from ..coverage import (
    CoverageSnapshot,
    TrendDirection,
    compute_trend,
    low_coverage_files,
    needs_e2e,
)
from ..logging_config import get_logger
from ..models import FileChange, SuiteCategory, TestDecision, TestSuiteDefinition
from .matcher import match_suites
from .patterns import matches_any

logger = get_logger(__name__)

# Files below this line coverage are named in recommendations.
CRITICAL_FILE_PCT = 50.0
MAX_NAMED_FILES = 3


@dataclass(frozen=True)
class SelectionContext:
    """Everything a guard may inspect. Built once per selection."""

    changes: tuple[FileChange, ...]
    config: SelectorConfig
    matched: tuple[TestSuiteDefinition, ...]
    snapshot: Optional[CoverageSnapshot]
    previous: Optional[CoverageSnapshot]


Guard = Callable[[SelectionContext], Optional[TestDecision]]


def _critical_path_guard(ctx: SelectionContext) -> Optional[TestDecision]:
    settings = ctx.config.critical_paths
    if not settings.enabled:
        return None
    for change in ctx.changes:
        if any(change.path.startswith(prefix) for prefix in settings.paths) or matches_any(
            change.path, settings.patterns
        ):
            logger.info(f"Critical path changed: {change.path}")
            return TestDecision(
                suites=_finalize(ctx.config.enabled_suites),
                reason="Critical path changed - running all test suites",
            )
    return None


def _no_coverage_guard(ctx: SelectionContext) -> Optional[TestDecision]:
    if not ctx.config.coverage.enabled:
        reason = "Coverage analysis disabled - running matched test suites"
    elif ctx.snapshot is None:
        logger.info("No coverage snapshot available; falling back to matched suites")
        reason = "No coverage data available - running all matched test suites"
    else:
        return None
    return TestDecision(suites=_finalize(ctx.matched), reason=reason)


def _coverage_guard(ctx: SelectionContext) -> Optional[TestDecision]:
    snapshot = ctx.snapshot
    if snapshot is None:
        return None
    settings = ctx.config.coverage
    thresholds = settings.thresholds

    gaps = low_coverage_files(ctx.changes, snapshot, thresholds.unit)
    e2e_needed = needs_e2e(ctx.changes, snapshot, settings.critical_patterns, thresholds.e2e)
    trend = compute_trend(snapshot, ctx.previous)

    by_category = _group_by_category(ctx.matched)
    selected: list[TestSuiteDefinition] = []
    reasons: list[str] = []

    if gaps:
        selected.extend(by_category[SuiteCategory.UNIT])
        reasons.append(f"{len(gaps)} files have low coverage (<{thresholds.unit:g}%)")

    if e2e_needed or trend.direction is TrendDirection.DECLINING:
        selected.extend(by_category[SuiteCategory.E2E])
        if e2e_needed:
            reasons.append("Critical paths affected")
        else:
            reasons.append(f"Coverage declining by {abs(trend.delta):.1f}%")

    if by_category[SuiteCategory.UI]:
        selected.extend(by_category[SuiteCategory.UI])
        reasons.append("UI components changed")

    # The e2e threshold doubles as the "run everything matched" trigger.
    if snapshot.line_pct < thresholds.e2e:
        selected.extend(ctx.matched)
        reasons.append(
            f"Overall coverage low ({snapshot.line_pct:.1f}%) - running comprehensive tests"
        )

    if not selected and ctx.matched:
        default = min(ctx.matched, key=lambda s: s.priority)
        selected.append(default)
        reasons.append(f"Running {default.name} tests for changed files")

    return TestDecision(suites=_finalize(selected), reason="; ".join(reasons), coverage_gaps=gaps)


GUARDS: tuple[Guard, ...] = (
    _critical_path_guard,
    _no_coverage_guard,
    _coverage_guard,
)


def select_suites(
    changes: Iterable[FileChange],
    config: SelectorConfig,
    snapshot: Optional[CoverageSnapshot] = None,
    previous: Optional[CoverageSnapshot] = None,
) -> TestDecision:
    """Select the test suites to run for ``changes``.

    Args:
        changes: Changed files
        config: Selector configuration (suites, thresholds, critical paths)
        snapshot: Latest coverage snapshot, if any
        previous: Prior snapshot used for the coverage trend

    Returns:
        TestDecision with deduplicated suites sorted by descending priority
    """
    changes = tuple(changes)
    ctx = SelectionContext(
        changes=changes,
        config=config,
        matched=tuple(match_suites(changes, config.enabled_suites)),
        snapshot=snapshot,
        previous=previous,
    )
    for guard in GUARDS:
        decision = guard(ctx)
        if decision is not None:
            logger.debug(f"{guard.__name__} selected {decision.suite_names}: {decision.reason}")
            return decision
    # _coverage_guard only declines when there is no snapshot, which
    # _no_coverage_guard already handles.
    raise AssertionError("selection guards fell through")


def recommend(snapshot: CoverageSnapshot, thresholds: CoverageThresholds) -> list[str]:
    """Human-readable suggestions for improving coverage, most important first."""
    recommendations = []

    if snapshot.lines.pct < thresholds.unit:
        recommendations.append(
            f"Increase unit test coverage to {thresholds.unit:g}% "
            f"(current: {snapshot.lines.pct:.1f}%)"
        )

    if snapshot.branches.pct < thresholds.integration:
        recommendations.append(
            f"Add integration tests for untested branches ({snapshot.branches.pct:.1f}% covered)"
        )

    weak = sorted(
        (fc for fc in snapshot.files.values() if fc.pct < CRITICAL_FILE_PCT),
        key=lambda fc: (fc.pct, fc.path),
    )
    if weak:
        named = ", ".join(fc.path for fc in weak[:MAX_NAMED_FILES])
        remainder = len(weak) - MAX_NAMED_FILES
        suffix = f" and {remainder} more" if remainder > 0 else ""
        recommendations.append(f"Critical files need tests: {named}{suffix}")

    return recommendations


def _group_by_category(
    suites: Sequence[TestSuiteDefinition],
) -> dict[SuiteCategory, list[TestSuiteDefinition]]:
    grouped: dict[SuiteCategory, list[TestSuiteDefinition]] = {c: [] for c in SuiteCategory}
    for suite in suites:
        grouped[suite.category].append(suite)
    return grouped


def _finalize(suites: Iterable[TestSuiteDefinition]) -> list[TestSuiteDefinition]:
    """Drop repeated suite names and order by descending priority."""
    seen: set[str] = set()
    unique = []
    for suite in suites:
        if suite.name not in seen:
            seen.add(suite.name)
            unique.append(suite)
    # sorted() is stable, so equal priorities keep configuration order
    return sorted(unique, key=lambda s: -s.priority)
