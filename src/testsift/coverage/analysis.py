"""Coverage signals consumed by the decision engine."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..models import FileChange
from ..selection.patterns import matches_any
from .models import CoverageSnapshot, CoverageTrend, TrendDirection

# Line-coverage delta (percentage points) beyond which a trend is reported.
TREND_TOLERANCE = 1.0


def compute_trend(
    current: CoverageSnapshot, previous: Optional[CoverageSnapshot]
) -> CoverageTrend:
    """Compare line coverage against the previous snapshot (stable when there is none)."""
    if previous is None:
        return CoverageTrend(TrendDirection.STABLE, 0.0)

    delta = current.line_pct - previous.line_pct
    if delta > TREND_TOLERANCE:
        return CoverageTrend(TrendDirection.IMPROVING, delta)
    if delta < -TREND_TOLERANCE:
        return CoverageTrend(TrendDirection.DECLINING, delta)
    return CoverageTrend(TrendDirection.STABLE, delta)


def low_coverage_files(
    changes: Iterable[FileChange], snapshot: CoverageSnapshot, unit_threshold: float
) -> list[str]:
    """Changed files never executed or below ``unit_threshold``."""
    flagged = []
    for change in changes:
        file_cov = snapshot.file(change.path)
        if file_cov is None or file_cov.pct < unit_threshold:
            flagged.append(change.path)
    return flagged


def needs_e2e(
    changes: Iterable[FileChange],
    snapshot: CoverageSnapshot,
    critical_patterns: Sequence[str],
    e2e_threshold: float,
) -> bool:
    """True if a critical file changed or overall line coverage is low."""
    if any(matches_any(change.path, critical_patterns) for change in changes):
        return True
    return snapshot.line_pct < e2e_threshold
