"""Coverage snapshots, history and the signals derived from them."""

from .analysis import TREND_TOLERANCE, compute_trend, low_coverage_files, needs_e2e
from .models import (
    CoverageMetric,
    CoverageSnapshot,
    CoverageTrend,
    FileCoverage,
    HistoryEntry,
    TrendDirection,
)
from .parser import parse_coverage
from .store import HISTORY_FILENAME, SUMMARY_FILENAME, CoverageHistory, CoverageStore

__all__ = [
    "CoverageMetric",
    "CoverageSnapshot",
    "CoverageTrend",
    "FileCoverage",
    "HistoryEntry",
    "TrendDirection",
    "CoverageHistory",
    "CoverageStore",
    "HISTORY_FILENAME",
    "SUMMARY_FILENAME",
    "parse_coverage",
    "compute_trend",
    "low_coverage_files",
    "needs_e2e",
    "TREND_TOLERANCE",
]
