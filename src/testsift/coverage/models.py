"""Coverage snapshot models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


def require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    """Return ``value`` if it is a mapping, else raise TypeError naming ``what``."""
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class CoverageMetric:
    """One aggregate dimension (lines, statements, ...)."""

    total: int
    covered: int
    pct: float

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "covered": self.covered, "pct": self.pct}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CoverageMetric:
        data = require_mapping(data, "coverage metric")
        return cls(
            total=int(data.get("total", 0)),
            covered=int(data.get("covered", 0)),
            pct=float(data.get("pct", 0.0)),
        )

    @classmethod
    def from_pct(cls, pct: float) -> CoverageMetric:
        """Text reports only carry percentages; scale them onto 100."""
        return cls(total=100, covered=int(round(pct)), pct=pct)


@dataclass(frozen=True)
class FileCoverage:
    path: str
    pct: float
    uncovered_lines: frozenset[int] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "pct": self.pct, "uncovered_lines": sorted(self.uncovered_lines)}


@dataclass(frozen=True)
class CoverageSnapshot:
    """Point-in-time coverage. Immutable once produced."""

    lines: CoverageMetric
    statements: CoverageMetric
    functions: CoverageMetric
    branches: CoverageMetric
    files: Mapping[str, FileCoverage] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    @property
    def line_pct(self) -> float:
        return self.lines.pct

    def file(self, path: str) -> FileCoverage | None:
        return self.files.get(path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": self.lines.to_dict(),
            "statements": self.statements.to_dict(),
            "functions": self.functions.to_dict(),
            "branches": self.branches.to_dict(),
            "files": {path: fc.to_dict() for path, fc in self.files.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CoverageSnapshot:
        """Inverse of to_dict (history file format)."""
        data = require_mapping(data, "coverage snapshot")
        files = {}
        for path, entry in require_mapping(data.get("files", {}), "files").items():
            entry = require_mapping(entry, f"coverage of {path}")
            files[path] = FileCoverage(
                path=path,
                pct=float(entry.get("pct", 0.0)),
                uncovered_lines=frozenset(int(n) for n in entry.get("uncovered_lines", ())),
            )
        return cls(
            lines=CoverageMetric.from_dict(data["lines"]),
            statements=CoverageMetric.from_dict(data["statements"]),
            functions=CoverageMetric.from_dict(data["functions"]),
            branches=CoverageMetric.from_dict(data["branches"]),
            files=files,
        )


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    snapshot: CoverageSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "coverage": self.snapshot.to_dict()}


class TrendDirection(Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class CoverageTrend:
    direction: TrendDirection
    delta: float

    def to_dict(self) -> dict[str, Any]:
        return {"trend": self.direction.value, "delta": self.delta}
