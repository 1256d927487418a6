"""Complexity records, reports and classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator


class ComplexityKind(Enum):
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    MODULE = "module"


class ComplexityLevel(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    VIOLATION = "violation"


def classify(score: int, warn: int = 10, error: int = 20) -> ComplexityLevel:
    """Bucket a score: ``< warn`` normal, ``[warn, error)`` warning, else violation."""
    if score >= error:
        return ComplexityLevel.VIOLATION
    if score >= warn:
        return ComplexityLevel.WARNING
    return ComplexityLevel.NORMAL


@dataclass(frozen=True)
class ComplexityRecord:
    """Score for one function, method, class or module-level block.

    Attributes:
        name: Declared name, or "anonymous"
        kind: Unit kind
        score: Cyclomatic complexity (classes: max of direct methods)
        line: 1-based start line
        column: 1-based start column
        children: Nested units in source order
    """

    name: str
    kind: ComplexityKind
    score: int
    line: int
    column: int
    children: tuple[ComplexityRecord, ...] = ()

    def walk(self) -> Iterator[ComplexityRecord]:
        """This record and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "score": self.score,
            "line": self.line,
            "column": self.column,
            "children": [child.to_dict() for child in self.children],
        }


def total_complexity(records: Iterable[ComplexityRecord]) -> int:
    """Sum of top-level unit scores; a class contributes its max, not its methods."""
    return sum(record.score for record in records)


@dataclass(frozen=True)
class ComplexityComparison:
    file_path: str
    previous: int
    current: int
    delta: int
    percentage_delta: float
    increased: bool

    @classmethod
    def between(cls, file_path: str, previous: int, current: int) -> ComplexityComparison:
        delta = current - previous
        pct = (delta / previous * 100.0) if previous > 0 else 0.0
        return cls(
            file_path=file_path,
            previous=previous,
            current=current,
            delta=delta,
            percentage_delta=pct,
            increased=delta > 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "previous": self.previous,
            "current": self.current,
            "delta": self.delta,
            "percentage_delta": round(self.percentage_delta, 2),
            "increased": self.increased,
        }


@dataclass(frozen=True)
class FileComplexityReport:
    """Per-file analysis result."""

    path: str
    language: str
    total: int
    records: tuple[ComplexityRecord, ...] = ()
    high_complexity: tuple[ComplexityRecord, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "total": self.total,
            "records": [r.to_dict() for r in self.records],
            "high_complexity": [
                {"name": r.name, "kind": r.kind.value, "score": r.score, "line": r.line}
                for r in self.high_complexity
            ],
        }
