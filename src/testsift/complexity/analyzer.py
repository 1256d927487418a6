"""Cyclomatic complexity of JavaScript and TypeScript sources.

One depth-first pass over the tree-sitter syntax tree. Every function,
method or class opens a unit in a flat arena; each node is visited with
the arena index of its innermost enclosing unit, and decision points add
1 to that unit:

    if / ternary                       if_statement, ternary_expression
    loops                              for, for-in/for-of, while, do-while
    switch clauses                     each case and default
    exception handlers                 each catch
    short-circuit operators            &&, ||, ??

Functions and methods start at 1. A class scores the maximum of its
direct methods. Decision points outside any unit are collected into a
single module-level record.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import ComplexitySettings
from ..exceptions import FileAccessError
from ..logging_config import get_logger
from ..vcs import RevisionReader
from .cache import ComplexityCache
from .models import (
    ComplexityComparison,
    ComplexityKind,
    ComplexityLevel,
    ComplexityRecord,
    FileComplexityReport,
    classify,
    total_complexity,
)
from .parser import SourceParser, detect_language, get_supported_extensions

logger = get_logger(__name__)

_FUNCTION_NODES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
    }
)
_METHOD_NODES = frozenset({"method_definition"})
_CLASS_NODES = frozenset({"class_declaration", "class", "abstract_class_declaration"})

_DECISION_NODES = frozenset(
    {
        "if_statement",
        "ternary_expression",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "switch_case",
        "switch_default",
        "catch_clause",
    }
)
_LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

# Where an anonymous function's name comes from, by parent node type.
_NAME_FIELDS = {
    "variable_declarator": "name",
    "pair": "key",
    "assignment_expression": "left",
    "public_field_definition": "name",
    "field_definition": "property",
}

MODULE_NAME = "<module>"


@dataclass
class _Unit:
    """Arena slot. ``parent`` is for navigation only; ``children`` are indices."""

    name: str
    kind: ComplexityKind
    line: int
    column: int
    parent: Optional[int]
    score: int
    children: list[int] = field(default_factory=list)


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


def _unit_name(node: Any) -> str:
    name = node.child_by_field_name("name")
    if name is not None:
        return _text(name)
    parent = node.parent
    if parent is not None and parent.type in _NAME_FIELDS:
        named = parent.child_by_field_name(_NAME_FIELDS[parent.type])
        if named is not None:
            return _text(named)
    return "anonymous"


def _unit_kind(node_type: str) -> Optional[ComplexityKind]:
    if node_type in _FUNCTION_NODES:
        return ComplexityKind.FUNCTION
    if node_type in _METHOD_NODES:
        return ComplexityKind.METHOD
    if node_type in _CLASS_NODES:
        return ComplexityKind.CLASS
    return None


def _is_decision(node: Any) -> bool:
    if node.type in _DECISION_NODES:
        return True
    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        return operator is not None and operator.type in _LOGICAL_OPERATORS
    return False


class _Visitor:
    """Builds the unit arena for one syntax tree."""

    def __init__(self) -> None:
        self.units: list[_Unit] = []
        self.roots: list[int] = []
        self.module_decisions = 0

    def _open(self, node: Any, kind: ComplexityKind, owner: Optional[int]) -> int:
        row, col = node.start_point
        index = len(self.units)
        base = 0 if kind is ComplexityKind.CLASS else 1
        self.units.append(_Unit(_unit_name(node), kind, row + 1, col + 1, owner, base))
        if owner is None:
            self.roots.append(index)
        else:
            self.units[owner].children.append(index)
        return index

    def visit(self, root: Any) -> None:
        # Explicit stack: deeply nested sources would overflow recursion.
        stack: list[tuple[Any, Optional[int]]] = [(root, None)]
        while stack:
            node, owner = stack.pop()
            # keywords such as "function" and "class" are unnamed tokens
            kind = _unit_kind(node.type) if node.is_named else None
            if kind is not None:
                owner = self._open(node, kind, owner)
            elif _is_decision(node):
                if owner is None:
                    self.module_decisions += 1
                elif self.units[owner].kind is not ComplexityKind.CLASS:
                    self.units[owner].score += 1
            stack.extend((child, owner) for child in reversed(node.children))

    def _record(self, index: int) -> ComplexityRecord:
        unit = self.units[index]
        children = tuple(self._record(i) for i in unit.children)
        score = unit.score
        if unit.kind is ComplexityKind.CLASS:
            scored = [
                c.score
                for c in children
                if c.kind in (ComplexityKind.METHOD, ComplexityKind.FUNCTION)
            ]
            score = max(scored, default=0)
        return ComplexityRecord(unit.name, unit.kind, score, unit.line, unit.column, children)

    def records(self) -> list[ComplexityRecord]:
        records = [self._record(i) for i in self.roots]
        if self.module_decisions:
            records.append(
                ComplexityRecord(MODULE_NAME, ComplexityKind.MODULE, 1 + self.module_decisions, 1, 1)
            )
        return records


_thread_parsers = threading.local()


def _parser() -> SourceParser:
    parser = getattr(_thread_parsers, "parser", None)
    if parser is None:
        parser = _thread_parsers.parser = SourceParser()
    return parser


def analyze_source(source: str, language: str = "typescript") -> list[ComplexityRecord]:
    """Score every unit in ``source``.

    Args:
        source: Source text
        language: "typescript", "tsx" or "javascript"

    Returns:
        Top-level records in source order; methods nest under their class

    Raises:
        UnsupportedLanguageError: If ``language`` has no grammar
    """
    tree = _parser().parse(source.encode("utf-8"), language)
    visitor = _Visitor()
    visitor.visit(tree.root_node)
    return visitor.records()


class ComplexityAnalyzer:
    """File-level complexity analysis with optional disk caching and history diffing."""

    def __init__(
        self,
        settings: Optional[ComplexitySettings] = None,
        revision_reader: Optional[RevisionReader] = None,
        cache: Optional[ComplexityCache] = None,
    ):
        self.settings = settings or ComplexitySettings()
        self.revision_reader = revision_reader
        self.cache = cache or ComplexityCache(enabled=False)

    def classify(self, score: int) -> ComplexityLevel:
        return classify(score, self.settings.warning_threshold, self.settings.error_threshold)

    def should_analyze(self, path: str) -> bool:
        """JS/TS files, filtered by the include/exclude substrings."""
        if Path(path).suffix.lower() not in get_supported_extensions():
            return False
        if any(pattern in path for pattern in self.settings.exclude_patterns):
            return False
        if self.settings.include_patterns:
            return any(pattern in path for pattern in self.settings.include_patterns)
        return True

    def analyze_text(self, source: str, language: str) -> list[ComplexityRecord]:
        cached = self.cache.get(source, language)
        if cached is not None:
            return list(cached)
        records = analyze_source(source, language)
        self.cache.set(source, language, records)
        return records

    def report(self, path: str, source: str) -> FileComplexityReport:
        """Build a report for ``source`` as the content of ``path``."""
        language = detect_language(path) or "typescript"
        records = self.analyze_text(source, language)
        high = tuple(
            r
            for top in records
            for r in top.walk()
            if r.score >= self.settings.warning_threshold
        )
        return FileComplexityReport(
            path=path,
            language=language,
            total=total_complexity(records),
            records=tuple(records),
            high_complexity=high,
        )

    def analyze_file(self, path: str) -> FileComplexityReport:
        """Read and analyze a file.

        Raises:
            FileAccessError: If the file cannot be read
        """
        return self.report(path, _read_source(Path(path)))

    def compare(
        self, file_path: str, current_text: Optional[str] = None
    ) -> Optional[ComplexityComparison]:
        """Compare total complexity against the last committed revision.

        Returns None when there is no prior revision to compare with.
        """
        if self.revision_reader is None:
            logger.debug("No revision reader configured; comparison unavailable")
            return None

        previous_text = self.revision_reader.show(file_path)
        if previous_text is None:
            logger.info(f"No committed revision of {file_path}; comparison unavailable")
            return None

        if current_text is None:
            current_text = _read_source(Path(file_path))

        # Both versions are analyzed from memory; the working file is never touched.
        current = self.report(file_path, current_text).total
        previous = self.report(file_path, previous_text).total
        return ComplexityComparison.between(file_path, previous, current)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileAccessError(path, f"Cannot read file: {e}")
