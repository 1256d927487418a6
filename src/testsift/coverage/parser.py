"""Parse coverage reports into CoverageSnapshot.

Two input shapes are understood:

- Istanbul ``coverage-summary.json``: a ``total`` key plus one key per
  file, each holding ``lines``/``statements``/``functions``/``branches``
  with ``total``/``covered``/``pct``.
- Jest text output: the "Coverage summary" block and/or the per-file
  table (``file | %stmts | %branch | %funcs | %lines | uncovered``).

Anything else yields None. Parsing never raises.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..logging_config import get_logger
from ..models import normalize_path
from .models import CoverageMetric, CoverageSnapshot, FileCoverage, require_mapping

logger = get_logger(__name__)

METRICS = ("lines", "statements", "functions", "branches")

_SUMMARY_RE = re.compile(
    r"Coverage summary[\s\S]*?"
    r"Statements\s*:\s*([\d.]+)%[\s\S]*?"
    r"Branches\s*:\s*([\d.]+)%[\s\S]*?"
    r"Functions\s*:\s*([\d.]+)%[\s\S]*?"
    r"Lines\s*:\s*([\d.]+)%"
)

_ROW_RE = re.compile(
    r"^\s*(?P<name>[^|\n]+?)\s*\|"
    r"\s*(?P<stmts>[\d.]+)\s*\|"
    r"\s*(?P<branch>[\d.]+)\s*\|"
    r"\s*(?P<funcs>[\d.]+)\s*\|"
    r"\s*(?P<lines>[\d.]+)\s*"
    r"(?:\|\s*(?P<uncovered>[\d,\-\s]*?)\s*\|?)?\s*$",
    re.MULTILINE,
)

_SOURCE_FILE_RE = re.compile(r"\.(?:[cm]?js|jsx|ts|tsx)$")

RawReport = Union[str, bytes, Mapping[str, Any], None]


def parse_coverage(raw: RawReport, root: Optional[Path] = None) -> Optional[CoverageSnapshot]:
    """Parse a coverage report in any supported shape.

    Args:
        raw: Parsed JSON mapping, JSON text/bytes, or test runner text output
        root: Project root; absolute file keys are made relative to it

    Returns:
        CoverageSnapshot, or None if ``raw`` is empty or unrecognized
    """
    if raw is None:
        return None

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.startswith("{"):
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("Coverage text looks like JSON but does not parse")
                return None
            return _parse_summary(data, root)
        return _parse_text(text, root)

    if isinstance(raw, Mapping):
        return _parse_summary(raw, root)

    return None


def _pct(value: Any) -> float:
    # Istanbul writes "Unknown" when a metric has nothing to cover
    if value == "Unknown":
        return 100.0
    return float(value)


def _metric(data: Any, name: str) -> CoverageMetric:
    data = require_mapping(data, name)
    return CoverageMetric(
        total=int(data.get("total", 0)),
        covered=int(data.get("covered", 0)),
        pct=_pct(data.get("pct", 0)),
    )


def _relative(path: str, root: Optional[Path]) -> str:
    if root is not None:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                return candidate.relative_to(root).as_posix()
            except ValueError:
                pass
    return normalize_path(path)


def _parse_summary(data: Any, root: Optional[Path]) -> Optional[CoverageSnapshot]:
    if not isinstance(data, Mapping):
        return None
    total = data.get("total")
    if not isinstance(total, Mapping):
        return None

    try:
        aggregates = {name: _metric(total[name], name) for name in METRICS}
        files: dict[str, FileCoverage] = {}
        for key, entry in data.items():
            if key == "total" or not isinstance(entry, Mapping):
                continue
            path = _relative(key, root)
            lines = require_mapping(entry.get("lines", {}), f"lines of {key}")
            files[path] = FileCoverage(
                path=path,
                pct=_pct(lines.get("pct", 0)),
                uncovered_lines=frozenset(int(n) for n in lines.get("uncovered", ()) or ()),
            )
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Malformed coverage summary: {e}")
        return None

    return CoverageSnapshot(files=files, **aggregates)


def _parse_line_ranges(text: Optional[str]) -> frozenset[int]:
    """'12-15,20' -> {12, 13, 14, 15, 20}"""
    lines: set[int] = set()
    if not text:
        return frozenset()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, _, end = part.partition("-")
            if start.isdigit() and end.isdigit():
                lines.update(range(int(start), int(end) + 1))
        elif part.isdigit():
            lines.add(int(part))
    return frozenset(lines)


def _parse_text(text: str, root: Optional[Path]) -> Optional[CoverageSnapshot]:
    files: dict[str, FileCoverage] = {}
    all_files_row = None
    # file rows are listed under the directory row that precedes them
    directory = ""

    for match in _ROW_RE.finditer(text):
        name = match.group("name").strip()
        if name.lower() == "all files":
            all_files_row = match
            continue
        if not _SOURCE_FILE_RE.search(name):
            directory = "" if name == "." else name.rstrip("/")
            continue
        try:
            pct = float(match.group("lines"))
        except ValueError:
            logger.debug(f"Skipping coverage row with a malformed percentage: {name}")
            continue
        if directory and "/" not in name:
            name = f"{directory}/{name}"
        path = _relative(name, root)
        files[path] = FileCoverage(
            path=path,
            pct=pct,
            uncovered_lines=_parse_line_ranges(match.group("uncovered")),
        )

    summary = _SUMMARY_RE.search(text)
    if summary:
        values = summary.groups()
    elif all_files_row is not None:
        values = all_files_row.group("stmts", "branch", "funcs", "lines")
    else:
        return None

    try:
        statements, branches, functions, lines = (float(v) for v in values)
    except ValueError as e:
        logger.debug(f"Malformed coverage summary: {e}")
        return None

    return CoverageSnapshot(
        lines=CoverageMetric.from_pct(lines),
        statements=CoverageMetric.from_pct(statements),
        functions=CoverageMetric.from_pct(functions),
        branches=CoverageMetric.from_pct(branches),
        files=files,
    )
