"""Tests for coverage report parsing."""

import json
from pathlib import Path

import pytest

from testsift.coverage import low_coverage_files, parse_coverage
from testsift.models import FileChange

JEST_TABLE = """\
----------------|---------|----------|---------|---------|-------------------
File            | % Stmts | % Branch | % Funcs | % Lines | Uncovered Line #s
----------------|---------|----------|---------|---------|-------------------
All files       |    82.5 |       70 |      90 |   83.33 |
 src/utils      |      40 |       25 |      50 |      40 |
  calc.ts       |      35 |       20 |      50 |      35 | 12-15,20
 src/api        |     100 |      100 |     100 |     100 |
  user.ts       |     100 |      100 |     100 |     100 |
----------------|---------|----------|---------|---------|-------------------
"""

JEST_SUMMARY = """\
=============================== Coverage summary ===============================
Statements   : 81.2% ( 162/199 )
Branches     : 66.67% ( 40/60 )
Functions    : 88% ( 22/25 )
Lines        : 84.5% ( 169/200 )
================================================================================
"""

VALID_TOTAL = {
    name: {"total": 10, "covered": 5, "pct": 50}
    for name in ("lines", "statements", "functions", "branches")
}


class TestJsonSummary:
    """Istanbul coverage-summary.json input."""

    def test_parses_mapping(self, summary_json):
        snapshot = parse_coverage(summary_json)

        assert snapshot is not None
        assert snapshot.lines.pct == 85.0
        assert snapshot.lines.total == 200
        assert snapshot.lines.covered == 170
        assert snapshot.branches.pct == 75.0
        assert set(snapshot.files) == {"src/utils/calc.ts", "src/api/user.ts"}
        assert snapshot.file("src/utils/calc.ts").pct == 35.0

    def test_parses_json_text_and_bytes(self, summary_json):
        text = json.dumps(summary_json)
        from_text = parse_coverage(text)
        from_bytes = parse_coverage(text.encode("utf-8"))
        assert from_text == from_bytes
        assert from_text.line_pct == 85.0

    def test_unknown_pct_reads_as_full(self):
        empty = {"total": 0, "covered": 0, "skipped": 0, "pct": "Unknown"}
        data = {"total": {name: empty for name in ("lines", "statements", "functions", "branches")}}

        snapshot = parse_coverage(data)

        assert snapshot.lines.pct == 100.0
        assert snapshot.branches.pct == 100.0

    def test_absolute_keys_made_relative_to_root(self, summary_json):
        root = Path("/work/project").resolve()
        data = dict(summary_json)
        data[str(root / "src" / "main.ts")] = data.pop("src/api/user.ts")

        snapshot = parse_coverage(data, root=root)

        assert "src/main.ts" in snapshot.files

    def test_uncovered_lines(self, summary_json):
        summary_json["src/utils/calc.ts"]["lines"]["uncovered"] = [3, 4, 9]
        snapshot = parse_coverage(summary_json)
        assert snapshot.file("src/utils/calc.ts").uncovered_lines == frozenset({3, 4, 9})

    def test_files_mapping_is_read_only(self, summary_json):
        snapshot = parse_coverage(summary_json)
        with pytest.raises(TypeError):
            snapshot.files["src/new.ts"] = None


class TestTextOutput:
    """Jest text reporter input."""

    def test_table_rows(self):
        snapshot = parse_coverage(JEST_TABLE)

        assert snapshot is not None
        assert snapshot.statements.pct == 82.5
        assert snapshot.branches.pct == 70.0
        assert snapshot.functions.pct == 90.0
        assert snapshot.lines.pct == 83.33
        # directory rows are not files, but prefix the rows listed under them
        assert set(snapshot.files) == {"src/utils/calc.ts", "src/api/user.ts"}
        assert snapshot.file("src/utils/calc.ts").pct == 35.0
        assert snapshot.file("src/utils/calc.ts").uncovered_lines == frozenset({12, 13, 14, 15, 20})

    def test_summary_block(self):
        snapshot = parse_coverage(JEST_SUMMARY)

        assert snapshot.statements.pct == 81.2
        assert snapshot.branches.pct == 66.67
        assert snapshot.functions.pct == 88.0
        assert snapshot.lines.pct == 84.5
        assert snapshot.files == {}

    def test_summary_block_takes_precedence_over_table(self):
        snapshot = parse_coverage(JEST_TABLE + "\n" + JEST_SUMMARY)
        assert snapshot.lines.pct == 84.5
        assert "src/utils/calc.ts" in snapshot.files

    def test_text_metrics_scaled_to_hundred(self):
        snapshot = parse_coverage(JEST_SUMMARY)
        assert snapshot.lines.total == 100
        assert snapshot.lines.covered == 84

    def test_rows_feed_low_coverage_files(self):
        snapshot = parse_coverage(JEST_TABLE)
        changes = FileChange.modified(["src/utils/calc.ts", "src/api/user.ts"])
        assert low_coverage_files(changes, snapshot, 80.0) == ["src/utils/calc.ts"]

    def test_root_directory_row(self):
        table = (
            "All files  |  50 |  50 |  50 |  50 |\n"
            " .         |  50 |  50 |  50 |  50 |\n"
            "  index.js |  50 |  50 |  50 |  50 | 3\n"
        )
        snapshot = parse_coverage(table)
        assert set(snapshot.files) == {"index.js"}

    def test_row_with_malformed_percentage_is_skipped(self):
        table = (
            "All files  |  50 |  50 |  50 |  50 |\n"
            " src       |  50 |  50 |  50 |  50 |\n"
            "  a.ts     |  50 |  50 |  50 | 1.2.3 |\n"
            "  b.ts     |  50 |  50 |  50 |  50 |\n"
        )
        snapshot = parse_coverage(table)
        assert set(snapshot.files) == {"src/b.ts"}


class TestUnparseable:
    """Anything unrecognized yields None, never an exception."""

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "   \n",
            "Tests: 12 passed, 12 total",
            "{not json",
            b"\xff\xfe garbage",
            {},
            {"total": "all of it"},
            {"total": {"lines": {"pct": 50}}},
            {"total": {name: {"pct": "n/a"} for name in ("lines", "statements", "functions", "branches")}},
            ["lines", 50],
            {"total": {name: 5 for name in ("lines", "statements", "functions", "branches")}},
            {"total": VALID_TOTAL, "src/a.ts": {"lines": 5}},
            {"total": VALID_TOTAL, "src/a.ts": {"lines": {"pct": 50, "uncovered": 7}}},
            JEST_SUMMARY.replace("81.2%", "1.2.3%"),
            "All files | 1.2.3 | 50 | 50 | 50 |\n",
        ],
    )
    def test_returns_none(self, raw):
        assert parse_coverage(raw) is None
