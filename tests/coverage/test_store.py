"""Tests for bounded coverage history and its JSON persistence."""

import json
import logging
from datetime import datetime

import pytest

from testsift.coverage import (
    HISTORY_FILENAME,
    SUMMARY_FILENAME,
    CoverageHistory,
    CoverageMetric,
    CoverageSnapshot,
    CoverageStore,
)


def make_snapshot(line_pct: float) -> CoverageSnapshot:
    """Create a snapshot with every metric at ``line_pct``."""
    metric = CoverageMetric(total=100, covered=int(line_pct), pct=line_pct)
    return CoverageSnapshot(lines=metric, statements=metric, functions=metric, branches=metric)


class TestCoverageHistory:
    """Tests for CoverageHistory."""

    def test_never_exceeds_cap(self):
        history = CoverageHistory(limit=3)
        for pct in (10.0, 20.0, 30.0, 40.0, 50.0):
            history.append(make_snapshot(pct))
            assert len(history) <= 3
        assert len(history) == 3

    def test_overflow_evicts_oldest(self):
        history = CoverageHistory(limit=2)
        for pct in (10.0, 20.0, 30.0):
            history.append(make_snapshot(pct))
        assert [entry.snapshot.line_pct for entry in history] == [20.0, 30.0]
        assert history.latest().snapshot.line_pct == 30.0

    def test_empty_history(self):
        history = CoverageHistory()
        assert len(history) == 0
        assert history.latest() is None
        assert history.to_list() == []

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            CoverageHistory(limit=0)

    def test_entry_format(self):
        history = CoverageHistory()
        history.append(make_snapshot(75.0), datetime(2024, 5, 1, 12, 0, 0))
        (entry,) = history.to_list()
        assert entry["timestamp"] == "2024-05-01T12:00:00"
        assert entry["coverage"]["lines"]["pct"] == 75.0


class TestCoverageStore:
    """Tests for CoverageStore."""

    def test_in_memory_store(self):
        store = CoverageStore()
        assert store.history_file is None
        assert store.previous() is None

        store.record_and_persist(make_snapshot(80.0))

        assert store.previous().line_pct == 80.0

    def test_persist_and_reload(self, tmp_path):
        store = CoverageStore(tmp_path / "coverage")
        store.record_and_persist(make_snapshot(70.0), datetime(2024, 1, 1))
        store.record_and_persist(make_snapshot(72.5), datetime(2024, 1, 2))

        assert (tmp_path / "coverage" / HISTORY_FILENAME).exists()

        reloaded = CoverageStore(tmp_path / "coverage")
        assert len(reloaded.history) == 2
        assert reloaded.previous() == make_snapshot(72.5)
        assert reloaded.history.latest().timestamp == datetime(2024, 1, 2)

    def test_persisted_history_respects_cap(self, tmp_path):
        store = CoverageStore(tmp_path, history_limit=2)
        for pct in (60.0, 65.0, 70.0):
            store.record_and_persist(make_snapshot(pct))

        data = json.loads((tmp_path / HISTORY_FILENAME).read_text())

        assert [item["coverage"]["lines"]["pct"] for item in data] == [65.0, 70.0]

    def test_reload_with_smaller_cap_keeps_newest(self, tmp_path):
        store = CoverageStore(tmp_path, history_limit=5)
        for pct in (60.0, 65.0, 70.0):
            store.record_and_persist(make_snapshot(pct))

        reloaded = CoverageStore(tmp_path, history_limit=1)

        assert len(reloaded.history) == 1
        assert reloaded.previous().line_pct == 70.0

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            json.dumps({"timestamp": "2024-01-01T00:00:00"}),
            json.dumps([{"timestamp": "2024-01-01T00:00:00", "coverage": {"lines": 5}}]),
            json.dumps(
                [
                    {
                        "timestamp": "2024-01-01T00:00:00",
                        "coverage": {
                            name: 5 for name in ("lines", "statements", "functions", "branches")
                        },
                    }
                ]
            ),
            json.dumps([{"timestamp": "2024-01-01T00:00:00", "coverage": {"files": []}}]),
            json.dumps([{"timestamp": "yesterday", "coverage": {}}]),
        ],
    )
    def test_corrupt_history_is_ignored(self, tmp_path, caplog, content):
        (tmp_path / HISTORY_FILENAME).write_text(content)

        with caplog.at_level(logging.WARNING, logger="testsift"):
            store = CoverageStore(tmp_path)

        assert len(store.history) == 0
        assert "Ignoring unreadable coverage history" in caplog.text

    def test_write_failure_keeps_memory_history(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = CoverageStore(blocker / "coverage")

        with caplog.at_level(logging.WARNING, logger="testsift"):
            store.record_and_persist(make_snapshot(50.0))

        assert store.previous().line_pct == 50.0
        assert "Failed to persist coverage history" in caplog.text


class TestLoadReport:
    """Tests for reading coverage-summary.json."""

    def test_loads_summary(self, tmp_path, summary_json):
        coverage_dir = tmp_path / "coverage"
        coverage_dir.mkdir()
        (coverage_dir / SUMMARY_FILENAME).write_text(json.dumps(summary_json))

        snapshot = CoverageStore(coverage_dir).load_report()

        assert snapshot.line_pct == 85.0
        assert snapshot.file("src/utils/calc.ts").pct == 35.0

    def test_explicit_directory(self, tmp_path, summary_json):
        other = tmp_path / "reports"
        other.mkdir()
        (other / SUMMARY_FILENAME).write_text(json.dumps(summary_json))

        snapshot = CoverageStore().load_report(other)

        assert snapshot is not None

    def test_absolute_keys_relative_to_project_root(self, tmp_path, summary_json):
        coverage_dir = tmp_path / "coverage"
        coverage_dir.mkdir()
        summary_json[str(tmp_path.resolve() / "src" / "main.ts")] = summary_json.pop(
            "src/api/user.ts"
        )
        (coverage_dir / SUMMARY_FILENAME).write_text(json.dumps(summary_json))

        snapshot = CoverageStore(coverage_dir).load_report()

        assert "src/main.ts" in snapshot.files

    def test_missing_report(self, tmp_path):
        assert CoverageStore(tmp_path).load_report() is None
        assert CoverageStore().load_report() is None

    def test_unreadable_report(self, tmp_path):
        (tmp_path / SUMMARY_FILENAME).write_text("<html>not coverage</html>")
        assert CoverageStore(tmp_path).load_report() is None
