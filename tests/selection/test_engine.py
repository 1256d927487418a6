"""Tests for the suite selection decision engine."""

import pytest

from testsift.config import (
    CoverageSettings,
    CoverageThresholds,
    CriticalPathSettings,
    SelectorConfig,
)
from testsift.coverage import CoverageMetric, CoverageSnapshot, FileCoverage
from testsift.models import FileChange, TestSuiteDefinition
from testsift.selection.engine import recommend, select_suites

THRESHOLDS = CoverageThresholds(unit=80, integration=70, e2e=60)


def make_suite(name, type="jest", priority=1, watch=("src/**/*.{ts,tsx}",), enabled=True):
    """Create a suite watching src/ by default."""
    return TestSuiteDefinition(
        type=type,
        name=name,
        command=f"npm run test:{name}",
        watch_patterns=watch,
        priority=priority,
        enabled=enabled,
    )


def make_snapshot(line_pct=85.0, files=None, branch_pct=None):
    """Create a snapshot with every aggregate at ``line_pct`` unless overridden."""
    metric = CoverageMetric(total=100, covered=int(line_pct), pct=line_pct)
    branch_pct = line_pct if branch_pct is None else branch_pct
    return CoverageSnapshot(
        lines=metric,
        statements=metric,
        functions=metric,
        branches=CoverageMetric(total=100, covered=int(branch_pct), pct=branch_pct),
        files={path: FileCoverage(path, pct) for path, pct in (files or {}).items()},
    )


def make_config(suites, coverage=True, critical=None):
    return SelectorConfig(
        test_suites=tuple(suites),
        coverage=CoverageSettings(enabled=coverage, thresholds=THRESHOLDS),
        critical_paths=critical or CriticalPathSettings(),
    )


@pytest.fixture
def unit():
    return make_suite("unit", type="jest", priority=3)


@pytest.fixture
def e2e():
    return make_suite("e2e", type="cypress", priority=1)


@pytest.fixture
def ui():
    return make_suite("ui", type="storybook", priority=2, watch=("src/**/*.tsx",))


class TestCriticalPaths:
    """Critical path changes force every enabled suite."""

    CRITICAL = CriticalPathSettings(
        enabled=True, paths=("src/core/", "package.json"), patterns=("**/payment/**",)
    )

    @pytest.mark.parametrize(
        "paths",
        [
            ["src/core/engine.ts"],
            ["package.json"],
            ["src/billing/payment/charge.ts"],
            ["docs/readme.md", "src/core/engine.ts"],
        ],
    )
    def test_critical_change_selects_all_enabled_suites(self, paths, unit, e2e, ui):
        docs = make_suite("docs", type="jest", priority=0, watch=("docs/**",))
        disabled = make_suite("legacy", priority=9, enabled=False)
        config = make_config([unit, e2e, ui, docs, disabled], critical=self.CRITICAL)

        decision = select_suites(FileChange.modified(paths), config, make_snapshot())

        assert decision.suite_names == ["unit", "ui", "e2e", "docs"]
        assert decision.reason == "Critical path changed - running all test suites"

    def test_disabled_critical_paths_are_ignored(self, unit, e2e):
        critical = CriticalPathSettings(enabled=False, paths=("src/core/",))
        config = make_config([unit, e2e], coverage=False, critical=critical)

        decision = select_suites(FileChange.modified(["src/core/engine.ts"]), config)

        assert decision.reason == "Coverage analysis disabled - running matched test suites"

    def test_critical_path_wins_without_coverage(self, unit, e2e):
        config = make_config([unit, e2e], coverage=False, critical=self.CRITICAL)
        decision = select_suites(FileChange.modified(["src/core/a.ts"]), config)
        assert decision.suite_names == ["unit", "e2e"]


class TestWithoutCoverage:
    """Matched suites run unfiltered when there is no coverage signal."""

    def test_coverage_disabled_runs_matched(self, unit, e2e, ui):
        config = make_config([unit, e2e, ui], coverage=False)
        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, make_snapshot())
        # ui only watches .tsx
        assert decision.suite_names == ["unit", "e2e"]
        assert decision.coverage_gaps == []

    def test_missing_snapshot_runs_matched(self, unit, e2e):
        config = make_config([unit, e2e])
        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, None)
        assert decision.suite_names == ["unit", "e2e"]
        assert decision.reason == "No coverage data available - running all matched test suites"

    @pytest.mark.parametrize(
        "paths, snapshot",
        [
            (["src/calc.ts"], make_snapshot(85.0, {"src/calc.ts": 35.0})),
            (["src/Button.tsx"], make_snapshot(40.0)),
            (["src/api/user.ts"], make_snapshot(90.0, {"src/api/user.ts": 99.0})),
            (["README.md"], make_snapshot(85.0)),
        ],
    )
    def test_disabling_coverage_never_grows_selection(self, paths, snapshot, unit, e2e, ui):
        changes = FileChange.modified(paths)
        enabled = select_suites(changes, make_config([unit, e2e, ui]), snapshot)
        disabled = select_suites(changes, make_config([unit, e2e, ui], coverage=False), snapshot)

        assert set(enabled.suite_names) <= set(disabled.suite_names)


class TestCoverageGuided:
    """Coverage-driven selection by suite category."""

    def test_low_coverage_file_selects_unit_only(self, unit, e2e):
        """35% file, 80% unit threshold, healthy overall coverage."""
        config = make_config([unit, e2e])
        snapshot = make_snapshot(85.0, {"src/calc.ts": 35.0})

        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, snapshot)

        assert decision.suite_names == ["unit"]
        assert "1 files have low coverage (<80%)" in decision.reason
        assert decision.coverage_gaps == ["src/calc.ts"]

    def test_file_missing_from_snapshot_is_a_gap(self, unit, e2e):
        config = make_config([unit, e2e])
        decision = select_suites(
            FileChange.modified(["src/new.ts"]), config, make_snapshot(85.0)
        )
        assert decision.coverage_gaps == ["src/new.ts"]
        assert "unit" in decision.suite_names

    def test_critical_pattern_selects_e2e(self, unit, e2e):
        config = make_config([unit, e2e])
        snapshot = make_snapshot(85.0, {"src/api/user.ts": 92.0})

        decision = select_suites(FileChange.modified(["src/api/user.ts"]), config, snapshot)

        assert decision.suite_names == ["e2e"]
        assert decision.reason == "Critical paths affected"

    def test_declining_trend_selects_e2e(self, unit, e2e):
        config = make_config([unit, e2e])
        current = make_snapshot(85.0, {"src/calc.ts": 95.0})
        previous = make_snapshot(90.0)

        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, current, previous)

        assert decision.suite_names == ["e2e"]
        assert decision.reason == "Coverage declining by 5.0%"

    def test_ui_suites_included_when_matched(self, unit, e2e, ui):
        config = make_config([unit, e2e, ui])
        snapshot = make_snapshot(85.0, {"src/Button.tsx": 95.0})

        decision = select_suites(FileChange.modified(["src/Button.tsx"]), config, snapshot)

        assert decision.suite_names == ["ui"]
        assert decision.reason == "UI components changed"

    def test_low_overall_coverage_runs_all_matched(self, unit, e2e, ui):
        config = make_config([unit, e2e, ui])
        snapshot = make_snapshot(50.0, {"src/Button.tsx": 40.0})

        decision = select_suites(FileChange.modified(["src/Button.tsx"]), config, snapshot)

        # unit is reached twice (gap and comprehensive); listed once, by priority
        assert decision.suite_names == ["unit", "ui", "e2e"]
        assert "Overall coverage low (50.0%) - running comprehensive tests" in decision.reason

    def test_reasons_joined_in_rule_order(self, unit, e2e, ui):
        config = make_config([unit, e2e, ui])
        snapshot = make_snapshot(85.0, {"src/api/Form.tsx": 20.0})

        decision = select_suites(FileChange.modified(["src/api/Form.tsx"]), config, snapshot)

        assert decision.reason == (
            "1 files have low coverage (<80%); Critical paths affected; UI components changed"
        )

    def test_default_suite_when_no_rule_fires(self, unit, e2e):
        """Lowest priority number among matched suites."""
        config = make_config([unit, e2e])
        snapshot = make_snapshot(85.0, {"src/calc.ts": 95.0})

        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, snapshot)

        assert decision.suite_names == ["e2e"]
        assert decision.reason == "Running e2e tests for changed files"

    def test_nothing_matched_selects_nothing(self, unit, e2e):
        config = make_config([unit, e2e])
        snapshot = make_snapshot(85.0, {"docs/guide.md": 100.0})

        decision = select_suites(FileChange.modified(["docs/guide.md"]), config, snapshot)

        assert decision.suites == []

    def test_disabled_suites_never_selected(self, unit, e2e):
        legacy = make_suite("legacy", priority=5, enabled=False)
        config = make_config([unit, e2e, legacy])
        snapshot = make_snapshot(40.0)

        decision = select_suites(FileChange.modified(["src/calc.ts"]), config, snapshot)

        assert "legacy" not in decision.suite_names

    def test_equal_priorities_keep_configuration_order(self):
        a = make_suite("a", priority=1)
        b = make_suite("b", priority=1)
        config = make_config([a, b])
        decision = select_suites(FileChange.modified(["src/x.ts"]), config, make_snapshot(30.0))
        assert decision.suite_names == ["a", "b"]

    def test_decision_serializes(self, unit, e2e):
        config = make_config([unit, e2e])
        snapshot = make_snapshot(85.0, {"src/calc.ts": 35.0})
        data = select_suites(FileChange.modified(["src/calc.ts"]), config, snapshot).to_dict()
        assert [s["name"] for s in data["suites"]] == ["unit"]
        assert data["suites"][0]["category"] == "unit"
        assert data["coverage_gaps"] == ["src/calc.ts"]


class TestRecommend:
    """Test recommend()."""

    def test_healthy_snapshot_has_no_recommendations(self):
        assert recommend(make_snapshot(90.0), THRESHOLDS) == []

    def test_line_and_branch_recommendations(self):
        snapshot = make_snapshot(70.0, branch_pct=60.0)
        assert recommend(snapshot, THRESHOLDS) == [
            "Increase unit test coverage to 80% (current: 70.0%)",
            "Add integration tests for untested branches (60.0% covered)",
        ]

    def test_names_three_weakest_files_and_remainder(self):
        files = {
            "src/a.ts": 40.0,
            "src/b.ts": 10.0,
            "src/c.ts": 30.0,
            "src/d.ts": 20.0,
            "src/e.ts": 45.0,
            "src/ok.ts": 95.0,
        }
        snapshot = make_snapshot(90.0, files)
        assert recommend(snapshot, THRESHOLDS) == [
            "Critical files need tests: src/b.ts, src/d.ts, src/c.ts and 2 more"
        ]

    def test_no_remainder_for_three_or_fewer(self):
        snapshot = make_snapshot(90.0, {"src/a.ts": 5.0, "src/b.ts": 0.0})
        assert recommend(snapshot, THRESHOLDS) == ["Critical files need tests: src/b.ts, src/a.ts"]
