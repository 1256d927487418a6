"""Tests for mapping changed files to watching suites."""

from testsift.models import ChangeKind, FileChange, TestSuiteDefinition
from testsift.selection import (
    detect_suites_for_test_files,
    is_test_file,
    match_suites,
    related_test_files,
)


def make_suite(name, watch=(), patterns=(), type="jest"):
    """Create a suite with explicit watch and test-file globs."""
    return TestSuiteDefinition(type=type, name=name, watch_patterns=watch, patterns=patterns)


class TestFileChange:
    """Test FileChange normalization."""

    def test_path_normalized(self):
        assert FileChange("./src\\utils\\calc.ts").path == "src/utils/calc.ts"

    def test_watcher_event_names(self):
        assert FileChange("a.ts", "add").kind is ChangeKind.ADDED
        assert FileChange("a.ts", "change").kind is ChangeKind.MODIFIED
        assert FileChange("a.ts", "unlink").kind is ChangeKind.DELETED
        assert FileChange("a.ts", "deleted").kind is ChangeKind.DELETED

    def test_modified_builds_one_change_per_path(self):
        changes = FileChange.modified(["a.ts", "b.ts"])
        assert [c.path for c in changes] == ["a.ts", "b.ts"]
        assert all(c.kind is ChangeKind.MODIFIED for c in changes)


class TestMatchSuites:
    """Test match_suites."""

    def test_empty_changes_match_nothing(self):
        suites = [make_suite("unit", watch=("**/*",))]
        assert match_suites([], suites) == []

    def test_matches_on_watch_pattern(self):
        unit = make_suite("unit", watch=("src/**/*.ts",))
        docs = make_suite("docs", watch=("docs/**/*.md",))
        matched = match_suites(FileChange.modified(["src/api/user.ts"]), [unit, docs])
        assert matched == [unit]

    def test_order_follows_configuration(self):
        a = make_suite("a", watch=("src/**",))
        b = make_suite("b", watch=("src/**",))
        c = make_suite("c", watch=("src/**",))
        changes = FileChange.modified(["src/x.ts", "src/y.ts"])
        assert [s.name for s in match_suites(changes, [c, a, b])] == ["c", "a", "b"]

    def test_suite_listed_once_for_many_matches(self):
        unit = make_suite("unit", watch=("src/**/*.ts", "**/*.ts"))
        changes = FileChange.modified(["src/a.ts", "src/b.ts"])
        assert match_suites(changes, [unit]) == [unit]

    def test_no_watch_patterns_watches_everything(self):
        suite = make_suite("all")
        assert match_suites(FileChange.modified(["README.md"]), [suite]) == [suite]

    def test_brace_patterns(self):
        suite = make_suite("ui", watch=("src/**/*.{jsx,tsx}",))
        assert match_suites(FileChange.modified(["src/Button.tsx"]), [suite]) == [suite]
        assert match_suites(FileChange.modified(["src/button.ts"]), [suite]) == []


class TestTestFiles:
    """Test test-file detection helpers."""

    def test_detect_suites_for_test_files(self):
        jest = make_suite("jest", patterns=("**/*.test.{js,ts}",))
        cypress = make_suite("cypress", patterns=("**/*.cy.{js,ts}",), type="cypress")
        changes = FileChange.modified(["cypress/e2e/login.cy.ts"])
        assert detect_suites_for_test_files(changes, [jest, cypress]) == [cypress]

    def test_suite_without_patterns_never_owns_test_files(self):
        suite = make_suite("bare")
        assert detect_suites_for_test_files(FileChange.modified(["a.test.ts"]), [suite]) == []

    def test_is_test_file(self):
        assert is_test_file("src/calc.test.ts")
        assert is_test_file("src/calc.spec.js")
        assert is_test_file("src/__tests__/calc.ts")
        assert is_test_file("cypress/e2e/login.cy.ts")
        assert is_test_file("src/Button.stories.tsx")
        assert not is_test_file("src/calc.ts")

    def test_related_test_files(self):
        assert related_test_files("src/utils/calc.ts") == [
            "src/utils/calc.test.ts",
            "src/utils/calc.spec.ts",
            "test/utils/calc.test.ts",
            "__tests__/utils/calc.test.ts",
        ]
