"""Shared test fixtures for testsift tests."""

import logging

import pytest
from rich.logging import RichHandler

from testsift.coverage import CoverageMetric, CoverageSnapshot, FileCoverage


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Clock starting at t=1000s that only moves when advanced."""
    return FakeClock()


@pytest.fixture
def summary_json():
    """Istanbul coverage-summary.json content: 85% overall, one weak file."""

    def metric(total, covered):
        return {"total": total, "covered": covered, "skipped": 0, "pct": round(covered / total * 100, 2)}

    return {
        "total": {
            "lines": metric(200, 170),
            "statements": metric(220, 187),
            "functions": metric(40, 34),
            "branches": metric(80, 60),
        },
        "src/utils/calc.ts": {
            "lines": metric(20, 7),
            "statements": metric(22, 8),
            "functions": metric(4, 1),
            "branches": metric(10, 2),
        },
        "src/api/user.ts": {
            "lines": metric(180, 163),
            "statements": metric(198, 179),
            "functions": metric(36, 33),
            "branches": metric(70, 58),
        },
    }


@pytest.fixture
def healthy_snapshot():
    """Snapshot at 85% on every metric, no per-file data."""
    metric = CoverageMetric(total=100, covered=85, pct=85.0)
    return CoverageSnapshot(
        lines=metric,
        statements=metric,
        functions=metric,
        branches=metric,
        files={"src/api/user.ts": FileCoverage("src/api/user.ts", 92.0)},
    )


@pytest.fixture
def restore_logging():
    """Undo setup_logging(): drop its handlers and restore logger levels."""
    root = logging.getLogger()
    testsift = logging.getLogger("testsift")
    root_level, level = root.level, testsift.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler, (RichHandler, logging.FileHandler)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(root_level)
    testsift.setLevel(level)
