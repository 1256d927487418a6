"""Named multi-step workflows over the selection core and external collaborators.

Each workflow is a list of :class:`Step` objects run by
:func:`run_steps`. Collaborator calls go through the orchestrator's
:class:`TTLCache` with per-operation TTLs from ``config.cache``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from ..complexity import ComplexityAnalyzer
from ..config import SelectorConfig
from ..coverage import CoverageStore, compute_trend
from ..exceptions import CollaboratorUnavailableError, CoverageUnavailableError
from ..logging_config import get_logger
from ..models import FileChange
from ..selection.engine import recommend, select_suites
from .cache import TTLCache
from .collaborators import (
    CommitMessageProvider,
    DeploymentProvider,
    E2ERunner,
    RepositoryStatusProvider,
    ReviewProvider,
    SuiteRunner,
    TicketProvider,
    WatcherControl,
)
from .runner import Step, WorkflowResult, at_most_half_failed, execute, no_errors
from .summary import summarize

logger = get_logger(__name__)

T = TypeVar("T")

STOPPED_FALLBACK = {"message": "Already stopped or not running"}


class WorkflowOrchestrator:
    """Runs the session-start, full-test-pass, pre-commit and health-check workflows.

    Every collaborator is optional; a step whose collaborator is missing
    fails with CollaboratorUnavailableError, which the workflow records
    like any other step failure.
    """

    def __init__(
        self,
        config: SelectorConfig,
        *,
        repository: Optional[RepositoryStatusProvider] = None,
        tickets: Optional[TicketProvider] = None,
        deployments: Optional[DeploymentProvider] = None,
        reviews: Optional[ReviewProvider] = None,
        watcher: Optional[WatcherControl] = None,
        suite_runner: Optional[SuiteRunner] = None,
        e2e_runner: Optional[E2ERunner] = None,
        commit_messages: Optional[CommitMessageProvider] = None,
        coverage_store: Optional[CoverageStore] = None,
        complexity: Optional[ComplexityAnalyzer] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.config = config
        self.repository = repository
        self.tickets = tickets
        self.deployments = deployments
        self.reviews = reviews
        self.watcher = watcher
        self.suite_runner = suite_runner
        self.e2e_runner = e2e_runner
        self.commit_messages = commit_messages
        self.coverage_store = coverage_store or CoverageStore(
            config.coverage_dir, history_limit=config.coverage.history_limit
        )
        self.complexity = complexity or ComplexityAnalyzer(config.complexity)
        self.cache = cache or TTLCache()

    # ── collaborator calls ──────────────────────────────────────────

    def _cached(self, operation: str, fetch: Callable[[], T]) -> T:
        return self.cache.get_or_fetch(operation, fetch, self.config.cache.ttl_for(operation))

    @staticmethod
    def _require(collaborator: Optional[T], name: str) -> T:
        if collaborator is None:
            raise CollaboratorUnavailableError(name)
        return collaborator

    def repository_status(self) -> Any:
        provider = self._require(self.repository, "repository")
        return self._cached("repository", provider.repository_status)

    def ticket_status(self) -> Any:
        provider = self._require(self.tickets, "ticket")
        return self._cached("ticket", provider.ticket_status)

    def deployment_status(self) -> Any:
        provider = self._require(self.deployments, "deployment")
        return self._cached("deployments", provider.deployment_status)

    def review_status(self) -> Any:
        provider = self._require(self.reviews, "review")
        return self._cached("review", provider.review_status)

    def start_watching(self, project_root: Optional[str] = None) -> dict[str, Any]:
        watcher = self._require(self.watcher, "watcher")
        if watcher.is_running():
            return {"message": "Already watching files", "already_running": True}
        root = project_root or self.config.project_root
        watcher.start(root)
        return {"message": "Started watching files", "project_root": root}

    def stop_watching(self) -> dict[str, Any]:
        watcher = self._require(self.watcher, "watcher")
        if not watcher.is_running():
            return {"message": "Not currently running", "already_stopped": True}
        watcher.stop()
        return {"message": "Stopped watching files"}

    def status(self) -> dict[str, Any]:
        return {
            "running": self.watcher.is_running() if self.watcher is not None else False,
            "project_root": self.config.project_root,
            "test_suites": [s.name for s in self.config.enabled_suites],
            "coverage_enabled": self.config.coverage.enabled,
            "critical_paths_enabled": self.config.critical_paths.enabled,
            "complexity_enabled": self.config.complexity.enabled,
            "cache": self.cache.stats(),
        }

    def coverage_summary(self, record: bool = False) -> dict[str, Any]:
        """Latest coverage report with trend and recommendations.

        Raises:
            CoverageUnavailableError: If no report can be loaded
        """

        def load() -> dict[str, Any]:
            snapshot = self.coverage_store.load_report(root=self.config.root_path)
            if snapshot is None:
                raise CoverageUnavailableError(str(self.config.coverage_dir))
            trend = compute_trend(snapshot, self.coverage_store.previous())
            if record:
                self.coverage_store.record_and_persist(snapshot)
            return {
                "lines": snapshot.lines.pct,
                "statements": snapshot.statements.pct,
                "functions": snapshot.functions.pct,
                "branches": snapshot.branches.pct,
                "trend": trend.to_dict(),
                "recommendations": recommend(snapshot, self.config.coverage.thresholds),
            }

        return self._cached("coverage", load)

    def run_tests(self, files: Sequence[str]) -> dict[str, Any]:
        changes = FileChange.modified(files)
        snapshot = previous = None
        if self.config.coverage.enabled:
            snapshot = self.coverage_store.load_report(root=self.config.root_path)
            previous = self.coverage_store.previous()
        decision = select_suites(changes, self.config, snapshot, previous)
        logger.info(f"Selected {decision.suite_names or 'no suites'}: {decision.reason}")

        runner = self._require(self.suite_runner, "test runner")
        runs = runner.run_suites(decision.suites, changes) if decision.suites else []
        return {"decision": decision, "runs": runs}

    def analyze_complexity(self, files: Sequence[str]) -> dict[str, Any]:
        reports = []
        comparisons = []
        for path in files:
            if not self.complexity.should_analyze(path) or not Path(path).exists():
                continue
            reports.append(self.complexity.analyze_file(path))
            comparison = self.complexity.compare(path)
            if comparison is not None:
                comparisons.append(comparison)
        return {"reports": reports, "comparisons": comparisons}

    def run_e2e(self) -> Any:
        return self._require(self.e2e_runner, "e2e").run_scenarios()

    def commit_message(self, inputs: Mapping[str, Any]) -> str:
        provider = self._require(self.commit_messages, "commit message")
        return provider.commit_message(inputs["ticket"], inputs["repository"])

    # ── workflows ───────────────────────────────────────────────────

    def _run(
        self,
        workflow: str,
        steps: Sequence[Step],
        success_rule: Callable[[dict[str, Any], dict[str, str]], bool],
    ) -> WorkflowResult:
        result = execute(
            workflow, steps, success_rule, summarize, max_workers=self.config.max_workers
        )
        logger.info(f"{result.summary} in {result.duration:.2f}s")
        return result

    def session_start(self, project_root: Optional[str] = None) -> WorkflowResult:
        steps = [
            Step("repository", lambda _: self.repository_status()),
            Step("deployments", lambda _: self.deployment_status()),
            Step("ticket", lambda _: self.ticket_status()),
            Step("review", lambda _: self.review_status()),
            Step("watching", lambda _: self.start_watching(project_root)),
            Step("status", lambda _: self.status(), depends_on=("watching",)),
        ]
        return self._run("session_start", steps, no_errors)

    def full_test_pass(self, files: Sequence[str], include_e2e: bool = False) -> WorkflowResult:
        steps = [
            Step("tests", lambda _: self.run_tests(files)),
            Step("coverage", lambda _: self.coverage_summary(record=True), depends_on=("tests",)),
            Step("complexity", lambda _: self.analyze_complexity(files)),
        ]
        if include_e2e:
            steps.append(Step("e2e", lambda _: self.run_e2e()))
        return self._run("full_test_pass", steps, no_errors)

    def pre_commit(self) -> WorkflowResult:
        steps = [
            Step(
                "stop_watching",
                lambda _: self.stop_watching(),
                fallback=lambda _exc: dict(STOPPED_FALLBACK),
            ),
            Step("repository", lambda _: self.repository_status()),
            Step("ticket", lambda _: self.ticket_status()),
            Step("deployments", lambda _: self.deployment_status()),
            Step("review", lambda _: self.review_status()),
            Step("commit_message", self.commit_message, depends_on=("ticket", "repository")),
        ]
        return self._run("pre_commit", steps, no_errors)

    def health_check(self) -> WorkflowResult:
        steps = [
            Step("status", lambda _: self.status()),
            Step("repository", lambda _: self.repository_status()),
            Step("deployments", lambda _: self.deployment_status()),
            Step("ticket", lambda _: self.ticket_status()),
            Step("review", lambda _: self.review_status()),
            Step("coverage", lambda _: self.coverage_summary()),
        ]
        return self._run("health_check", steps, at_most_half_failed)
