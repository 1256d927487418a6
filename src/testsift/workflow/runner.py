"""Run a small DAG of workflow steps on a thread pool.

Every launched step is settled and inspected individually: a failure is
recorded against its key and never cancels siblings. A step whose
predecessor failed is not run; it is recorded as skipped.
"""

from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from ..exceptions import WorkflowDefinitionError
from ..logging_config import WorkflowLogAdapter, workflow_logger

StepFn = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class Step:
    """One unit of work in a workflow.

    Attributes:
        key: Result/error key, unique within the workflow
        fn: Called with the results of ``depends_on`` keyed by step key
        depends_on: Keys that must succeed before this step runs
        fallback: Turns this step's exception into a result instead of an error
    """

    key: str
    fn: StepFn
    depends_on: tuple[str, ...] = ()
    fallback: Optional[Callable[[Exception], Any]] = None


@dataclass
class WorkflowResult:
    """Outcome of one workflow run. ``results`` and ``errors`` never share a key."""

    workflow: str
    success: bool
    results: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    duration: float = 0.0
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow": self.workflow,
            "success": self.success,
            "results": {k: to_plain(v) for k, v in self.results.items()},
            "errors": dict(self.errors),
            "duration": round(self.duration, 3),
            "summary": self.summary,
        }


def to_plain(value: Any) -> Any:
    """Convert step results to JSON-friendly structures."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def validate_steps(workflow: str, steps: Sequence[Step]) -> None:
    """Reject duplicate keys, unknown dependencies and cycles.

    Raises:
        WorkflowDefinitionError: If the step graph is malformed
    """
    keys = [s.key for s in steps]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise WorkflowDefinitionError(workflow, f"duplicate step keys: {', '.join(duplicates)}")

    known = set(keys)
    for step in steps:
        unknown = [d for d in step.depends_on if d not in known]
        if unknown:
            raise WorkflowDefinitionError(
                workflow, f"step '{step.key}' depends on unknown step(s): {', '.join(unknown)}"
            )

    # Kahn's algorithm; anything left over sits on a cycle
    remaining = {s.key: set(s.depends_on) for s in steps}
    ready = [k for k, deps in remaining.items() if not deps]
    while ready:
        done = ready.pop()
        del remaining[done]
        for key, deps in remaining.items():
            if done in deps:
                deps.discard(done)
                if not deps:
                    ready.append(key)
    if remaining:
        raise WorkflowDefinitionError(
            workflow, f"dependency cycle between: {', '.join(sorted(remaining))}"
        )


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _settle_failure(
    log: WorkflowLogAdapter,
    step: Step,
    exc: Exception,
    results: dict[str, Any],
    errors: dict[str, str],
) -> None:
    if step.fallback is not None:
        try:
            results[step.key] = step.fallback(exc)
        except Exception as e:
            errors[step.key] = _error_message(e)
            log.warning(f"fallback failed: {errors[step.key]}", step=step.key)
        else:
            log.info(f"failed, using fallback: {_error_message(exc)}", step=step.key)
        return
    errors[step.key] = _error_message(exc)
    log.warning(f"failed: {errors[step.key]}", step=step.key)


def run_steps(
    workflow: str, steps: Sequence[Step], max_workers: Optional[int] = None
) -> tuple[dict[str, Any], dict[str, str]]:
    """Run ``steps``, launching each as soon as its dependencies settle.

    Returns:
        (results, errors) keyed by step key; together they cover every step

    Raises:
        WorkflowDefinitionError: If the step graph is malformed
    """
    validate_steps(workflow, steps)
    log = workflow_logger(workflow, __name__)

    results: dict[str, Any] = {}
    errors: dict[str, str] = {}
    pending = {step.key: step for step in steps}
    running: dict[Future, Step] = {}

    def settled(key: str) -> bool:
        return key in results or key in errors

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"testsift-{workflow}")
    with executor:
        def launch_ready() -> None:
            progressed = True
            while progressed:
                progressed = False
                for key, step in list(pending.items()):
                    if not all(settled(d) for d in step.depends_on):
                        continue
                    del pending[key]
                    progressed = True
                    failed = [d for d in step.depends_on if d in errors]
                    if failed:
                        errors[key] = f"skipped: depends on failed step '{failed[0]}'"
                        log.info(errors[key], step=key)
                        continue
                    inputs = {d: results[d] for d in step.depends_on}
                    running[executor.submit(step.fn, inputs)] = step

        launch_ready()
        while running:
            done, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in done:
                step = running.pop(future)
                try:
                    results[step.key] = future.result()
                    log.debug("ok", step=step.key)
                except Exception as e:
                    _settle_failure(log, step, e, results, errors)
            launch_ready()

    return results, errors


def execute(
    workflow: str,
    steps: Sequence[Step],
    success_rule: Callable[[dict[str, Any], dict[str, str]], bool],
    summarize: Callable[[str, dict[str, Any], dict[str, str], bool], str],
    max_workers: Optional[int] = None,
) -> WorkflowResult:
    """Run a workflow and package its outcome."""
    start = time.perf_counter()
    results, errors = run_steps(workflow, steps, max_workers=max_workers)
    success = success_rule(results, errors)
    return WorkflowResult(
        workflow=workflow,
        success=success,
        results=results,
        errors=errors,
        duration=time.perf_counter() - start,
        summary=summarize(workflow, results, errors, success),
    )


def no_errors(results: dict[str, Any], errors: dict[str, str]) -> bool:
    return not errors


def at_most_half_failed(results: dict[str, Any], errors: dict[str, str]) -> bool:
    total = len(results) + len(errors)
    return len(errors) <= total / 2
