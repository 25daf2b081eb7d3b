"""Dispatch-and-relay orchestration.

The whole relay is one linear procedure: resolve the workflow, remember the
newest run id, dispatch, wait for a new run id to appear, wait for that run
to complete, then relay its logs. Side effects (printing, sleeping, reading
the clock) are injected so the CLI, tests and future entry points share the
same flow.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from adapters.log_archive import open_general_log
from core.config import (
    PROGRESS_DOT_INTERVAL_SECONDS,
    RUN_DETECTION_INTERVAL_SECONDS,
    RUN_DETECTION_TIMEOUT_SECONDS,
    RelaySettings,
)
from core.domain.models import LogArchiveEntry, RelayResult, Workflow, WorkflowRun
from core.errors import (
    RepositoryAccessError,
    RunDetectionTimeoutError,
    WaitTimeoutError,
    WorkflowNotFoundError,
)
from core.interfaces.actions_api import ActionsAPI
from core.logging_setup import get_logger
from core.services.log_filter import is_noise, split_log_lines

logger = get_logger("pipeline")

NO_PERMISSION_MESSAGE = "Provided GITHUB_TOKEN has no permissions to access the remote repo actions"


def _noop(_: str) -> None:
    return None


@dataclass
class PipelineHooks:
    """Callbacks for the UI layer.

    `info` receives progress messages, `error` receives diagnostics emitted
    right before an exception propagates, and `log_line` receives every
    relayed line of the remote run's log.
    """

    info: Callable[[str], None] = _noop
    error: Callable[[str], None] = _noop
    log_line: Callable[[str], None] = _noop


@dataclass
class PollingClock:
    """Time source of the polling loops."""

    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    now: Callable[[], float] = time.monotonic


@dataclass
class DispatchRequest:
    """Parameters of one relay, resolved from `RelaySettings`."""

    workflow_file_name: str
    git_ref: str = "master"
    inputs: dict[str, Any] = field(default_factory=dict)
    check_interval: float = 5.0
    wait_timeout: float = 600.0

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> "DispatchRequest":
        settings.require_inputs()
        return cls(
            workflow_file_name=str(settings.workflow_file_name),
            git_ref=settings.git_ref,
            inputs=settings.dispatch_inputs(),
            check_interval=settings.check_interval,
            wait_timeout=settings.wait_timeout,
        )


def _format_seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def resolve_workflow(workflows: Sequence[Workflow], file_name: str) -> Workflow:
    """Return the first workflow whose path ends with `file_name`."""

    for workflow in workflows:
        if workflow.path.endswith(file_name):
            return workflow
    available = "', '".join(w.path for w in workflows)
    raise WorkflowNotFoundError(f"Cannot find workflow: '{file_name}', available workflows: '{available}'")


async def find_workflow(api: ActionsAPI, file_name: str, hooks: PipelineHooks) -> Workflow:
    try:
        workflows = await api.list_workflows()
    except RepositoryAccessError:
        hooks.error(NO_PERMISSION_MESSAGE)
        raise
    workflow = resolve_workflow(workflows, file_name)
    hooks.info(f"Detected workflow id: {workflow.id}")
    return workflow


async def detect_new_run_id(
    api: ActionsAPI,
    workflow_id: int,
    baseline_run_id: int | None,
    *,
    clock: PollingClock,
    timeout: float = RUN_DETECTION_TIMEOUT_SECONDS,
    interval: float = RUN_DETECTION_INTERVAL_SECONDS,
) -> int:
    """Poll the runs list until its newest id differs from `baseline_run_id`.

    Dispatching returns nothing, so the first newer id is assumed to be the
    run that was just scheduled.
    """

    deadline = clock.now() + timeout
    run_id = await api.latest_run_id(workflow_id)
    while run_id is None or run_id == baseline_run_id:
        if clock.now() > deadline:
            raise RunDetectionTimeoutError("Cannot detect workflow run id")
        await clock.sleep(interval)
        run_id = await api.latest_run_id(workflow_id)
    return run_id


async def wait_for_completion(
    api: ActionsAPI,
    run_id: int,
    *,
    check_interval: float,
    wait_timeout: float,
    clock: PollingClock,
    hooks: PipelineHooks,
) -> WorkflowRun:
    deadline = clock.now() + wait_timeout
    run = await api.get_run(run_id)
    hooks.info(f"Real time logs can be viewed here: {run.html_url}")
    hooks.info("Waiting for complete...")
    last_dot = clock.now()
    while not run.is_completed:
        await clock.sleep(check_interval)
        run = await api.get_run(run_id)
        logger.debug("run %s status=%s", run_id, run.status)
        if clock.now() - last_dot > PROGRESS_DOT_INTERVAL_SECONDS:
            hooks.info(".")
            last_dot = clock.now()
        if not run.is_completed and clock.now() > deadline:
            raise WaitTimeoutError(
                f"Workflow execution time is too long, waited {_format_seconds(wait_timeout)} seconds"
            )
    return run


def relay_log_text(text: str, hooks: PipelineHooks) -> tuple[int, int]:
    """Send non-noise lines to `hooks.log_line`; return (relayed, filtered)."""

    relayed = filtered = 0
    for line in split_log_lines(text):
        if is_noise(line):
            filtered += 1
            continue
        hooks.log_line(line)
        relayed += 1
    return relayed, filtered


async def relay_run_logs(api: ActionsAPI, run: WorkflowRun, hooks: PipelineHooks) -> tuple[str, int, int]:
    data = await api.download_logs(run.id, attempt=run.run_attempt)

    def on_entry(entry: LogArchiveEntry) -> None:
        hooks.info(f" processing log: {entry.path}")

    path, text = open_general_log(data, on_entry=on_entry)
    hooks.info(f"log file {path}")
    relayed, filtered = relay_log_text(text, hooks)
    return path, relayed, filtered


async def run_pipeline(
    api: ActionsAPI,
    request: DispatchRequest,
    *,
    hooks: PipelineHooks | None = None,
    clock: PollingClock | None = None,
) -> RelayResult:
    """Dispatch the workflow, wait for it, relay its logs."""

    hooks = hooks or PipelineHooks()
    clock = clock or PollingClock()
    hooks.info("Started")

    workflow = await find_workflow(api, request.workflow_file_name, hooks)
    baseline_run_id = await api.latest_run_id(workflow.id)
    logger.debug("baseline run id: %s", baseline_run_id)

    await api.dispatch(workflow.id, ref=request.git_ref, inputs=request.inputs)
    hooks.info("Scheduled workflow run, waiting for start")
    run_id = await detect_new_run_id(api, workflow.id, baseline_run_id, clock=clock)
    hooks.info("Workflow started 🚀")

    run = await wait_for_completion(
        api,
        run_id,
        check_interval=request.check_interval,
        wait_timeout=request.wait_timeout,
        clock=clock,
        hooks=hooks,
    )
    log_file, relayed, filtered = await relay_run_logs(api, run, hooks)
    return RelayResult(
        workflow=workflow,
        run=run,
        log_file=log_file,
        lines_relayed=relayed,
        lines_filtered=filtered,
    )
