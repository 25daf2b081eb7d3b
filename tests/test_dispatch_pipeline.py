import asyncio

import pytest

from core.domain.models import Workflow
from core.errors import (
    EmptyLogArchiveError,
    RepositoryAccessError,
    RunDetectionTimeoutError,
    WaitTimeoutError,
    WorkflowNotFoundError,
)
from core.services.dispatch_pipeline import (
    NO_PERMISSION_MESSAGE,
    DispatchRequest,
    PipelineHooks,
    PollingClock,
    detect_new_run_id,
    resolve_workflow,
    run_pipeline,
    wait_for_completion,
)

from conftest import FakeActionsAPI, make_zip, run_state

LOG_TEXT = "\n".join(
    [
        "Run docker pull ghcr.io/acme/app",
        "a1b2c3: Pulling fs layer",
        "a1b2c3: Pull complete",
        "remote: Counting objects: 100% (5/5), done.",
        "collected 3 items",
        "3 passed",
    ]
)


class Recorder:
    def __init__(self):
        self.infos = []
        self.errors = []
        self.lines = []

    def hooks(self):
        return PipelineHooks(info=self.infos.append, error=self.errors.append, log_line=self.lines.append)


def _logs():
    return make_zip(
        {"build/1_Set up job.txt": "setup only", "0_build.txt": LOG_TEXT},
        dirs=["build"],
    )


def _clock(fake_clock):
    return PollingClock(sleep=fake_clock.sleep, now=fake_clock.now)


def test_resolve_workflow_matches_path_suffix(ci_workflow):
    other = Workflow(id=7, name="Lint", path=".github/workflows/lint.yml")

    assert resolve_workflow([other, ci_workflow], "ci.yml") is ci_workflow


def test_resolve_workflow_lists_available_paths(ci_workflow):
    other = Workflow(id=7, name="Lint", path=".github/workflows/lint.yml")

    with pytest.raises(WorkflowNotFoundError) as excinfo:
        resolve_workflow([ci_workflow, other], "deploy.yml")

    assert str(excinfo.value) == (
        "Cannot find workflow: 'deploy.yml', available workflows: "
        "'.github/workflows/ci.yml', '.github/workflows/lint.yml'"
    )


def test_full_relay(ci_workflow, fake_clock):
    api = FakeActionsAPI(
        workflows=[ci_workflow],
        run_ids=[100, 100, 100, 101],
        runs=[run_state(101, "queued"), run_state(101, "completed", "success", run_number=9)],
        logs=_logs(),
    )
    recorder = Recorder()
    request = DispatchRequest(workflow_file_name="ci.yml", git_ref="main", inputs={"env": "staging"})

    result = asyncio.run(run_pipeline(api, request, hooks=recorder.hooks(), clock=_clock(fake_clock)))

    assert api.dispatches == [{"workflow_id": 42, "ref": "main", "inputs": {"env": "staging"}}]
    assert fake_clock.sleeps == [2.0, 2.0, 5.0]
    assert result.succeeded
    assert result.run.id == 101
    assert result.log_file == "0_build.txt"
    assert recorder.lines == ["Run docker pull ghcr.io/acme/app", "collected 3 items", "3 passed"]
    assert (result.lines_relayed, result.lines_filtered) == (3, 3)
    assert recorder.infos == [
        "Started",
        "Detected workflow id: 42",
        "Scheduled workflow run, waiting for start",
        "Workflow started 🚀",
        "Real time logs can be viewed here: https://github.com/acme/remote/actions/runs/101",
        "Waiting for complete...",
        " processing log: build/",
        " processing log: build/1_Set up job.txt",
        " processing log: 0_build.txt",
        "log file 0_build.txt",
    ]


def test_failed_remote_run_is_reported_as_failure(ci_workflow, fake_clock):
    api = FakeActionsAPI(
        workflows=[ci_workflow],
        run_ids=[1, 2],
        runs=[run_state(2, "completed", "failure")],
        logs=_logs(),
    )

    result = asyncio.run(run_pipeline(api, DispatchRequest(workflow_file_name="ci.yml"), clock=_clock(fake_clock)))

    assert not result.succeeded
    assert result.run.conclusion == "failure"


def test_logs_of_the_latest_attempt_are_downloaded(ci_workflow, fake_clock):
    api = FakeActionsAPI(
        workflows=[ci_workflow],
        run_ids=[1, 2],
        runs=[run_state(2, "completed", "success", run_attempt=2)],
        logs=_logs(),
    )

    asyncio.run(run_pipeline(api, DispatchRequest(workflow_file_name="ci.yml"), clock=_clock(fake_clock)))

    assert api.log_downloads == [(2, 2)]


def test_missing_permissions_emit_hint_before_raising(ci_workflow):
    api = FakeActionsAPI(workflows=[ci_workflow])
    api.list_error = RepositoryAccessError("Listing workflows failed: HTTP 404 Not Found", status_code=404)
    recorder = Recorder()

    with pytest.raises(RepositoryAccessError):
        asyncio.run(run_pipeline(api, DispatchRequest(workflow_file_name="ci.yml"), hooks=recorder.hooks()))

    assert recorder.errors == [NO_PERMISSION_MESSAGE]
    assert api.dispatches == []


def test_empty_log_archive_fails_the_relay(ci_workflow, fake_clock):
    api = FakeActionsAPI(
        workflows=[ci_workflow],
        run_ids=[1, 2],
        runs=[run_state(2, "completed", "success")],
        logs=make_zip({}, dirs=["build"]),
    )

    with pytest.raises(EmptyLogArchiveError):
        asyncio.run(run_pipeline(api, DispatchRequest(workflow_file_name="ci.yml"), clock=_clock(fake_clock)))


def test_detection_accepts_first_run_of_a_new_workflow(fake_clock):
    api = FakeActionsAPI(run_ids=[None, None, 7])

    run_id = asyncio.run(detect_new_run_id(api, 42, None, clock=_clock(fake_clock)))

    assert run_id == 7
    assert fake_clock.sleeps == [2.0, 2.0]


def test_detection_times_out_after_a_minute(fake_clock):
    api = FakeActionsAPI(run_ids=[100])

    with pytest.raises(RunDetectionTimeoutError, match="Cannot detect workflow run id"):
        asyncio.run(detect_new_run_id(api, 42, 100, clock=_clock(fake_clock)))

    assert fake_clock.now() > 60
    assert fake_clock.now() <= 62


def test_wait_times_out(fake_clock):
    api = FakeActionsAPI(runs=[run_state(5, "in_progress")])

    with pytest.raises(WaitTimeoutError, match="Workflow execution time is too long, waited 10 seconds"):
        asyncio.run(
            wait_for_completion(
                api,
                5,
                check_interval=5,
                wait_timeout=10,
                clock=_clock(fake_clock),
                hooks=PipelineHooks(),
            )
        )

    assert fake_clock.sleeps == [5, 5, 5]


def test_wait_prints_progress_dots_at_most_every_fifteen_seconds(fake_clock):
    runs = [run_state(5, "in_progress") for _ in range(5)] + [run_state(5, "completed", "success")]
    api = FakeActionsAPI(runs=runs)
    recorder = Recorder()

    run = asyncio.run(
        wait_for_completion(
            api,
            5,
            check_interval=5,
            wait_timeout=600,
            clock=_clock(fake_clock),
            hooks=recorder.hooks(),
        )
    )

    assert run.is_completed
    assert recorder.infos.count(".") == 1


def test_request_from_settings_validates_inputs():
    from core.config import RelaySettings
    from core.errors import ConfigurationError

    settings = RelaySettings(
        _env_file=None,
        repo_owner="acme",
        repo_name="remote",
        workflow_file_name="ci.yml",
        github_token="t",
        client_payload='{"a": "1"}',
        check_interval=1,
    )
    request = DispatchRequest.from_settings(settings)

    assert request.inputs == {"a": "1"}
    assert request.check_interval == 1
    assert request.git_ref == "master"

    with pytest.raises(ConfigurationError):
        DispatchRequest.from_settings(RelaySettings(_env_file=None))
