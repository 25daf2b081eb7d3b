import io
import zipfile

import pytest

from core.domain.models import Workflow, WorkflowRun


_ENV_VARS = (
    "INPUT_REPO_NAME",
    "INPUT_REPO_OWNER",
    "INPUT_WORKFLOW_FILE_NAME",
    "INPUT_GITHUB_TOKEN",
    "INPUT_GIT_REF",
    "INPUT_CHECK_INTERVAL",
    "INPUT_WAIT_TIMEOUT",
    "INPUT_CLIENT_PAYLOAD",
    "INPUT_API_URL",
    "INPUT_HTTP_TIMEOUT_SECONDS",
    "INPUT_USER_AGENT",
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
    "GITHUB_ACTIONS",
    "WORKFLOW_RELAY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the runner's own environment and any .env file out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def make_zip(files, dirs=()):
    """Build an in-memory zip; `files` maps archive path to text content."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name in dirs:
            archive.writestr(name.rstrip("/") + "/", "")
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class FakeClock:
    """Deterministic replacement for asyncio.sleep / time.monotonic."""

    def __init__(self):
        self.now_value = 0.0
        self.sleeps = []

    def now(self):
        return self.now_value

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now_value += seconds


class FakeActionsAPI:
    """In-memory ActionsAPI: replays scripted run ids and run states."""

    def __init__(self, workflows=None, run_ids=None, runs=None, logs=b""):
        self.workflows = list(workflows or [])
        self.run_ids = list(run_ids or [None])
        self.runs = list(runs or [])
        self.logs = logs
        self.dispatches = []
        self.log_downloads = []
        self.list_error = None
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def list_workflows(self):
        if self.list_error is not None:
            raise self.list_error
        return self.workflows

    async def latest_run_id(self, workflow_id):
        if len(self.run_ids) > 1:
            return self.run_ids.pop(0)
        return self.run_ids[0]

    async def dispatch(self, workflow_id, *, ref, inputs):
        self.dispatches.append({"workflow_id": workflow_id, "ref": ref, "inputs": inputs})

    async def get_run(self, run_id):
        if len(self.runs) > 1:
            return self.runs.pop(0)
        return self.runs[0]

    async def download_logs(self, run_id, *, attempt=1):
        self.log_downloads.append((run_id, attempt))
        return self.logs


@pytest.fixture
def ci_workflow():
    return Workflow(id=42, name="CI", path=".github/workflows/ci.yml", state="active")


@pytest.fixture
def fake_clock():
    return FakeClock()


def run_state(run_id, status, conclusion=None, **extra):
    return WorkflowRun(
        id=run_id,
        status=status,
        conclusion=conclusion,
        html_url=f"https://github.com/acme/remote/actions/runs/{run_id}",
        **extra,
    )
