"""Contract of the remote actions API.

Why Protocol:
- Defines a structural contract (duck typing) without rigid inheritance.
- The pipeline depends on this abstraction, so tests drive it with an
  in-memory fake instead of HTTP.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import Workflow, WorkflowRun


@runtime_checkable
class ActionsAPI(Protocol):
    """Minimal set of actions operations needed by the relay.

    Design rules:
    - Every call is async because it does I/O (HTTP).
    - Failures raise `core.errors.GitHubAPIError` (or a subclass).
    """

    async def list_workflows(self) -> list[Workflow]:
        """Return every workflow of the repository."""

        ...

    async def latest_run_id(self, workflow_id: int) -> int | None:
        """Return the id of the newest run of a workflow, or None if it never ran."""

        ...

    async def dispatch(self, workflow_id: int, *, ref: str, inputs: dict[str, Any]) -> None:
        """Schedule a new run. The API returns no body."""

        ...

    async def get_run(self, run_id: int) -> WorkflowRun:
        """Fetch the current state of a run."""

        ...

    async def download_logs(self, run_id: int, *, attempt: int = 1) -> bytes:
        """Download the zip archive with the logs of a run attempt."""

        ...
