"""GitHub Actions REST adapter.

Implements `core.interfaces.ActionsAPI` on top of `httpx.AsyncClient`.
This module is pure I/O: it maps responses to domain models and non-2xx
statuses to `GitHubAPIError`, and decides nothing about the relay itself.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import RelaySettings
from core.domain.models import Workflow, WorkflowRun
from core.errors import GitHubAPIError, RepositoryAccessError
from core.logging_setup import get_logger

logger = get_logger("github")

_ACCESS_DENIED_STATUSES = (401, 403, 404)


def _api_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return response.reason_phrase


def _json(response: httpx.Response, *, action: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        content_type = response.headers.get("content-type", "unknown")
        raise GitHubAPIError(
            f"{action} failed: HTTP {response.status_code} returned a non-JSON body ({content_type})",
            status_code=response.status_code,
        ) from exc


def _raise_for_status(response: httpx.Response, *, action: str) -> None:
    if response.is_success:
        return
    message = f"{action} failed: HTTP {response.status_code} {_api_message(response)}"
    raise GitHubAPIError(message, status_code=response.status_code)


class GitHubActionsClient:
    """Actions endpoints of a single repository.

    Use as an async context manager so the underlying client is closed:

        async with GitHubActionsClient(settings) as api:
            workflows = await api.list_workflows()
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or build_async_client(settings)
        self._repo_path = f"/repos/{settings.repo_owner}/{settings.repo_name}/actions"

    async def __aenter__(self) -> "GitHubActionsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._repo_path}{path}"
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, **kwargs)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    async def list_workflows(self) -> list[Workflow]:
        response = await self._request("GET", "/workflows", params={"per_page": 100})
        if response.status_code in _ACCESS_DENIED_STATUSES:
            raise RepositoryAccessError(
                f"Listing workflows failed: HTTP {response.status_code} {_api_message(response)}",
                status_code=response.status_code,
            )
        _raise_for_status(response, action="Listing workflows")
        payload = _json(response, action="Listing workflows")
        return [Workflow.model_validate(item) for item in payload.get("workflows") or []]

    async def latest_run_id(self, workflow_id: int) -> int | None:
        response = await self._request(
            "GET",
            f"/workflows/{workflow_id}/runs",
            params={"per_page": 1},
        )
        _raise_for_status(response, action="Listing workflow runs")
        runs = _json(response, action="Listing workflow runs").get("workflow_runs") or []
        if not runs:
            return None
        return int(runs[0]["id"])

    async def dispatch(self, workflow_id: int, *, ref: str, inputs: dict[str, Any]) -> None:
        response = await self._request(
            "POST",
            f"/workflows/{workflow_id}/dispatches",
            json={"ref": ref, "inputs": inputs},
        )
        _raise_for_status(response, action="Dispatching workflow")

    async def get_run(self, run_id: int) -> WorkflowRun:
        response = await self._request("GET", f"/runs/{run_id}")
        _raise_for_status(response, action="Fetching workflow run")
        return WorkflowRun.model_validate(_json(response, action="Fetching workflow run"))

    async def download_logs(self, run_id: int, *, attempt: int = 1) -> bytes:
        response = await self._request("GET", f"/runs/{run_id}/attempts/{attempt}/logs")
        _raise_for_status(response, action="Downloading run logs")
        return response.content
